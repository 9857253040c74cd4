"""Static reference data: character metadata and localized text."""

import logging
from types import MappingProxyType

import requests

logger = logging.getLogger(__name__)

CHARACTERS_URL = "https://raw.githubusercontent.com/EnkaNetwork/API-docs/master/store/characters.json"
LOC_URL = "https://raw.githubusercontent.com/EnkaNetwork/API-docs/master/store/loc.json"

# loc.json has used both codes for Japanese
LOCALES = ("jp", "ja")

TIMEOUT = 10


class ReferenceLoadError(Exception):
    pass


class ReferenceTables:
    """Read-only lookup tables shared by every render."""

    def __init__(self, characters: dict = None, locale: dict = None):
        self.characters = MappingProxyType(dict(characters or {}))
        self.locale = MappingProxyType(dict(locale or {}))

    @classmethod
    def empty(cls) -> "ReferenceTables":
        return cls()

    def character(self, avatar_id) -> dict | None:
        if avatar_id is None:
            return None
        return self.characters.get(str(avatar_id))

    def text(self, text_hash) -> str | None:
        """Localized string for a text-map hash, or None."""
        if not text_hash:
            return None
        return self.locale.get(str(text_hash)) or None

    def __repr__(self):
        return f"ReferenceTables(characters={len(self.characters)}, locale={len(self.locale)})"


def _fetch_json(url: str):
    try:
        resp = requests.get(url, timeout=TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise ReferenceLoadError(f"{url}: {e}") from e


def _load_characters(url: str) -> dict:
    data = _fetch_json(url)
    if not isinstance(data, dict):
        raise ReferenceLoadError(f"{url}: expected an object keyed by avatar id")
    return data


def _load_locale(url: str) -> dict:
    data = _fetch_json(url)
    if not isinstance(data, dict):
        raise ReferenceLoadError(f"{url}: expected an object keyed by language")
    for code in LOCALES:
        if data.get(code):
            return data[code]
    logger.warning("No %s strings in %s", "/".join(LOCALES), url)
    return {}


def load_reference_tables(characters_url: str = CHARACTERS_URL,
                          locale_url: str = LOC_URL) -> ReferenceTables:
    """
    Load both tables once. A table that fails to load is left empty so that
    lookups fall back to placeholder text instead of blocking the caller.
    """
    try:
        characters = _load_characters(characters_url)
    except ReferenceLoadError as e:
        logger.error("Character table unavailable: %s", e)
        characters = {}

    try:
        locale = _load_locale(locale_url)
    except ReferenceLoadError as e:
        logger.error("Locale table unavailable: %s", e)
        locale = {}

    tables = ReferenceTables(characters, locale)
    logger.info("Reference data loaded: %r", tables)
    return tables
