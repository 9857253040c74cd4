"""Fetch player profiles from Enka.Network through rotating relay routes."""

import json
import logging
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

API_BASE_URL = "https://enka.network/api/uid"

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json,text/plain;q=0.9,*/*;q=0.8",
    "Accept-Language": "ja,en-US;q=0.7,en;q=0.5",
}

TIMEOUT = 8
MAX_RETRIES = 3
RETRY_DELAY = 0.5


class FetchError(Exception):
    pass


class TransportError(FetchError):
    pass


class FetchTimeout(FetchError):
    pass


class HTTPStatusError(FetchError):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class PayloadError(FetchError):
    pass


class RelayRoute:
    """A CORS relay in front of the profile API.

    Subclasses decide how the target URL is attached to the relay and how the
    relay's response body maps back to the profile document.
    """

    name = "relay"

    def __init__(self, base: str):
        self.base = base

    def build_url(self, target: str) -> str:
        raise NotImplementedError

    def unwrap(self, body) -> dict:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.base!r})"


class PassthroughRelay(RelayRoute):
    """Relay that takes the raw target URL and returns the upstream body as-is."""

    name = "passthrough"

    def build_url(self, target: str) -> str:
        return f"{self.base}{target}"

    def unwrap(self, body) -> dict:
        return body


class WrappedRelay(RelayRoute):
    """Relay that takes an encoded target URL and wraps the body in a JSON string field."""

    name = "wrapped"

    def __init__(self, base: str, field: str = "contents"):
        super().__init__(base)
        self.field = field

    def build_url(self, target: str) -> str:
        return f"{self.base}{quote(target, safe='')}"

    def unwrap(self, body) -> dict:
        if not isinstance(body, dict):
            raise PayloadError(f"Expected wrapper object, got {type(body).__name__}")
        inner = body.get(self.field)
        if not inner:
            raise PayloadError(f"Relay response has no '{self.field}' field")
        try:
            return json.loads(inner)
        except (TypeError, json.JSONDecodeError) as e:
            raise PayloadError(f"Wrapped body is not JSON: {e}") from e


ROUTES = [
    WrappedRelay("https://api.allorigins.win/get?url="),
    PassthroughRelay("https://corsproxy.io/?"),
]


def build_target_url(uid: str) -> str:
    """Profile URL with a fresh cache-busting timestamp."""
    return f"{API_BASE_URL}/{uid}?t={int(time.time() * 1000)}"


def _open_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(HEADERS)
    return session


class _InFlight:
    """A GET running on a worker thread that the deadline can cut off."""

    def __init__(self, session: requests.Session, url: str):
        self.session = session
        self.url = url
        self.response = None
        self.aborted = threading.Event()

    def run(self) -> requests.Response:
        try:
            resp = self.session.get(self.url, timeout=TIMEOUT, stream=True)
        except requests.Timeout as e:
            raise FetchTimeout(str(e)) from e
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        self.response = resp
        if self.aborted.is_set():
            self.abort()
            raise FetchTimeout("Aborted before the body was read")
        try:
            resp.content  # reads the streamed body
        except requests.RequestException as e:
            raise TransportError(str(e)) from e
        return resp

    def abort(self):
        """Shut down the live connection so a blocked read returns at once."""
        self.aborted.set()
        resp = self.response
        if resp is None:
            # still waiting for headers; bounded by the requests read timeout
            return
        conn = getattr(getattr(resp, "raw", None), "connection", None)
        sock = getattr(conn, "sock", None)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        resp.close()


def _attempt(route: RelayRoute, uid: str) -> dict:
    """Run one request through ``route``, racing it against ``TIMEOUT``."""
    url = route.build_url(build_target_url(uid))
    session = _open_session()
    request = _InFlight(session, url)
    pool = ThreadPoolExecutor(max_workers=1)
    try:
        future = pool.submit(request.run)
        try:
            resp = future.result(timeout=TIMEOUT)
        except FutureTimeout:
            request.abort()
            raise FetchTimeout(f"No response within {TIMEOUT}s")

        if not 200 <= resp.status_code < 300:
            raise HTTPStatusError(resp.status_code)
        try:
            body = resp.json()
        except ValueError as e:
            raise PayloadError(f"Response is not JSON: {e}") from e

        document = route.unwrap(body)
        if not isinstance(document, dict):
            raise PayloadError(f"Expected profile object, got {type(document).__name__}")
        return document
    finally:
        session.close()
        pool.shutdown(wait=False, cancel_futures=True)


def fetch_profile(uid: str, routes: list[RelayRoute] = None) -> dict | None:
    """Fetch a profile document, cycling through relay routes.

    Returns the parsed document on the first successful attempt, or None once
    all ``MAX_RETRIES`` attempts have failed. Never raises.
    """
    routes = routes or ROUTES
    uid = (uid or "").strip()
    if not uid:
        logger.warning("Empty UID, skipping fetch")
        return None

    for attempt in range(MAX_RETRIES):
        route = routes[attempt % len(routes)]
        logger.info(
            "Fetching UID %s (attempt %d/%d via %s)",
            uid, attempt + 1, MAX_RETRIES, route.name,
        )
        try:
            document = _attempt(route, uid)
            logger.info("Fetched UID %s via %s", uid, route.name)
            return document
        except FetchError as e:
            logger.warning(
                "Attempt %d/%d via %s failed: %s: %s",
                attempt + 1, MAX_RETRIES, route.name, type(e).__name__, e,
            )
        except Exception:
            logger.exception("Attempt %d/%d via %s crashed", attempt + 1, MAX_RETRIES, route.name)
        if attempt < MAX_RETRIES - 1:
            time.sleep(RETRY_DELAY)

    logger.error("Failed to fetch UID %s after %d attempts", uid, MAX_RETRIES)
    return None
