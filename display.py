"""Turn raw profile documents into display records for the character view."""

import math

from reference import ReferenceTables

ENKA_UI_URL = "https://enka.network/ui"
ELEMENT_ICON_URL = "https://raw.githubusercontent.com/MadeBaruna/paimon-moe/main/static/images/elements"

ELEMENT_LABELS = {
    "Ice": "氷",
    "Fire": "炎",
    "Electric": "雷",
    "Wind": "風",
    "Water": "水",
    "Grass": "草",
    "Rock": "岩",
}

# Japanese label, Enka internal key, or English name -> paimon-moe file name
ELEMENT_ICON_NAMES = {
    "炎": "pyro", "水": "hydro", "風": "anemo", "雷": "electro",
    "氷": "cryo", "岩": "geo", "草": "dendro",
    "Fire": "pyro", "Water": "hydro", "Wind": "anemo", "Electric": "electro",
    "Ice": "cryo", "Rock": "geo", "Grass": "dendro",
    "Pyro": "pyro", "Hydro": "hydro", "Anemo": "anemo", "Electro": "electro",
    "Cryo": "cryo", "Geo": "geo", "Dendro": "dendro",
}

ELEMENT_COLORS = {
    "炎": "#FF5C5C",
    "水": "#4CC2F1",
    "風": "#74C2A8",
    "雷": "#CF72FF",
    "草": "#A5C83B",
    "氷": "#9FD6E3",
    "岩": "#E2B015",
    "物理": "#AAAAAA",
    "Unknown": "#888888",
}
DEFAULT_COLOR = "#FFFFFF"

# (fightPropMap id, label, is percentage)
BASE_STATS = [
    ("2000", "最大HP", False),
    ("2001", "攻撃力", False),
    ("2002", "防御力", False),
    ("28", "元素熟知", False),
    ("20", "会心率", True),
    ("22", "会心ダメ", True),
    ("23", "元チャ効率", True),
]

STAT_NAMES = {
    "FIGHT_PROP_BASE_ATTACK": "基礎攻撃力",
    "FIGHT_PROP_HP": "HP",
    "FIGHT_PROP_HP_PERCENT": "HP%",
    "FIGHT_PROP_ATTACK": "攻撃力",
    "FIGHT_PROP_ATTACK_PERCENT": "攻撃力%",
    "FIGHT_PROP_DEFENSE": "防御力",
    "FIGHT_PROP_DEFENSE_PERCENT": "防御力%",
    "FIGHT_PROP_ELEMENT_MASTERY": "元素熟知",
    "FIGHT_PROP_CHARGE_EFFICIENCY": "元チャ",
    "FIGHT_PROP_CRITICAL": "会心率",
    "FIGHT_PROP_CRITICAL_HURT": "会心ダメ",
    "FIGHT_PROP_HEAL_ADD": "与える治癒効果",
    "FIGHT_PROP_FIRE_ADD_HURT": "炎バフ",
    "FIGHT_PROP_WATER_ADD_HURT": "水バフ",
    "FIGHT_PROP_ELEC_ADD_HURT": "雷バフ",
    "FIGHT_PROP_ICE_ADD_HURT": "氷バフ",
    "FIGHT_PROP_WIND_ADD_HURT": "風バフ",
    "FIGHT_PROP_ROCK_ADD_HURT": "岩バフ",
    "FIGHT_PROP_GRASS_ADD_HURT": "草バフ",
    "FIGHT_PROP_PHYSICAL_ADD_HURT": "物理バフ",
}

PERCENT_MARKERS = ("PERCENT", "CRITICAL", "HURT", "EFFICIENCY")

SLOT_ORDER = ["EQUIP_BRACER", "EQUIP_NECKLACE", "EQUIP_SHOES", "EQUIP_RING", "EQUIP_DRESS"]

ITEM_WEAPON = "ITEM_WEAPON"
ITEM_RELIQUARY = "ITEM_RELIQUARY"

PROP_LEVEL = "4001"


# --- Number formatting ---


def format_flat(value) -> str:
    """Floor and group thousands: 12345.9 -> '12,345'."""
    return f"{math.floor(value or 0):,}"


def format_percent(value) -> str:
    """One decimal with a % suffix. ``value`` is already in percent units."""
    return f"{(value or 0):.1f}%"


def _plain_number(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def is_percent_prop(prop_id: str) -> bool:
    return any(marker in (prop_id or "") for marker in PERCENT_MARKERS)


def stat_name(prop_id: str) -> str:
    return STAT_NAMES.get(prop_id, prop_id)


# --- Characters ---


def lookup_character(tables: ReferenceTables, avatar_id) -> dict:
    """Resolve name and element for an avatar, with placeholder fallbacks."""
    row = tables.character(avatar_id)
    if row is None:
        return {
            "name": f"未登録({avatar_id})",
            "element": "？",
            "element_key": "Unknown",
            "side_icon": "",
        }

    element_key = row.get("Element") or "None"
    return {
        "name": tables.text(row.get("NameTextMapHash")) or f"キャラ({avatar_id})",
        "element": ELEMENT_LABELS.get(element_key, element_key),
        "element_key": element_key,
        "side_icon": row.get("SideIconName") or "",
    }


def element_theme(element_label: str) -> str:
    return ELEMENT_COLORS.get(element_label, DEFAULT_COLOR)


# --- Image URLs ---


def icon_url(icon_name: str) -> str:
    return f"{ENKA_UI_URL}/{icon_name}.png" if icon_name else ""


def element_icon_url(element: str) -> str:
    """Element icon from paimon-moe; empty for unknown elements."""
    name = ELEMENT_ICON_NAMES.get(element)
    if not name:
        return ""
    return f"{ELEMENT_ICON_URL}/{name}.png"


def splash_art_url(tables: ReferenceTables, avatar_id) -> str:
    """
    Gacha splash art for a character. Uses SplashIconName when the metadata
    has it, otherwise derives the name from the side icon or the plain icon,
    and finally falls back to the default traveler art.
    """
    row = tables.character(avatar_id)
    if row:
        if row.get("SplashIconName"):
            return icon_url(row["SplashIconName"])
        base_name = ""
        if row.get("SideIconName"):
            base_name = row["SideIconName"].replace("UI_AvatarIcon_Side_", "")
        elif row.get("IconName"):
            base_name = row["IconName"].replace("UI_AvatarIcon_", "")
        if base_name:
            return icon_url(f"UI_Gacha_AvatarImg_{base_name}")
    return icon_url("UI_Gacha_AvatarImg_PlayerBoy")


def character_icon_url(tables: ReferenceTables, avatar_id) -> str:
    """Front-facing avatar icon used by the character selector."""
    row = tables.character(avatar_id)
    icon_name = "UI_AvatarIcon_PlayerBoy"
    if row:
        if row.get("SideIconName"):
            icon_name = row["SideIconName"].replace("_Side", "")
        elif row.get("IconName"):
            icon_name = row["IconName"]
    return icon_url(icon_name)


def profile_icon_url(tables: ReferenceTables, profile_picture: dict | None) -> str:
    if not profile_picture:
        return icon_url("UI_AvatarIcon_PlayerBoy")
    if profile_picture.get("avatarId"):
        return character_icon_url(tables, profile_picture["avatarId"])
    return icon_url(f"UI_AvatarIcon_Item_{profile_picture.get('id')}")


# --- Stats and equipment ---


def format_base_stats(fight_prop_map: dict | None) -> list[dict]:
    """Seven headline stats in fixed order. Percentage stats arrive as ratios."""
    if fight_prop_map is None:
        return []
    stats = []
    for prop_id, name, pct in BASE_STATS:
        value = fight_prop_map.get(prop_id) or 0
        stats.append({
            "name": name,
            "value": format_percent(value * 100) if pct else format_flat(value),
        })
    return stats


def _weapon_stat(stat: dict) -> dict:
    prop_id = stat.get("appendPropId", "")
    value = _plain_number(stat.get("statValue", 0))
    return {
        "name": stat_name(prop_id),
        "value": f"{value}%" if is_percent_prop(prop_id) else f"{value}",
    }


def format_weapon(tables: ReferenceTables, equip_list: list | None) -> dict | None:
    weapon = next(
        (item for item in equip_list or [] if item.get("flat", {}).get("itemType") == ITEM_WEAPON),
        None,
    )
    if not weapon:
        return None

    flat = weapon["flat"]
    info = weapon.get("weapon", {})
    stats = [_weapon_stat(s) for s in flat.get("weaponStats", [])]
    # affixMap holds the refinement rank zero-indexed
    affix = max(info.get("affixMap", {}).values(), default=0)

    return {
        "name": tables.text(flat.get("nameTextMapHash")) or "武器",
        "level": info.get("level"),
        "refinement": affix + 1,
        "rarity": flat.get("rankLevel"),
        "icon": icon_url(flat.get("icon")),
        "main_stat": stats[0] if stats else None,
        "sub_stat": stats[1] if len(stats) > 1 else None,
    }


def _format_stat_value(prop_id: str, value) -> str:
    return format_percent(value) if is_percent_prop(prop_id) else format_flat(value)


def _slot_index(item: dict) -> int:
    slot = item["flat"].get("equipType")
    return SLOT_ORDER.index(slot) if slot in SLOT_ORDER else len(SLOT_ORDER)


def format_artifacts(tables: ReferenceTables, equip_list: list | None) -> list[dict]:
    """
    Artifacts in canonical slot order (flower, plume, sands, goblet, circlet).
    Unknown slots go last and keep their input order.
    """
    relics = [
        item for item in equip_list or []
        if item.get("flat", {}).get("itemType") == ITEM_RELIQUARY
    ]
    relics = sorted(relics, key=_slot_index)

    artifacts = []
    for art in relics:
        flat = art["flat"]
        main = flat.get("reliquaryMainstat", {})
        main_id = main.get("mainPropId", "")
        artifacts.append({
            "name": tables.text(flat.get("setNameTextMapHash")) or "聖遺物",
            "slot": flat.get("equipType"),
            # stored level counts +0 as 1
            "level": art.get("reliquary", {}).get("level", 1) - 1,
            "rarity": flat.get("rankLevel"),
            "main_stat_name": stat_name(main_id),
            "main_stat_value": _format_stat_value(main_id, main.get("statValue", 0)),
            "substats": [
                {
                    "name": stat_name(sub.get("appendPropId", "")),
                    "value": _format_stat_value(sub.get("appendPropId", ""), sub.get("statValue", 0)),
                }
                for sub in flat.get("reliquarySubstats", [])
            ],
            "icon": icon_url(flat.get("icon")),
        })
    return artifacts


def _talent_levels(tables: ReferenceTables, avatar: dict) -> list[int]:
    """Normal attack, skill and burst levels, in the metadata's skill order."""
    levels = avatar.get("skillLevelMap") or {}
    row = tables.character(avatar.get("avatarId")) or {}
    order = row.get("SkillOrder")
    if order:
        return [levels.get(str(skill_id), 1) for skill_id in order]
    return [levels[k] for k in sorted(levels)]


def _prop_value(prop_map: dict | None, prop_id: str) -> int:
    entry = (prop_map or {}).get(prop_id) or {}
    try:
        return int(entry.get("val") or entry.get("ival") or 0)
    except (TypeError, ValueError):
        return 0


# --- Records ---


def build_character_record(tables: ReferenceTables, avatar: dict) -> dict:
    avatar_id = avatar.get("avatarId")
    info = lookup_character(tables, avatar_id)
    equip_list = avatar.get("equipList", [])
    return {
        "avatar_id": avatar_id,
        "name": info["name"],
        "element": info["element"],
        "element_key": info["element_key"],
        "theme_color": element_theme(info["element"]),
        "level": _prop_value(avatar.get("propMap"), PROP_LEVEL),
        "constellation": len(avatar.get("talentIdList") or []),
        "friendship": (avatar.get("fetterInfo") or {}).get("expLevel"),
        "talents": _talent_levels(tables, avatar),
        "stats": format_base_stats(avatar.get("fightPropMap") or {}),
        "weapon": format_weapon(tables, equip_list),
        "artifacts": format_artifacts(tables, equip_list),
        "icon": character_icon_url(tables, avatar_id),
        "splash": splash_art_url(tables, avatar_id),
        "element_icon": element_icon_url(info["element"]),
    }


def build_player_header(tables: ReferenceTables, player_info: dict | None) -> dict | None:
    if not player_info:
        return None
    return {
        "nickname": player_info.get("nickname", ""),
        "level": player_info.get("level", 0),
        "world_level": player_info.get("worldLevel") or 0,
        "signature": player_info.get("signature", ""),
        "achievements": player_info.get("finishAchievementNum", 0),
        "abyss": (
            f"{player_info['towerFloorIndex']}-{player_info.get('towerLevelIndex', 0)}"
            if player_info.get("towerFloorIndex") else None
        ),
        "icon": profile_icon_url(tables, player_info.get("profilePicture")),
    }


def build_profile_view(tables: ReferenceTables, document: dict | None) -> dict | None:
    """
    Full view for one profile, or None when the document has no character
    showcase (hidden in-game or never set).
    """
    if not document or not document.get("avatarInfoList"):
        return None
    return {
        "player": build_player_header(tables, document.get("playerInfo")),
        "characters": [build_character_record(tables, a) for a in document["avatarInfoList"]],
    }
