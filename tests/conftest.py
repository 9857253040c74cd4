"""Pytest configuration: project root on sys.path plus shared sample data."""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from reference import ReferenceTables  # noqa: E402

HU_TAO = "10000046"


@pytest.fixture
def tables():
    return ReferenceTables(
        characters={
            HU_TAO: {
                "Element": "Fire",
                "NameTextMapHash": 1940919994,
                "SideIconName": "UI_AvatarIcon_Side_Hutao",
                "SkillOrder": [10461, 10462, 10463],
            },
            "10000099": {
                "Element": "Quantum",
                "SideIconName": "UI_AvatarIcon_Side_Nobody",
            },
            "10000098": {
                "Element": "Water",
                "NameTextMapHash": 1,
                "IconName": "UI_AvatarIcon_Nameless",
            },
        },
        locale={
            "1940919994": "胡桃",
            "1075647299": "護摩の杖",
            "1337666507": "燃え盛る炎の魔女",
        },
    )


def weapon_item(**overrides):
    item = {
        "itemId": 13501,
        "weapon": {"level": 90, "promoteLevel": 6, "affixMap": {"113501": 0}},
        "flat": {
            "nameTextMapHash": "1075647299",
            "rankLevel": 5,
            "itemType": "ITEM_WEAPON",
            "icon": "UI_EquipIcon_Pole_Homa",
            "weaponStats": [
                {"appendPropId": "FIGHT_PROP_BASE_ATTACK", "statValue": 608},
                {"appendPropId": "FIGHT_PROP_CRITICAL_HURT", "statValue": 66.2},
            ],
        },
    }
    item.update(overrides)
    return item


def artifact_item(slot, main_prop="FIGHT_PROP_HP", value=4780, level=21):
    return {
        "itemId": 1,
        "reliquary": {"level": level},
        "flat": {
            "setNameTextMapHash": "1337666507",
            "rankLevel": 5,
            "itemType": "ITEM_RELIQUARY",
            "equipType": slot,
            "icon": f"UI_RelicIcon_15006_{slot}",
            "reliquaryMainstat": {"mainPropId": main_prop, "statValue": value},
            "reliquarySubstats": [
                {"appendPropId": "FIGHT_PROP_CRITICAL", "statValue": 10.5},
                {"appendPropId": "FIGHT_PROP_ATTACK", "statValue": 33},
            ],
        },
    }


@pytest.fixture
def avatar():
    return {
        "avatarId": int(HU_TAO),
        "propMap": {"4001": {"type": 4001, "ival": "90", "val": "90"}},
        "talentIdList": [461, 462],
        "skillLevelMap": {"10461": 10, "10462": 9, "10463": 8},
        "fetterInfo": {"expLevel": 10},
        "fightPropMap": {
            "2000": 34567.8,
            "2001": 1234.5,
            "2002": 876.2,
            "28": 120.0,
            "20": 0.331,
            "22": 2.105,
            "23": 1.2,
        },
        "equipList": [
            artifact_item("EQUIP_DRESS", "FIGHT_PROP_CRITICAL", 31.1),
            artifact_item("EQUIP_BRACER"),
            weapon_item(),
            artifact_item("EQUIP_RING", "FIGHT_PROP_FIRE_ADD_HURT", 46.6),
            artifact_item("EQUIP_NECKLACE", "FIGHT_PROP_ATTACK", 311),
            artifact_item("EQUIP_SHOES", "FIGHT_PROP_HP_PERCENT", 46.6),
        ],
    }


@pytest.fixture
def document(avatar):
    return {
        "playerInfo": {
            "nickname": "Traveler",
            "level": 60,
            "worldLevel": 9,
            "signature": "hello",
            "finishAchievementNum": 900,
            "towerFloorIndex": 12,
            "towerLevelIndex": 3,
            "profilePicture": {"avatarId": int(HU_TAO)},
        },
        "avatarInfoList": [avatar],
        "ttl": 60,
        "uid": "801630705",
    }
