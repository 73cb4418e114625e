"""Shared pytest fixtures for charsheet tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from charsheet.core.formula.evaluator import fixed_die_roller
from charsheet.core.ir.gamedata import GameData
from charsheet.core.sheet import CharacterSheet

GAME_DATA: dict[str, Any] = {
    "gameVersion": "1.2",
    "dataVersion": "7",
    "attributeLevelUpPoints": [2, 3],
    "skillLevelUpPoints": [1, 2, 3],
    "attributeGroups": [
        {
            "displayName": "Physical",
            "attributes": {
                "STR": {
                    "displayName": "Strength",
                    "displayDescription": "Raw power",
                    "skills": {
                        "athletics": {"displayName": "Athletics"},
                        "brawl": {"displayName": "Brawl"},
                    },
                },
                "AGI": {
                    "displayName": "Agility",
                    "skills": {"stealth": {"displayName": "Stealth"}},
                },
            },
        },
        {
            "displayName": "Mental",
            "attributes": {
                "INT": {
                    "displayName": "Intellect",
                    "skills": {"lore": {"displayName": "Lore"}},
                },
            },
        },
    ],
    "derivedStatistics": {
        "health": {"displayName": "Health", "formula": "10 + STR * 2"},
        "defense": {"displayName": "Defense", "formula": "(AGI + 1) * 2"},
        "initiative": {"displayName": "Initiative", "formula": "1d20 + agi"},
        "broken": {"displayName": "Broken", "formula": "1 +"},
    },
}


@pytest.fixture
def game_data_dict() -> dict[str, Any]:
    """Raw content data as it would be read from YAML/JSON."""
    return copy.deepcopy(GAME_DATA)


@pytest.fixture
def game_data(game_data_dict: dict[str, Any]) -> GameData:
    return GameData.model_validate(game_data_dict)


@pytest.fixture
def sheet(game_data: GameData) -> CharacterSheet:
    """A fresh level-0 character whose dice always roll 3."""
    return CharacterSheet(game_data, fixed_die_roller(3))
