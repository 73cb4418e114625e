"""Tests for saving and loading characters."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from charsheet.core.errors import PersistenceError
from charsheet.core.ir.gamedata import GameData
from charsheet.core.persistence import (
    FORMAT_VERSION,
    apply_snapshot,
    character_file_name,
    get_character_path,
    list_characters,
    load_character,
    load_snapshot,
    save_character,
    snapshot_character,
)
from charsheet.core.sheet import CharacterSheet


def _write(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestPaths:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Ada", "ada.json"),
            ("Ada Lovelace", "ada_lovelace.json"),
            ("  Dr. Who?  ", "dr_who.json"),
            ("???", "character.json"),
        ],
    )
    def test_file_name(self, name: str, expected: str) -> None:
        assert character_file_name(name) == expected

    def test_get_character_path(self, tmp_path: Path) -> None:
        assert get_character_path(tmp_path, "Ada") == tmp_path / "ada.json"

    def test_list_characters(self, tmp_path: Path) -> None:
        (tmp_path / "zed.json").write_text("{}", encoding="utf-8")
        (tmp_path / "ada.json").write_text("{}", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("", encoding="utf-8")
        assert [p.name for p in list_characters(tmp_path)] == ["ada.json", "zed.json"]

    def test_list_missing_directory(self, tmp_path: Path) -> None:
        assert list_characters(tmp_path / "missing") == []


class TestRoundTrip:
    def test_save_and_load(
        self, tmp_path: Path, sheet: CharacterSheet, game_data: GameData
    ) -> None:
        sheet.name = "Ada"
        sheet.pronouns = "she/her"
        sheet.level = 3
        sheet.wealth_weekly = 12
        sheet.attributes["STR"].set_progress(1, 2)
        sheet.skills["LORE"].set_progress(2, 1)

        path = save_character(tmp_path / "chars" / "ada.json", sheet)
        assert path.exists()

        loaded = load_character(path, game_data)
        assert loaded.name == "Ada"
        assert loaded.pronouns == "she/her"
        assert loaded.level == 3
        assert loaded.wealth_weekly == 12
        strength = loaded.attributes["STR"]
        assert (strength.upgrade_level, strength.upgrade_points) == (1, 2)
        assert loaded.skills["LORE"].upgrade_level == 2
        assert loaded.evaluate_statistic("HEALTH").final_value == 12

    def test_file_is_readable_json(self, tmp_path: Path, sheet: CharacterSheet) -> None:
        sheet.name = "Zoë"
        path = save_character(tmp_path / "zoe.json", sheet)
        text = path.read_text(encoding="utf-8")
        assert "Zoë" in text
        data = json.loads(text)
        assert data["format_version"] == FORMAT_VERSION
        assert data["attributes"]["STR"] == {"upgrade_level": 0, "upgrade_points": 0}
        assert "HEALTH" not in data["attributes"]

    def test_snapshot_only_upgradable_stats(self, sheet: CharacterSheet) -> None:
        snapshot = snapshot_character(sheet)
        assert set(snapshot.attributes) == {"STR", "AGI", "INT"}
        assert set(snapshot.skills) == {"ATHLETICS", "BRAWL", "STEALTH", "LORE"}


class TestRestore:
    def test_unknown_ids_skipped(
        self, tmp_path: Path, game_data: GameData, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = _write(
            tmp_path / "old.json",
            {
                "name": "Old",
                "attributes": {"CHA": {"upgrade_level": 1}, "str": {"upgrade_level": 1}},
            },
        )
        with caplog.at_level(logging.INFO, logger="charsheet.core.persistence"):
            sheet = load_character(path, game_data)
        assert sheet.attributes["STR"].upgrade_level == 1
        assert "CHA" in caplog.text

    def test_unreachable_progress_skipped(
        self, tmp_path: Path, game_data: GameData, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = _write(
            tmp_path / "odd.json",
            {
                "attributes": {
                    "STR": {"upgrade_level": 9},
                    "AGI": {"upgrade_level": 1, "upgrade_points": 1},
                },
            },
        )
        with caplog.at_level(logging.WARNING, logger="charsheet.core.persistence"):
            sheet = load_character(path, game_data)
        assert sheet.attributes["STR"].upgrade_level == 0
        assert sheet.attributes["AGI"].upgrade_level == 1
        assert "Skipping saved attribute STR" in caplog.text

    def test_missing_fields_default(self, tmp_path: Path, game_data: GameData) -> None:
        sheet = load_character(_write(tmp_path / "min.json", {}), game_data)
        assert sheet.name == ""
        assert sheet.age == 18

    def test_apply_snapshot_returns_sheet(self, sheet: CharacterSheet, game_data: GameData) -> None:
        sheet.skills["BRAWL"].set_progress(1, 0)
        fresh = CharacterSheet(game_data)
        assert apply_snapshot(fresh, snapshot_character(sheet)) is fresh
        assert fresh.skills["BRAWL"].upgrade_level == 1


class TestLoadErrors:
    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(PersistenceError, match="not found"):
            load_snapshot(tmp_path / "ghost.json")

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError, match="Invalid JSON"):
            load_snapshot(path)

    def test_wrong_types(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "bad.json", {"attributes": {"STR": {"upgrade_level": -1}}})
        with pytest.raises(PersistenceError, match="Invalid character file"):
            load_snapshot(path)

    def test_newer_format(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "future.json", {"format_version": FORMAT_VERSION + 1})
        with pytest.raises(PersistenceError, match="format version"):
            load_snapshot(path)
