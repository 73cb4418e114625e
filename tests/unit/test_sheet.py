"""Tests for CharacterSheet construction, evaluation and modifiers."""

from __future__ import annotations

import logging

import pytest

from charsheet.core.ir.gamedata import GameData
from charsheet.core.ir.statistics import StatChange, StatField
from charsheet.core.sheet import CharacterSheet
from charsheet.core.stats import CharacterAttribute, CharacterSkill, DerivedStat


class TestConstruction:
    def test_ids_uppercased(self, sheet: CharacterSheet) -> None:
        assert set(sheet.attributes) == {"STR", "AGI", "INT"}
        assert set(sheet.skills) == {"ATHLETICS", "BRAWL", "STEALTH", "LORE"}
        assert set(sheet.derived_stats) == {"HEALTH", "DEFENSE", "INITIATIVE", "BROKEN"}

    def test_stats_table_combines_all(self, sheet: CharacterSheet) -> None:
        assert len(sheet.stats) == 3 + 4 + 4

    def test_attribute_owns_skills(self, sheet: CharacterSheet) -> None:
        strength = sheet.attributes["STR"]
        assert set(strength.skills) == {"ATHLETICS", "BRAWL"}
        assert strength.skills["ATHLETICS"] is sheet.skills["ATHLETICS"]
        assert sheet.skills["ATHLETICS"].parent_attribute is strength

    def test_schedules(self, sheet: CharacterSheet) -> None:
        assert sheet.attributes["STR"].level_up_points == (2, 3)
        assert sheet.skills["LORE"].level_up_points == (1, 2, 3)

    def test_display_fields(self, sheet: CharacterSheet) -> None:
        strength = sheet.attributes["STR"]
        assert strength.display_name == "Strength"
        assert strength.display_description == "Raw power"

    def test_identity_defaults(self, sheet: CharacterSheet) -> None:
        assert sheet.name == ""
        assert sheet.level == 0
        assert sheet.age == 18

    def test_invalid_derived_formula_logged(
        self, game_data: GameData, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="charsheet.core.stats"):
            sheet = CharacterSheet(game_data)
        assert "BROKEN" in caplog.text
        assert not sheet.derived_stats["BROKEN"].is_valid


class TestLookup:
    def test_case_insensitive(self, sheet: CharacterSheet) -> None:
        assert isinstance(sheet.get_statistic("str"), CharacterAttribute)
        assert isinstance(sheet.get_statistic("Stealth"), CharacterSkill)
        assert isinstance(sheet.get_statistic("health"), DerivedStat)
        assert sheet.get_statistic("missing") is None

    def test_get_upgradable(self, sheet: CharacterSheet) -> None:
        assert sheet.get_upgradable("lore") is sheet.skills["LORE"]
        assert sheet.get_upgradable("HEALTH") is None


class TestEvaluateStatistic:
    def test_attribute(self, sheet: CharacterSheet) -> None:
        sheet.attributes["AGI"].set_progress(2, 0)
        evaluation = sheet.evaluate_statistic("agi")
        assert evaluation.base_value == 2
        assert evaluation.modifications == []
        assert evaluation.final_value == 2

    def test_skill_inherits_attribute(self, sheet: CharacterSheet) -> None:
        sheet.attributes["STR"].set_progress(1, 0)
        sheet.skills["ATHLETICS"].set_progress(2, 0)
        assert sheet.evaluate_statistic("ATHLETICS").final_value == 3
        assert sheet.evaluate_statistic("BRAWL").final_value == 1

    def test_derived(self, sheet: CharacterSheet) -> None:
        sheet.attributes["STR"].set_progress(2, 0)
        assert sheet.evaluate_statistic("HEALTH").final_value == 14

    def test_derived_with_dice(self, sheet: CharacterSheet) -> None:
        sheet.attributes["AGI"].set_progress(1, 0)
        # 1d20 rolls 3
        assert sheet.evaluate_statistic("initiative").final_value == 4

    def test_broken_formula_is_zero(self, sheet: CharacterSheet) -> None:
        assert sheet.evaluate_statistic("BROKEN").final_value == 0

    def test_unknown_is_zero(self, sheet: CharacterSheet) -> None:
        evaluation = sheet.evaluate_statistic("NOPE")
        assert evaluation.final_value == 0
        assert evaluation.modifications == []


class TestModifiers:
    def test_modifier_line(self, sheet: CharacterSheet) -> None:
        sheet.add_modifier("str", "Blessed", "2")
        evaluation = sheet.evaluate_statistic("STR")
        assert evaluation.base_value == 0
        lines = [(m.display_name, m.display_formula, m.amount) for m in evaluation.modifications]
        assert lines == [("Blessed", "2", 2)]
        assert evaluation.final_value == 2

    def test_modifier_flows_into_formulas(self, sheet: CharacterSheet) -> None:
        sheet.add_modifier("STR", "Giant belt", "3")
        # health = 10 + STR * 2
        assert sheet.evaluate_statistic("HEALTH").final_value == 16

    def test_modifier_formula_references_stats(self, sheet: CharacterSheet) -> None:
        sheet.attributes["INT"].set_progress(2, 0)
        sheet.add_modifier("LORE", "Library", "INT * 2")
        evaluation = sheet.evaluate_statistic("LORE")
        assert evaluation.base_value == 2
        assert evaluation.final_value == 6

    def test_self_referencing_modifier(self, sheet: CharacterSheet) -> None:
        sheet.attributes["STR"].set_progress(1, 0)
        sheet.add_modifier("STR", "Echo", "STR + 1")
        assert sheet.evaluate_statistic("STR").final_value == 2

    def test_unparseable_modifier_skipped(self, sheet: CharacterSheet) -> None:
        sheet.add_modifier("STR", "Typo", "2 *")
        assert sheet.evaluate_statistic("STR").modifications == []

    def test_unknown_stat_rejected(self, sheet: CharacterSheet) -> None:
        with pytest.raises(KeyError, match="NOPE"):
            sheet.add_modifier("NOPE", "Lost", "1")

    def test_remove_and_clear(self, sheet: CharacterSheet) -> None:
        first = sheet.add_modifier("STR", "A", "1")
        sheet.add_modifier("STR", "B", "1")
        sheet.add_modifier("AGI", "C", "1")
        sheet.remove_modifier(first)
        assert [m.label for m in sheet.modifiers] == ["B", "C"]
        sheet.clear_modifiers("str")
        assert [m.label for m in sheet.modifiers] == ["C"]
        sheet.clear_modifiers()
        assert sheet.modifiers == []


class TestSheetListeners:
    def test_receives_all_stat_changes(self, sheet: CharacterSheet) -> None:
        events: list[StatChange] = []
        sheet.add_listener(events.append)
        sheet.attributes["STR"].try_add_upgrade_point()
        sheet.skills["LORE"].try_add_upgrade_point()
        assert [(e.stat_id, e.field) for e in events] == [
            ("STR", StatField.UPGRADE_POINTS),
            ("LORE", StatField.UPGRADE_LEVEL),
        ]

    def test_listener_can_reevaluate(self, sheet: CharacterSheet) -> None:
        healths: list[float] = []
        sheet.add_listener(
            lambda change: healths.append(sheet.evaluate_statistic("HEALTH").final_value)
        )
        sheet.attributes["STR"].set_progress(1, 0)
        assert healths == [12]

    def test_remove_listener(self, sheet: CharacterSheet) -> None:
        events: list[StatChange] = []
        sheet.add_listener(events.append)
        sheet.remove_listener(events.append)
        sheet.attributes["STR"].try_add_upgrade_point()
        assert events == []
