"""Tests for skill check difficulty, scoring and resolution."""

from __future__ import annotations

import math

import pytest

from charsheet.core.ir.checks import (
    SkillCheck,
    SkillCheckDifficulty,
    parse_difficulty,
)
from charsheet.core.ir.gamedata import GameData
from charsheet.core.ir.statistics import StatisticEvaluation, StatisticModification
from charsheet.core.sheet import CharacterSheet
from charsheet.core.skill_check import (
    get_difficulty_die_sides,
    get_effective_difficulty,
    roll_skill_check,
)

D = SkillCheckDifficulty


def _check(die_roll: int, skill_value: float) -> SkillCheck:
    return SkillCheck(
        stat_id="STR",
        evaluation=StatisticEvaluation(base_value=skill_value),
        base_difficulty=D.MODERATE,
        net_advantage=0,
        roll_difficulty=D.MODERATE,
        die_roll=die_roll,
    )


class TestDifficulty:
    def test_die_sides(self) -> None:
        sides = [get_difficulty_die_sides(d) for d in D]
        assert sides == [4, 6, 8, 10, 12, 20]

    def test_tiers_ordered(self) -> None:
        assert D.TRIVIAL < D.EASY < D.MODERATE < D.HARD < D.FORMIDABLE < D.IMPOSSIBLE

    @pytest.mark.parametrize("name", ["hard", "HARD", " Hard "])
    def test_parse_difficulty(self, name: str) -> None:
        assert parse_difficulty(name) == D.HARD

    def test_parse_unknown_difficulty(self) -> None:
        with pytest.raises(ValueError, match="Unknown difficulty 'tough'"):
            parse_difficulty("tough")

    def test_label(self) -> None:
        assert D.FORMIDABLE.label == "formidable"


class TestEffectiveDifficulty:
    @pytest.mark.parametrize(
        ("base", "advantage", "expected", "extra"),
        [
            (D.MODERATE, 0, D.MODERATE, 0),
            (D.MODERATE, 1, D.EASY, 0),
            (D.MODERATE, 2, D.TRIVIAL, 0),
            (D.MODERATE, 4, D.TRIVIAL, 2),
            (D.MODERATE, -2, D.FORMIDABLE, 0),
            (D.HARD, -3, D.FORMIDABLE, -2),
            (D.TRIVIAL, -1, D.EASY, 0),
            (D.FORMIDABLE, 0, D.FORMIDABLE, 0),
            (D.FORMIDABLE, -1, D.FORMIDABLE, -1),
        ],
    )
    def test_shift_and_overflow(
        self, base: SkillCheckDifficulty, advantage: int, expected: SkillCheckDifficulty, extra: int
    ) -> None:
        effective = get_effective_difficulty(base, advantage)
        assert effective.roll_difficulty == expected
        assert effective.extra_bonus == extra

    @pytest.mark.parametrize("advantage", [-10, -1, 0, 1, 10])
    def test_impossible_ignores_advantage(self, advantage: int) -> None:
        effective = get_effective_difficulty(D.IMPOSSIBLE, advantage)
        assert effective.roll_difficulty == D.IMPOSSIBLE
        assert effective.extra_bonus == 0

    def test_advantage_never_reaches_impossible(self) -> None:
        effective = get_effective_difficulty(D.TRIVIAL, -20)
        assert effective.roll_difficulty == D.FORMIDABLE


class TestScoring:
    def test_roll_of_one_flat_success(self) -> None:
        check = _check(die_roll=1, skill_value=5)
        assert check.success_degree == 0
        assert check.is_success

    def test_roll_of_one_keeps_positive_degree(self) -> None:
        assert _check(die_roll=1, skill_value=0).success_degree == 1

    def test_success_degree(self) -> None:
        check = _check(die_roll=7, skill_value=3)
        assert check.success_degree == 4
        assert check.is_success
        assert check.critical_degree == 0

    def test_failure(self) -> None:
        check = _check(die_roll=2, skill_value=4)
        assert check.success_degree == -2
        assert not check.is_success
        assert check.critical_degree == 0

    @pytest.mark.parametrize(
        ("die_roll", "skill_value", "critical"),
        [(10, 0, 2), (10, 5, 1), (10, 6, 0), (2, 9, -1), (2, 14, -2), (2, 6, 0)],
    )
    def test_critical_degree_truncates(
        self, die_roll: int, skill_value: int, critical: int
    ) -> None:
        assert _check(die_roll, skill_value).critical_degree == critical

    def test_non_finite_degree(self) -> None:
        check = _check(die_roll=2, skill_value=math.inf)
        assert check.success_degree == -math.inf
        assert not check.is_success
        assert check.critical_degree == 0

    def test_huge_integer_degree(self) -> None:
        check = _check(die_roll=2, skill_value=10**400)
        assert check.success_degree == 2 - 10**400
        assert check.critical_degree == -((10**400 - 2) // 5)

    def test_huge_integer_with_float_modification(self) -> None:
        evaluation = StatisticEvaluation(
            base_value=10**400,
            modifications=[
                StatisticModification(display_name="Bonus", display_formula="1/2", amount=0.5)
            ],
        )
        assert evaluation.final_value == math.inf

    def test_die_sides_follow_roll_difficulty(self) -> None:
        check = _check(die_roll=3, skill_value=0).model_copy(
            update={"roll_difficulty": D.TRIVIAL}
        )
        assert check.die_sides == 4


class TestRollSkillCheck:
    def test_basic_check(self, sheet: CharacterSheet) -> None:
        sheet.attributes["STR"].set_progress(1, 0)
        check = sheet.roll_skill_check("str", D.MODERATE)
        assert check is not None
        assert check.stat_id == "STR"
        assert check.die_roll == 3
        assert check.die_sides == 8
        assert check.effective_skill_value == 1
        assert check.evaluation.modifications == []
        assert check.success_degree == 2

    def test_rolls_die_of_effective_tier(self, game_data: GameData) -> None:
        seen: list[int] = []

        def roll(sides: int) -> int:
            seen.append(sides)
            return 1

        sheet = CharacterSheet(game_data, roll)
        roll_skill_check(sheet, "AGI", D.HARD, net_advantage=1)
        assert seen == [8]

    def test_bonus_line(self, sheet: CharacterSheet) -> None:
        check = sheet.roll_skill_check("STR", D.EASY, net_bonus=2)
        assert check is not None
        names = [m.display_name for m in check.evaluation.modifications]
        assert names == ["Bonus"]
        assert check.effective_skill_value == 2
        assert check.net_bonus == 2

    def test_penalty_line(self, sheet: CharacterSheet) -> None:
        check = sheet.roll_skill_check("STR", D.EASY, net_bonus=-1)
        assert check is not None
        assert check.evaluation.modifications[0].display_name == "Penalty"
        assert check.effective_skill_value == -1

    def test_advantage_overflow_line(self, sheet: CharacterSheet) -> None:
        check = sheet.roll_skill_check("STR", D.MODERATE, net_advantage=4)
        assert check is not None
        assert check.roll_difficulty == D.TRIVIAL
        assert check.extra_bonus == 2
        assert check.die_sides == 4
        line = check.evaluation.modifications[-1]
        assert line.display_name == "Advantage"
        assert line.amount == 2
        assert check.effective_skill_value == 2

    def test_disadvantage_overflow_line(self, sheet: CharacterSheet) -> None:
        check = sheet.roll_skill_check("STR", D.HARD, net_advantage=-3)
        assert check is not None
        assert check.roll_difficulty == D.FORMIDABLE
        line = check.evaluation.modifications[-1]
        assert line.display_name == "Disadvantage"
        assert line.amount == -2

    def test_bonus_and_overflow_together(self, sheet: CharacterSheet) -> None:
        check = sheet.roll_skill_check("STR", D.EASY, net_advantage=3, net_bonus=1)
        assert check is not None
        assert [m.amount for m in check.evaluation.modifications] == [1, 2]
        assert check.effective_skill_value == 3

    def test_modifiers_included(self, sheet: CharacterSheet) -> None:
        sheet.add_modifier("STR", "Blessed", "2")
        check = sheet.roll_skill_check("STR", D.EASY, net_bonus=1)
        assert check is not None
        assert [m.display_name for m in check.evaluation.modifications] == ["Blessed", "Bonus"]
        assert check.effective_skill_value == 3

    def test_skill_and_derived_checks(self, sheet: CharacterSheet) -> None:
        sheet.attributes["STR"].set_progress(1, 0)
        athletics = sheet.roll_skill_check("athletics", D.EASY)
        health = sheet.roll_skill_check("health", D.EASY)
        assert athletics is not None and health is not None
        assert athletics.effective_skill_value == 1
        assert health.effective_skill_value == 12

    def test_history(self, sheet: CharacterSheet) -> None:
        first = sheet.roll_skill_check("STR", D.EASY)
        second = sheet.roll_skill_check("AGI", D.HARD)
        assert sheet.check_history == [first, second]

    def test_unknown_stat(self, sheet: CharacterSheet) -> None:
        assert sheet.roll_skill_check("NOPE", D.EASY) is None
        assert sheet.check_history == []
