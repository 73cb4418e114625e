"""
Skill check types for charsheet IR.

A skill check rolls one die whose size is set by the check's effective
difficulty tier and compares it against the checked statistic.
"""

from __future__ import annotations

import math
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from .formula import Number
from .statistics import StatisticEvaluation


class SkillCheckDifficulty(IntEnum):
    """Difficulty tiers, ordered from easiest to hardest."""

    TRIVIAL = 0
    EASY = 1
    MODERATE = 2
    HARD = 3
    FORMIDABLE = 4
    IMPOSSIBLE = 5

    @property
    def label(self) -> str:
        return self.name.lower()


DIFFICULTY_DIE_SIDES: dict[SkillCheckDifficulty, int] = {
    SkillCheckDifficulty.TRIVIAL: 4,
    SkillCheckDifficulty.EASY: 6,
    SkillCheckDifficulty.MODERATE: 8,
    SkillCheckDifficulty.HARD: 10,
    SkillCheckDifficulty.FORMIDABLE: 12,
    SkillCheckDifficulty.IMPOSSIBLE: 20,
}

# Points of success degree per critical tier
CRITICAL_STEP = 5


def parse_difficulty(name: str) -> SkillCheckDifficulty:
    """Look up a difficulty tier by name, ignoring case.

    Raises:
        ValueError: If *name* is not a tier name.
    """
    try:
        return SkillCheckDifficulty[name.strip().upper()]
    except KeyError:
        choices = ", ".join(d.label for d in SkillCheckDifficulty)
        raise ValueError(f"Unknown difficulty {name!r} (expected one of: {choices})") from None


class EffectiveDifficulty(BaseModel):
    """
    Difficulty after advantage/disadvantage has been applied.

    Attributes:
        roll_difficulty: Tier whose die is rolled
        extra_bonus: Advantage or disadvantage left over past the ends of the
            tier range; positive favours the roller
    """

    roll_difficulty: SkillCheckDifficulty
    extra_bonus: int = 0

    model_config = ConfigDict(frozen=True)


class SkillCheck(BaseModel):
    """
    Record of a skill check that was made.

    ``evaluation`` is the checked statistic's evaluation at the time of the
    roll, including modification lines for the net bonus and any advantage
    overflow, so its final value is the effective skill value.
    """

    stat_id: str
    evaluation: StatisticEvaluation
    base_difficulty: SkillCheckDifficulty
    net_advantage: int = Field(description="Advantage minus disadvantage")
    net_bonus: int = Field(default=0, description="Bonus minus penalty")
    roll_difficulty: SkillCheckDifficulty
    extra_bonus: int = 0
    die_roll: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)

    @property
    def die_sides(self) -> int:
        return DIFFICULTY_DIE_SIDES[self.roll_difficulty]

    @property
    def effective_skill_value(self) -> Number:
        return self.evaluation.final_value

    @property
    def success_degree(self) -> Number:
        """
        Degree of success (>= 0) or failure (< 0).

        Rolling a 1 is always at least a flat success (degree zero).
        """
        degree = self.die_roll - self.effective_skill_value
        if self.die_roll == 1 and degree < 0:
            return 0
        return degree

    @property
    def critical_degree(self) -> int:
        """
        Level of critical success/failure.

        A standard success/failure is 0, a double critical success is 2 and a
        double critical failure is -2. Non-finite degrees count as 0.
        """
        degree = self.success_degree
        if isinstance(degree, int):
            steps = abs(degree) // CRITICAL_STEP
            return steps if degree >= 0 else -steps
        if not math.isfinite(degree):
            return 0
        return math.trunc(degree / CRITICAL_STEP)

    @property
    def is_success(self) -> bool:
        return self.success_degree >= 0
