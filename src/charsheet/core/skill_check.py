"""
Skill check resolution.

A check has a base difficulty tier, shifted by net advantage (more
advantage makes it easier). Advantage or disadvantage past either end of
the tier range becomes an extra bonus. One die of the effective tier's size
is rolled and compared against the checked statistic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from charsheet.core.ir.checks import (
    DIFFICULTY_DIE_SIDES,
    EffectiveDifficulty,
    SkillCheck,
    SkillCheckDifficulty,
)
from charsheet.core.ir.statistics import StatisticModification

if TYPE_CHECKING:
    from charsheet.core.sheet import CharacterSheet

logger = logging.getLogger(__name__)

_LOWEST_TIER = SkillCheckDifficulty.TRIVIAL
# Advantage never moves a check onto or off "impossible"
_HIGHEST_TIER = SkillCheckDifficulty(SkillCheckDifficulty.IMPOSSIBLE - 1)


def get_effective_difficulty(
    base_difficulty: SkillCheckDifficulty, net_advantage: int
) -> EffectiveDifficulty:
    """Compute the difficulty of a check after net advantage is applied.

    Args:
        base_difficulty: Difficulty before advantage/disadvantage.
        net_advantage: Advantage minus disadvantage.

    Returns:
        The tier to roll and any overflow as a signed extra bonus. An
        impossible check is unaffected by advantage.
    """
    if base_difficulty == SkillCheckDifficulty.IMPOSSIBLE:
        return EffectiveDifficulty(roll_difficulty=base_difficulty, extra_bonus=0)

    modified_tier = int(base_difficulty) - net_advantage
    extra_bonus = 0
    if modified_tier < _LOWEST_TIER:
        extra_bonus = _LOWEST_TIER - modified_tier
        modified_tier = _LOWEST_TIER
    elif modified_tier > _HIGHEST_TIER:
        extra_bonus = _HIGHEST_TIER - modified_tier
        modified_tier = _HIGHEST_TIER

    return EffectiveDifficulty(
        roll_difficulty=SkillCheckDifficulty(modified_tier), extra_bonus=extra_bonus
    )


def get_difficulty_die_sides(difficulty: SkillCheckDifficulty) -> int:
    """Number of sides of the die rolled at *difficulty*."""
    return DIFFICULTY_DIE_SIDES[difficulty]


def roll_skill_check(
    sheet: CharacterSheet,
    stat_id: str,
    base_difficulty: SkillCheckDifficulty,
    net_advantage: int = 0,
    net_bonus: int = 0,
) -> SkillCheck | None:
    """Roll a skill check against one of the sheet's statistics.

    The net bonus and any advantage overflow are added to the statistic's
    evaluation as modification lines. The check is appended to the sheet's
    history.

    Returns:
        The recorded check, or None if *stat_id* is not a known statistic.
    """
    stat = sheet.get_statistic(stat_id)
    if stat is None:
        logger.info("Skill check against unknown statistic %r", stat_id)
        return None

    context = sheet.make_context()
    evaluation = sheet.evaluate_statistic(stat.id, context)
    effective = get_effective_difficulty(base_difficulty, net_advantage)

    extra_lines: list[StatisticModification] = []
    if net_bonus:
        extra_lines.append(
            StatisticModification(
                display_name="Bonus" if net_bonus > 0 else "Penalty",
                display_formula=f"{net_bonus:+d} net bonus",
                amount=net_bonus,
            )
        )
    if effective.extra_bonus:
        extra_lines.append(
            StatisticModification(
                display_name="Advantage" if effective.extra_bonus > 0 else "Disadvantage",
                display_formula=(
                    f"{net_advantage:+d} advantage past {effective.roll_difficulty.label}"
                ),
                amount=effective.extra_bonus,
            )
        )
    if extra_lines:
        evaluation = evaluation.with_modifications(*extra_lines)

    die_roll = context.roll_die(get_difficulty_die_sides(effective.roll_difficulty))

    check = SkillCheck(
        stat_id=stat.id,
        evaluation=evaluation,
        base_difficulty=base_difficulty,
        net_advantage=net_advantage,
        net_bonus=net_bonus,
        roll_difficulty=effective.roll_difficulty,
        extra_bonus=effective.extra_bonus,
        die_roll=die_roll,
    )
    sheet.check_history.append(check)
    logger.debug(
        "Skill check %s: rolled %d on d%d against %s (degree %s)",
        stat.id,
        die_roll,
        check.die_sides,
        check.effective_skill_value,
        check.success_degree,
    )
    return check
