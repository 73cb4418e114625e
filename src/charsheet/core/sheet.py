"""
Character sheet: the statistics of one character built from game data.

The sheet owns its attributes (which own their skills) and derived
statistics, indexes all of them by uppercase id for formula lookup, and
keeps the history of skill checks made with it.
"""

from __future__ import annotations

import logging

from charsheet.core.formula.evaluator import (
    DieRoller,
    EvaluationContext,
    evaluate_formula,
    make_die_roller,
)
from charsheet.core.ir.checks import SkillCheck, SkillCheckDifficulty
from charsheet.core.ir.formula import FormulaEvaluationResult
from charsheet.core.ir.gamedata import GameData
from charsheet.core.ir.statistics import (
    StatChange,
    StatisticEvaluation,
    StatisticModification,
    StatModifier,
)
from charsheet.core.stats import (
    CharacterAttribute,
    CharacterSkill,
    DerivedStat,
    StatListener,
    UpgradableStat,
)

logger = logging.getLogger(__name__)

Statistic = UpgradableStat | DerivedStat


class CharacterSheet:
    """
    A character's identity, statistics and skill check history.

    Args:
        game_data: Content data the statistics are built from.
        roll_die: Die roller used for formulas and checks; defaults to a
            uniform random roller.
    """

    def __init__(self, game_data: GameData, roll_die: DieRoller | None = None) -> None:
        # Identity
        self.name = ""
        self.pronouns = ""
        self.power_id = ""
        self.level = 0
        self.age = 18
        self.wealth_weekly = 0
        self.wealth_remaining = 0

        self.game_data = game_data
        self.roll_die: DieRoller = roll_die or make_die_roller()

        self.attributes: dict[str, CharacterAttribute] = {}
        self.skills: dict[str, CharacterSkill] = {}
        self.derived_stats: dict[str, DerivedStat] = {}
        self.stats: dict[str, Statistic] = {}

        self.modifiers: list[StatModifier] = []
        self.check_history: list[SkillCheck] = []
        self._listeners: list[StatListener] = []

        self._build(game_data)

    def _build(self, game_data: GameData) -> None:
        for group in game_data.attribute_groups:
            for attribute_id, attribute_def in group.attributes.items():
                attribute = CharacterAttribute(
                    attribute_id.upper(),
                    game_data.attribute_level_up_points,
                    attribute_def.display_name,
                    attribute_def.display_description,
                )
                for skill_id, skill_def in attribute_def.skills.items():
                    skill = CharacterSkill(
                        skill_id.upper(),
                        game_data.skill_level_up_points,
                        attribute,
                        skill_def.display_name,
                        skill_def.display_description,
                    )
                    attribute.skills[skill.id] = skill
                    self.skills[skill.id] = skill
                    self.stats[skill.id] = skill
                    skill.add_listener(self._on_stat_change)

                self.attributes[attribute.id] = attribute
                self.stats[attribute.id] = attribute
                attribute.add_listener(self._on_stat_change)

        for stat_id, derived_def in game_data.derived_statistics.items():
            derived = DerivedStat(
                stat_id.upper(),
                derived_def.formula,
                derived_def.display_name,
                derived_def.display_description,
            )
            self.derived_stats[derived.id] = derived
            self.stats[derived.id] = derived

        logger.debug(
            "Built sheet with %d attributes, %d skills, %d derived statistics",
            len(self.attributes),
            len(self.skills),
            len(self.derived_stats),
        )

    # -- Listeners --

    def add_listener(self, listener: StatListener) -> None:
        """Register a callback for every attribute and skill change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StatListener) -> None:
        self._listeners.remove(listener)

    def _on_stat_change(self, change: StatChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # -- Lookup and evaluation --

    def get_statistic(self, stat_id: str) -> Statistic | None:
        """Look up an attribute, skill or derived statistic, ignoring case."""
        return self.stats.get(stat_id.upper())

    def get_upgradable(self, stat_id: str) -> UpgradableStat | None:
        """Look up an attribute or skill, ignoring case."""
        stat = self.get_statistic(stat_id)
        return stat if isinstance(stat, UpgradableStat) else None

    def make_context(self) -> EvaluationContext:
        return EvaluationContext(self, self.roll_die)

    def evaluate_statistic(
        self, stat_id: str, context: EvaluationContext | None = None
    ) -> StatisticEvaluation:
        """Evaluate a statistic: its base value plus any modifiers.

        Unknown ids evaluate to 0 with no modifications.
        """
        stat = self.get_statistic(stat_id)
        if stat is None:
            return StatisticEvaluation(base_value=0)

        context = context or self.make_context()
        if isinstance(stat, DerivedStat):
            base_value = stat.get_value(context.child())
        else:
            base_value = stat.get_value()

        modifications: list[StatisticModification] = []
        for modifier in self.modifiers:
            if modifier.stat_id != stat.id:
                continue
            # A modifier referring to its own statistic sees 0 for it
            with context.evaluating(stat.id):
                result = evaluate_formula(modifier.formula, context.child())
            if result.value is None:
                logger.warning(
                    "Modifier %r on %s does not parse: %r",
                    modifier.label,
                    stat.id,
                    modifier.formula,
                )
                continue
            modifications.append(
                StatisticModification(
                    display_name=modifier.label,
                    display_formula=modifier.formula,
                    amount=result.value,
                )
            )

        return StatisticEvaluation(base_value=base_value, modifications=modifications)

    def evaluate_formula(
        self, formula: str, context: EvaluationContext | None = None
    ) -> FormulaEvaluationResult:
        """Evaluate an arbitrary formula against this character."""
        return evaluate_formula(formula, context or self.make_context())

    # -- Modifiers --

    def add_modifier(self, stat_id: str, label: str, formula: str) -> StatModifier:
        """Attach a situational modifier to a statistic.

        Raises:
            KeyError: If *stat_id* is not a statistic of this character.
        """
        stat = self.get_statistic(stat_id)
        if stat is None:
            raise KeyError(f"Unknown statistic: {stat_id}")
        modifier = StatModifier(stat_id=stat.id, label=label, formula=formula)
        self.modifiers.append(modifier)
        return modifier

    def remove_modifier(self, modifier: StatModifier) -> None:
        self.modifiers.remove(modifier)

    def clear_modifiers(self, stat_id: str | None = None) -> None:
        """Remove all modifiers, or only those on *stat_id*."""
        if stat_id is None:
            self.modifiers.clear()
            return
        key = stat_id.upper()
        self.modifiers = [m for m in self.modifiers if m.stat_id != key]

    # -- Skill checks --

    def roll_skill_check(
        self,
        stat_id: str,
        base_difficulty: SkillCheckDifficulty,
        net_advantage: int = 0,
        net_bonus: int = 0,
    ) -> SkillCheck | None:
        """Roll a skill check and record it; None for an unknown statistic."""
        from charsheet.core.skill_check import roll_skill_check

        return roll_skill_check(self, stat_id, base_difficulty, net_advantage, net_bonus)
