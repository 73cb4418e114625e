"""
Character statistics.

Attributes and skills are leveled by spending upgrade points against a
fixed schedule. A skill's value is its own level plus its parent
attribute's level. Derived statistics are formulas evaluated against the
character every time they are read.

Changes to upgrade level and points are reported synchronously to the
registered listeners, one event per changed field.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Sequence

from charsheet.core.formula.evaluator import EvaluationContext, evaluate_term
from charsheet.core.formula.parser import parse_source
from charsheet.core.ir.formula import Diagnostic, EvaluatedTerm, Number, Term, zero_term
from charsheet.core.ir.statistics import StatChange, StatField

logger = logging.getLogger(__name__)

StatListener = Callable[[StatChange], None]


class UpgradableStat:
    """
    A stat that can be upgraded by adding (and removing) upgrade points.

    ``level_up_points[n]`` is the number of points needed to advance past
    level ``n``; its length is the maximum level.
    """

    def __init__(
        self,
        stat_id: str,
        level_up_points: Sequence[int],
        display_name: str = "",
        display_description: str = "",
    ) -> None:
        self.id = stat_id
        self.display_name = display_name or stat_id
        self.display_description = display_description
        self.level_up_points: tuple[int, ...] = tuple(level_up_points)
        self._upgrade_level = 0
        self._upgrade_points = 0
        self._listeners: list[StatListener] = []

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.id!r}, level={self._upgrade_level}, "
            f"points={self._upgrade_points})"
        )

    @property
    def upgrade_level(self) -> int:
        """How many levels this stat has been upgraded."""
        return self._upgrade_level

    @property
    def upgrade_points(self) -> int:
        """Points added towards the next level. Resets to zero on level up."""
        return self._upgrade_points

    @property
    def max_level(self) -> int:
        return len(self.level_up_points)

    @property
    def is_max_level(self) -> bool:
        return self._upgrade_level >= self.max_level

    @property
    def points_to_next_level(self) -> int | None:
        """Points still needed for the next level, or None at max level."""
        if self.is_max_level:
            return None
        return self.level_up_points[self._upgrade_level] - self._upgrade_points

    def get_value(self) -> int:
        return self._upgrade_level

    # -- Listeners --

    def add_listener(self, listener: StatListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StatListener) -> None:
        self._listeners.remove(listener)

    # -- Mutation --

    def try_add_upgrade_point(self) -> bool:
        """Add one upgrade point, levelling up when the threshold is reached.

        Returns:
            False if the stat is already at its maximum level.
        """
        if self.is_max_level:
            return False
        level = self._upgrade_level
        points = self._upgrade_points + 1
        if points >= self.level_up_points[level]:
            level += 1
            points = 0
        self._apply(level, points)
        return True

    def try_remove_upgrade_point(self) -> bool:
        """Remove one upgrade point, borrowing from the level below when empty.

        Returns:
            False if the stat is at level 0 with no points.
        """
        if self._upgrade_points > 0:
            self._apply(self._upgrade_level, self._upgrade_points - 1)
            return True
        if self._upgrade_level > 0:
            level = self._upgrade_level - 1
            self._apply(level, self.level_up_points[level] - 1)
            return True
        return False

    def set_progress(self, upgrade_level: int, upgrade_points: int) -> None:
        """Set level and points directly (used when loading a saved character).

        Raises:
            ValueError: If the pair is not a reachable state for this schedule.
        """
        if not 0 <= upgrade_level <= self.max_level:
            raise ValueError(
                f"{self.id}: upgrade level {upgrade_level} outside 0..{self.max_level}"
            )
        if upgrade_level == self.max_level:
            if upgrade_points != 0:
                raise ValueError(f"{self.id}: points must be 0 at max level")
        elif not 0 <= upgrade_points < self.level_up_points[upgrade_level]:
            raise ValueError(
                f"{self.id}: upgrade points {upgrade_points} outside "
                f"0..{self.level_up_points[upgrade_level] - 1} at level {upgrade_level}"
            )
        self._apply(upgrade_level, upgrade_points)

    def _apply(self, level: int, points: int) -> None:
        old_level, old_points = self._upgrade_level, self._upgrade_points
        self._upgrade_level = level
        self._upgrade_points = points
        if level != old_level:
            self._notify(StatField.UPGRADE_LEVEL, old_level, level)
        if points != old_points:
            self._notify(StatField.UPGRADE_POINTS, old_points, points)

    def _notify(self, field: StatField, old: int, new: int) -> None:
        change = StatChange(stat_id=self.id, field=field, old=old, new=new)
        logger.debug("Stat changed: %s", change)
        for listener in list(self._listeners):
            listener(change)


class CharacterAttribute(UpgradableStat):
    """An attribute; owns the skills that inherit its level."""

    def __init__(
        self,
        stat_id: str,
        level_up_points: Sequence[int],
        display_name: str = "",
        display_description: str = "",
    ) -> None:
        super().__init__(stat_id, level_up_points, display_name, display_description)
        self.skills: dict[str, CharacterSkill] = {}


class CharacterSkill(UpgradableStat):
    """A skill whose value is its own level plus its parent attribute's level."""

    def __init__(
        self,
        stat_id: str,
        level_up_points: Sequence[int],
        parent_attribute: CharacterAttribute,
        display_name: str = "",
        display_description: str = "",
    ) -> None:
        super().__init__(stat_id, level_up_points, display_name, display_description)
        self.attribute_id = parent_attribute.id
        # The attribute owns the skill, not the other way round
        self._parent = weakref.ref(parent_attribute)

    @property
    def parent_attribute(self) -> CharacterAttribute:
        parent = self._parent()
        if parent is None:
            raise ReferenceError(f"Attribute {self.attribute_id} of skill {self.id} is gone")
        return parent

    def get_value(self) -> int:
        return super().get_value() + self.parent_attribute.get_value()


class DerivedStat:
    """
    A statistic computed from a formula.

    The formula is parsed once; its tree is evaluated against the current
    character on every read. A formula that does not parse evaluates to 0.
    """

    def __init__(
        self,
        stat_id: str,
        formula: str,
        display_name: str = "",
        display_description: str = "",
    ) -> None:
        self.id = stat_id
        self.display_name = display_name or stat_id
        self.display_description = display_description
        self.formula = formula

        parsed = parse_source(formula)
        self.messages: list[Diagnostic] = list(parsed.messages)
        # False when the formula failed to parse and 0 is used instead
        self.is_valid = parsed.term is not None
        if parsed.term is None:
            logger.warning(
                "Formula for %s does not parse, using 0: %r (%s)",
                stat_id,
                formula,
                "; ".join(str(m) for m in parsed.messages),
            )
            self.term: Term = zero_term()
        else:
            self.term = parsed.term

    def __repr__(self) -> str:
        return f"DerivedStat({self.id!r}, {self.formula!r})"

    def evaluate(self, context: EvaluationContext) -> EvaluatedTerm:
        with context.evaluating(self.id):
            return evaluate_term(self.term, context)

    def get_value(self, context: EvaluationContext) -> Number:
        return self.evaluate(context).value
