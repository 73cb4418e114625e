"""
Statistic evaluation and change-event types for charsheet IR.

A statistic evaluation is an immutable snapshot: the base value of a
statistic, the modifications applied to it, and the resulting final value.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .formula import Number, saturating_float


class StatisticModification(BaseModel):
    """
    One line in a statistic's breakdown.

    Attributes:
        display_name: Label shown to the user (e.g. "Bonus", "Blessed")
        display_formula: Formula or description the amount came from
        amount: Signed amount added to the base value
    """

    display_name: str
    display_formula: str
    amount: Number

    model_config = ConfigDict(frozen=True)


class StatisticEvaluation(BaseModel):
    """Base value plus modifications, recomputed every time a statistic is read."""

    base_value: Number
    modifications: list[StatisticModification] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def final_value(self) -> Number:
        total = self.base_value
        for modification in self.modifications:
            try:
                total += modification.amount
            except OverflowError:
                total = saturating_float(total) + saturating_float(modification.amount)
        return total

    def with_modifications(self, *extra: StatisticModification) -> StatisticEvaluation:
        """Return a copy with *extra* appended to the modification lines."""
        return StatisticEvaluation(
            base_value=self.base_value,
            modifications=[*self.modifications, *extra],
        )


class StatField(StrEnum):
    """Observable fields of an upgradable statistic."""

    UPGRADE_LEVEL = "upgrade_level"
    UPGRADE_POINTS = "upgrade_points"


class StatChange(BaseModel):
    """A single observed change of an upgradable statistic field."""

    stat_id: str
    field: StatField
    old: int
    new: int

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.stat_id}.{self.field.value}: {self.old} -> {self.new}"


class StatProgress(BaseModel):
    """Persisted upgrade state of one attribute or skill."""

    upgrade_level: int = Field(default=0, ge=0)
    upgrade_points: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class StatModifier(BaseModel):
    """
    A situational modifier applied to one statistic.

    The formula is evaluated every time the statistic is read and its value
    becomes a modification line labelled ``label``.
    """

    stat_id: str
    label: str
    formula: str

    model_config = ConfigDict(frozen=True)
