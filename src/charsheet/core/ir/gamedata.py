"""
Content data schema for charsheet.

Game data is immutable information about the game rules and content:
attribute groups with their attributes and skills, the level-up point
schedules, and the derived statistics with their formulas. Keys may be
written in snake_case or camelCase.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_ID_RE = re.compile(r"[A-Za-z_]+")

_SCHEMA_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _check_ids(ids: dict[str, object], what: str) -> None:
    for stat_id in ids:
        if not _ID_RE.fullmatch(stat_id):
            raise ValueError(
                f"{what} id {stat_id!r} may only contain ASCII letters and underscores"
            )


class SkillDefinition(BaseModel):
    """A skill belonging to an attribute."""

    display_name: str = ""
    display_description: str = ""

    model_config = _SCHEMA_CONFIG


class AttributeDefinition(BaseModel):
    """An attribute and the skills that inherit its level."""

    display_name: str = ""
    display_description: str = ""
    skills: dict[str, SkillDefinition] = Field(default_factory=dict)

    model_config = _SCHEMA_CONFIG

    @field_validator("skills")
    @classmethod
    def _validate_skill_ids(cls, v: dict[str, SkillDefinition]) -> dict[str, SkillDefinition]:
        _check_ids(v, "Skill")
        return v


class AttributeGroupDefinition(BaseModel):
    """A named group of attributes (for display)."""

    display_name: str = ""
    attributes: dict[str, AttributeDefinition] = Field(default_factory=dict)

    model_config = _SCHEMA_CONFIG

    @field_validator("attributes")
    @classmethod
    def _validate_attribute_ids(
        cls, v: dict[str, AttributeDefinition]
    ) -> dict[str, AttributeDefinition]:
        _check_ids(v, "Attribute")
        return v


class DerivedStatisticDefinition(BaseModel):
    """
    A statistic computed from a formula.

    Formulas should be deterministic; dice in a derived statistic are rolled
    again on every read.
    """

    display_name: str = ""
    display_description: str = ""
    formula: str

    model_config = _SCHEMA_CONFIG


class GameData(BaseModel):
    """Root of the content data."""

    game_version: str = ""
    data_version: str = ""
    attribute_level_up_points: list[int] = Field(default_factory=list)
    skill_level_up_points: list[int] = Field(default_factory=list)
    attribute_groups: list[AttributeGroupDefinition] = Field(default_factory=list)
    derived_statistics: dict[str, DerivedStatisticDefinition] = Field(default_factory=dict)

    model_config = _SCHEMA_CONFIG

    @field_validator("attribute_level_up_points", "skill_level_up_points")
    @classmethod
    def _validate_schedule(cls, v: list[int]) -> list[int]:
        if any(points < 1 for points in v):
            raise ValueError("level-up points must be positive integers")
        return v

    @field_validator("derived_statistics")
    @classmethod
    def _validate_derived_ids(
        cls, v: dict[str, DerivedStatisticDefinition]
    ) -> dict[str, DerivedStatisticDefinition]:
        _check_ids(v, "Derived statistic")
        return v

    @model_validator(mode="after")
    def _validate_unique_ids(self) -> GameData:
        seen: set[str] = set()
        for stat_id in self.all_stat_ids():
            key = stat_id.upper()
            if key in seen:
                raise ValueError(f"Duplicate statistic id: {key}")
            seen.add(key)
        return self

    def all_stat_ids(self) -> list[str]:
        """Every attribute, skill and derived statistic id, as written."""
        ids: list[str] = []
        for group in self.attribute_groups:
            for attribute_id, attribute in group.attributes.items():
                ids.append(attribute_id)
                ids.extend(attribute.skills)
        ids.extend(self.derived_statistics)
        return ids
