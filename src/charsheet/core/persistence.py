"""
Character persistence for charsheet.

Only the mutable state of a character is saved: identity fields and the
upgrade progress of each attribute and skill. Derived statistics are
recomputed from the content data, so a saved character keeps working when
the content changes. Characters are stored as JSON, one file each.

Default location: {project_root}/.charsheet/characters/{name}.json
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import PersistenceError
from .formula.evaluator import DieRoller
from .ir.gamedata import GameData
from .ir.statistics import StatProgress
from .sheet import CharacterSheet
from .stats import UpgradableStat

logger = logging.getLogger(__name__)

CHARACTERS_DIR = ".charsheet/characters"
FORMAT_VERSION = 1


class CharacterSnapshot(BaseModel):
    """Serializable state of one character."""

    format_version: int = FORMAT_VERSION
    name: str = ""
    pronouns: str = ""
    power_id: str = ""
    level: int = 0
    age: int = 18
    wealth_weekly: int = 0
    wealth_remaining: int = 0
    attributes: dict[str, StatProgress] = Field(default_factory=dict)
    skills: dict[str, StatProgress] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Path helpers
# =============================================================================


def character_file_name(name: str) -> str:
    """File name for a character: lowercase, non-alphanumerics as ``_``."""
    slug = re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")
    return f"{slug or 'character'}.json"


def get_character_path(directory: Path, name: str) -> Path:
    return directory / character_file_name(name)


def list_characters(directory: Path) -> list[Path]:
    """Saved character files in *directory*, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.json"))


# =============================================================================
# Snapshots
# =============================================================================


def _progress(stats: Mapping[str, UpgradableStat]) -> dict[str, StatProgress]:
    return {
        stat_id: StatProgress(upgrade_level=stat.upgrade_level, upgrade_points=stat.upgrade_points)
        for stat_id, stat in stats.items()
    }


def snapshot_character(sheet: CharacterSheet) -> CharacterSnapshot:
    """Capture the mutable state of *sheet*."""
    return CharacterSnapshot(
        name=sheet.name,
        pronouns=sheet.pronouns,
        power_id=sheet.power_id,
        level=sheet.level,
        age=sheet.age,
        wealth_weekly=sheet.wealth_weekly,
        wealth_remaining=sheet.wealth_remaining,
        attributes=_progress(sheet.attributes),
        skills=_progress(sheet.skills),
    )


def _restore_progress(
    stats: Mapping[str, UpgradableStat], saved: dict[str, StatProgress], kind: str
) -> None:
    for stat_id, progress in saved.items():
        stat = stats.get(stat_id.upper())
        if stat is None:
            logger.info("Skipping saved %s %s: not in the current game data", kind, stat_id)
            continue
        try:
            stat.set_progress(progress.upgrade_level, progress.upgrade_points)
        except ValueError as e:
            logger.warning("Skipping saved %s %s: %s", kind, stat_id, e)


def apply_snapshot(sheet: CharacterSheet, snapshot: CharacterSnapshot) -> CharacterSheet:
    """Restore *snapshot* onto *sheet*.

    Attributes are restored before skills. Saved ids that the current game
    data does not define are skipped, as is progress the stat's level-up
    schedule cannot reach.
    """
    sheet.name = snapshot.name
    sheet.pronouns = snapshot.pronouns
    sheet.power_id = snapshot.power_id
    sheet.level = snapshot.level
    sheet.age = snapshot.age
    sheet.wealth_weekly = snapshot.wealth_weekly
    sheet.wealth_remaining = snapshot.wealth_remaining

    _restore_progress(sheet.attributes, snapshot.attributes, "attribute")
    _restore_progress(sheet.skills, snapshot.skills, "skill")
    return sheet


# =============================================================================
# Files
# =============================================================================


def save_character(path: Path, sheet: CharacterSheet) -> Path:
    """Save *sheet* as JSON at *path*, creating parent directories.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    snapshot = snapshot_character(sheet)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(snapshot.model_dump(mode="json"), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as e:
        raise PersistenceError(f"Cannot write character {path}: {e}") from e

    logger.debug("Saved character %r to %s", sheet.name, path)
    return path


def load_snapshot(path: Path) -> CharacterSnapshot:
    """Read a saved character without building a sheet.

    Raises:
        PersistenceError: If the file is missing, not JSON or malformed.
    """
    if not path.exists():
        raise PersistenceError(f"Character not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PersistenceError(f"Cannot read character {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Invalid JSON in {path}: {e}") from e

    try:
        snapshot = CharacterSnapshot.model_validate(data)
    except ValidationError as e:
        raise PersistenceError(f"Invalid character file {path}: {e}") from e

    if snapshot.format_version > FORMAT_VERSION:
        raise PersistenceError(
            f"Character {path} has format version {snapshot.format_version}; "
            f"this version of charsheet reads up to {FORMAT_VERSION}"
        )
    return snapshot


def load_character(
    path: Path, game_data: GameData, roll_die: DieRoller | None = None
) -> CharacterSheet:
    """Load a saved character and build its sheet from *game_data*.

    Raises:
        PersistenceError: If the file cannot be read or is malformed.
    """
    snapshot = load_snapshot(path)
    sheet = CharacterSheet(game_data, roll_die)
    return apply_snapshot(sheet, snapshot)
