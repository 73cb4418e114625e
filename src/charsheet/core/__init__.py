"""Core charsheet functionality: IR, formulas, statistics, skill checks, loading and saving."""

from . import ir
from .errors import (
    CharsheetError,
    ErrorContext,
    FormulaDefectError,
    GameDataError,
    ManifestError,
    PersistenceError,
)
from .gamedata_loader import load_game_data
from .manifest import ProjectManifest, find_manifest, load_manifest
from .persistence import (
    CharacterSnapshot,
    apply_snapshot,
    load_character,
    save_character,
    snapshot_character,
)
from .sheet import CharacterSheet
from .skill_check import get_difficulty_die_sides, get_effective_difficulty, roll_skill_check
from .stats import CharacterAttribute, CharacterSkill, DerivedStat, UpgradableStat

__all__ = [
    "ir",
    # Errors
    "CharsheetError",
    "ErrorContext",
    "FormulaDefectError",
    "GameDataError",
    "ManifestError",
    "PersistenceError",
    # Statistics
    "CharacterAttribute",
    "CharacterSheet",
    "CharacterSkill",
    "DerivedStat",
    "UpgradableStat",
    # Skill checks
    "get_difficulty_die_sides",
    "get_effective_difficulty",
    "roll_skill_check",
    # Loading and saving
    "CharacterSnapshot",
    "ProjectManifest",
    "apply_snapshot",
    "find_manifest",
    "load_character",
    "load_game_data",
    "load_manifest",
    "save_character",
    "snapshot_character",
]
