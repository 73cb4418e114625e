"""
charsheet - tabletop RPG character tracker.

Characters are built from content data: attributes and skills levelled
with upgrade points, and derived statistics defined by formulas in a
small dice-aware arithmetic language. Skill checks roll a die sized by
difficulty against a statistic.
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.errors import (
    CharsheetError,
    FormulaDefectError,
    GameDataError,
    ManifestError,
    PersistenceError,
)
from .core.sheet import CharacterSheet

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "CharacterSheet",
    "CharsheetError",
    "FormulaDefectError",
    "GameDataError",
    "ManifestError",
    "PersistenceError",
]
