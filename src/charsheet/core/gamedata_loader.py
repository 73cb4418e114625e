"""
Game data loading for charsheet.

Reads the content data (attribute groups, skills, level-up schedules and
derived statistic formulas) from a YAML or JSON file and validates it
against the GameData schema. JSON is a subset of YAML, so both go through
``yaml.safe_load``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import GameDataError
from .formula.parser import parse_source
from .ir.gamedata import GameData

logger = logging.getLogger(__name__)


def parse_game_data(data: dict[str, Any], source: str = "<data>") -> GameData:
    """Validate raw content data.

    Args:
        data: Mapping loaded from YAML/JSON.
        source: Where the data came from, for error messages.

    Raises:
        GameDataError: If the data does not match the schema.
    """
    try:
        game_data = GameData.model_validate(data)
    except ValidationError as e:
        raise GameDataError(f"Invalid game data in {source}: {e}") from e

    for stat_id in game_data.all_stat_ids():
        if "_" in stat_id:
            # Formula names are letters only
            logger.warning(
                "Statistic id %s in %s contains '_' and cannot be referenced from formulas",
                stat_id,
                source,
            )

    for stat_id, derived in game_data.derived_statistics.items():
        parsed = parse_source(derived.formula)
        for message in parsed.messages:
            logger.warning("Derived statistic %s in %s: %s", stat_id, source, message)
    return game_data


def load_game_data(path: Path) -> GameData:
    """Load game data from a YAML or JSON file.

    Args:
        path: Path to the content data file.

    Returns:
        Validated GameData.

    Raises:
        GameDataError: If the file is missing, unreadable, not valid YAML/JSON
            or does not match the schema.
    """
    if not path.exists():
        raise GameDataError(f"Game data not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except OSError as e:
        raise GameDataError(f"Cannot read game data {path}: {e}") from e
    except yaml.YAMLError as e:
        raise GameDataError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise GameDataError(f"Game data in {path} must be a mapping")

    game_data = parse_game_data(data, str(path))
    logger.debug(
        "Loaded game data %s (game %s, data %s)",
        path,
        game_data.game_version or "?",
        game_data.data_version or "?",
    )
    return game_data
