import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ManifestError

MANIFEST_FILE = "charsheet.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ContentConfig:
    """Where the game data lives, relative to the project root."""

    game_data: str = "gamedata.yaml"


@dataclass
class CharactersConfig:
    """Where saved characters are stored, relative to the project root."""

    directory: str = ".charsheet/characters"


@dataclass
class DiceConfig:
    """Die roller configuration.

    Set a seed to make every roll reproducible:

        [dice]
        seed = 1234
    """

    seed: int | None = None


@dataclass
class LoggingConfig:
    level: str = "WARNING"  # DEBUG | INFO | WARNING | ERROR | CRITICAL


@dataclass
class ProjectManifest:
    name: str
    root: Path
    content: ContentConfig = field(default_factory=ContentConfig)
    characters: CharactersConfig = field(default_factory=CharactersConfig)
    dice: DiceConfig = field(default_factory=DiceConfig)
    log: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def game_data_path(self) -> Path:
        return self.root / self.content.game_data

    @property
    def characters_dir(self) -> Path:
        return self.root / self.characters.directory

    @property
    def log_level(self) -> int:
        return logging.getLevelName(self.log.level)  # type: ignore[no-any-return]


def default_manifest(root: Path) -> ProjectManifest:
    """Manifest used when a project has no charsheet.toml."""
    return ProjectManifest(name=root.resolve().name, root=root)


def load_manifest(path: Path) -> ProjectManifest:
    """Load charsheet.toml.

    Missing sections and keys take their defaults. Relative paths in the
    manifest are resolved against the directory holding it.

    Raises:
        ManifestError: If the file cannot be read, is not valid TOML or has
            values of the wrong type.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e

    project = data.get("project", {})
    content_data = data.get("content", {})
    characters_data = data.get("characters", {})
    dice_data = data.get("dice", {})
    logging_data = data.get("logging", {})

    root = path.parent

    seed = dice_data.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ManifestError(f"{path}: [dice] seed must be an integer, got {seed!r}")

    level = str(logging_data.get("level", "WARNING")).upper()
    if level not in _LOG_LEVELS:
        raise ManifestError(
            f"{path}: [logging] level must be one of {', '.join(_LOG_LEVELS)}, got {level!r}"
        )

    return ProjectManifest(
        name=project.get("name", root.resolve().name),
        root=root,
        content=ContentConfig(
            game_data=content_data.get("game_data", "gamedata.yaml"),
        ),
        characters=CharactersConfig(
            directory=characters_data.get("directory", ".charsheet/characters"),
        ),
        dice=DiceConfig(seed=seed),
        log=LoggingConfig(level=level),
    )


def find_manifest(path: Path) -> ProjectManifest:
    """Load the manifest at *path*, or the defaults if it does not exist."""
    if path.exists():
        return load_manifest(path)
    return default_manifest(path.parent)
