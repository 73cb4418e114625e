"""
charsheet CLI utilities.

Shared helpers for loading the project, its game data and saved
characters, and for printing formula diagnostics.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from charsheet._version import get_version
from charsheet.core.errors import GameDataError, ManifestError, PersistenceError
from charsheet.core.formula.evaluator import DieRoller, make_die_roller
from charsheet.core.ir.formula import Diagnostic, DiagnosticLevel, saturating_float
from charsheet.core.ir.gamedata import GameData
from charsheet.core.manifest import ProjectManifest, find_manifest
from charsheet.core.sheet import CharacterSheet

ManifestOption = Annotated[str, typer.Option("--manifest", "-m", help="Project manifest")]

console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Set by the root callback
verbose_logging = False


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"charsheet version {get_version()}")
        typer.echo(f"  Python:    {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:  {platform.system()} {platform.release()}")
        raise typer.Exit()


def configure_logging(level: int) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def load_project(manifest: str) -> ProjectManifest:
    """Load the manifest (or defaults) and configure logging from it."""
    try:
        project = find_manifest(Path(manifest).resolve())
    except ManifestError as e:
        err_console.print(f"[red]Error loading manifest:[/red] {e}")
        raise typer.Exit(code=1)

    configure_logging(logging.DEBUG if verbose_logging else project.log_level)
    return project


def load_project_game_data(project: ProjectManifest) -> GameData:
    from charsheet.core.gamedata_loader import load_game_data

    try:
        return load_game_data(project.game_data_path)
    except GameDataError as e:
        err_console.print(f"[red]Error loading game data:[/red] {e}")
        raise typer.Exit(code=1)


def make_roller(project: ProjectManifest, seed: int | None = None) -> DieRoller:
    """Die roller seeded by ``--seed``, else by the manifest's [dice] seed."""
    return make_die_roller(seed if seed is not None else project.dice.seed)


def character_path(project: ProjectManifest, name: str) -> Path:
    from charsheet.core.persistence import get_character_path

    return get_character_path(project.characters_dir, name)


def load_project_character(
    project: ProjectManifest,
    name: str,
    roll_die: DieRoller | None = None,
) -> CharacterSheet:
    """Load a saved character of the project, exiting with an error if missing."""
    from charsheet.core.persistence import load_character

    game_data = load_project_game_data(project)
    try:
        return load_character(character_path(project, name), game_data, roll_die)
    except PersistenceError as e:
        err_console.print(f"[red]Error loading character:[/red] {e}")
        raise typer.Exit(code=1)


def save_project_character(project: ProjectManifest, sheet: CharacterSheet) -> Path:
    from charsheet.core.persistence import save_character

    try:
        return save_character(character_path(project, sheet.name), sheet)
    except PersistenceError as e:
        err_console.print(f"[red]Error saving character:[/red] {e}")
        raise typer.Exit(code=1)


def print_diagnostics(formula: str, messages: list[Diagnostic]) -> None:
    """Print each diagnostic with the formula and a marker under its span."""
    for message in messages:
        color = "red" if message.level == DiagnosticLevel.USER_ERROR else "yellow"
        marker = " " * message.span.start_index + "^" * max(1, message.span.length)
        console.print(f"[{color}]{message.level.value}[/{color}]: {escape(message.text)}")
        console.print(f"    {formula}", markup=False, highlight=False)
        console.print(f"    {marker}", markup=False, highlight=False)


def format_number(value: float | int) -> str:
    """Integers as-is, other floats with up to 4 decimals."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return f"{value:.4g}" if abs(value) >= 1e6 else f"{round(value, 4)}"
    try:
        return str(value)
    except ValueError:
        # More digits than the interpreter will print
        return str(saturating_float(value))
