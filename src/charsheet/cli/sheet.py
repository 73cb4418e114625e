"""
Character sheet commands for charsheet CLI.

Commands:
- sheet new: Create and save a character
- sheet list: List saved characters
- sheet show: Show a character's statistics
- sheet upgrade: Add upgrade points to an attribute or skill
- sheet downgrade: Remove upgrade points from an attribute or skill
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from charsheet.cli.utils import (
    ManifestOption,
    character_path,
    console,
    err_console,
    format_number,
    load_project,
    load_project_character,
    load_project_game_data,
    make_roller,
    save_project_character,
)
from charsheet.core.errors import PersistenceError
from charsheet.core.ir.statistics import StatChange, StatField
from charsheet.core.sheet import CharacterSheet

sheet_app = typer.Typer(
    help="Create, inspect and level up characters.",
    no_args_is_help=True,
)


def _progress_cell(sheet: CharacterSheet, stat_id: str) -> str:
    stat = sheet.get_upgradable(stat_id)
    if stat is None:
        return ""
    if stat.is_max_level:
        return "[green]max[/green]"
    return f"{stat.upgrade_points}/{stat.level_up_points[stat.upgrade_level]}"


def _value_cell(sheet: CharacterSheet, stat_id: str) -> str:
    evaluation = sheet.evaluate_statistic(stat_id)
    text = format_number(evaluation.final_value)
    if evaluation.modifications:
        text += f" [dim](base {format_number(evaluation.base_value)})[/dim]"
    return text


@sheet_app.command("new")
def new_command(
    name: Annotated[str, typer.Argument(help="Character name")],
    pronouns: Annotated[str, typer.Option("--pronouns", help="Pronouns")] = "",
    power: Annotated[str, typer.Option("--power", help="Power id")] = "",
    age: Annotated[int, typer.Option("--age", help="Age in years")] = 18,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing character")
    ] = False,
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """Create a character at level 0 and save it."""
    project = load_project(manifest)
    path = character_path(project, name)
    if path.exists() and not force:
        err_console.print(
            f"[red]Character '{escape(name)}' already exists[/red] ({path}); use --force"
        )
        raise typer.Exit(code=1)

    sheet = CharacterSheet(load_project_game_data(project))
    sheet.name = name
    sheet.pronouns = pronouns
    sheet.power_id = power
    sheet.age = age

    saved = save_project_character(project, sheet)
    console.print(f"[green]Created[/green] {escape(name)} -> {saved}")


@sheet_app.command("list")
def list_command(manifest: ManifestOption = "charsheet.toml") -> None:
    """List saved characters."""
    from charsheet.core.persistence import list_characters, load_snapshot

    project = load_project(manifest)
    paths = list_characters(project.characters_dir)
    if not paths:
        console.print("No saved characters.")
        return

    table = Table(title="Characters")
    table.add_column("Name", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("File")
    for path in paths:
        try:
            snapshot = load_snapshot(path)
        except PersistenceError as e:
            err_console.print(f"[yellow]Skipping {path.name}:[/yellow] {escape(str(e))}")
            continue
        table.add_row(escape(snapshot.name), str(snapshot.level), path.name)
    console.print(table)


@sheet_app.command("show")
def show_command(
    name: Annotated[str, typer.Argument(help="Character name")],
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """Show a character's identity, attributes, skills and derived statistics."""
    project = load_project(manifest)
    sheet = load_project_character(project, name, make_roller(project))

    console.print(f"[bold]{escape(sheet.name)}[/bold]", end="")
    if sheet.pronouns:
        console.print(f" ({escape(sheet.pronouns)})", end="")
    console.print(f"  level {sheet.level}, age {sheet.age}")
    if sheet.power_id:
        console.print(f"Power: {escape(sheet.power_id)}")
    console.print(f"Wealth: {sheet.wealth_remaining}/{sheet.wealth_weekly} weekly")

    table = Table(title="Attributes and skills")
    table.add_column("Statistic", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Progress", justify="right")
    for attribute in sheet.attributes.values():
        table.add_row(
            f"[bold]{escape(attribute.display_name)}[/bold]",
            _value_cell(sheet, attribute.id),
            str(attribute.upgrade_level),
            _progress_cell(sheet, attribute.id),
        )
        for skill in attribute.skills.values():
            table.add_row(
                f"  {escape(skill.display_name)}",
                _value_cell(sheet, skill.id),
                str(skill.upgrade_level),
                _progress_cell(sheet, skill.id),
            )
    console.print(table)

    if sheet.derived_stats:
        derived_table = Table(title="Derived statistics")
        derived_table.add_column("Statistic", style="cyan")
        derived_table.add_column("Value", justify="right")
        derived_table.add_column("Formula", style="dim")
        for derived in sheet.derived_stats.values():
            formula = escape(derived.formula)
            if not derived.is_valid:
                formula += " [red](invalid)[/red]"
            derived_table.add_row(
                escape(derived.display_name), _value_cell(sheet, derived.id), formula
            )
        console.print(derived_table)


def _change_points(name: str, stat_id: str, points: int, manifest: str, *, add: bool) -> None:
    project = load_project(manifest)
    sheet = load_project_character(project, name)

    stat = sheet.get_upgradable(stat_id)
    if stat is None:
        err_console.print(f"[red]'{escape(stat_id)}' is not an attribute or skill[/red]")
        raise typer.Exit(code=1)

    changes: list[StatChange] = []
    sheet.add_listener(changes.append)

    applied = 0
    for _ in range(points):
        moved = stat.try_add_upgrade_point() if add else stat.try_remove_upgrade_point()
        if not moved:
            break
        applied += 1

    for change in changes:
        if change.field == StatField.UPGRADE_LEVEL:
            console.print(f"[bold]{change.stat_id}[/bold] level {change.old} -> {change.new}")

    if applied < points:
        limit = "maximum level" if add else "level 0"
        console.print(
            f"[yellow]{stat.id} reached {limit}; applied {applied} of {points} points[/yellow]"
        )

    save_project_character(project, sheet)
    next_text = (
        "max level"
        if stat.points_to_next_level is None
        else f"{stat.points_to_next_level} to next level"
    )
    console.print(
        f"{stat.id}: level {stat.upgrade_level}, {stat.upgrade_points} points ({next_text})"
    )


@sheet_app.command("upgrade")
def upgrade_command(
    name: Annotated[str, typer.Argument(help="Character name")],
    stat_id: Annotated[str, typer.Argument(help="Attribute or skill id")],
    points: Annotated[int, typer.Option("--points", "-p", min=1, help="Points to add")] = 1,
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """Add upgrade points to an attribute or skill."""
    _change_points(name, stat_id, points, manifest, add=True)


@sheet_app.command("downgrade")
def downgrade_command(
    name: Annotated[str, typer.Argument(help="Character name")],
    stat_id: Annotated[str, typer.Argument(help="Attribute or skill id")],
    points: Annotated[int, typer.Option("--points", "-p", min=1, help="Points to remove")] = 1,
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """Remove upgrade points from an attribute or skill."""
    _change_points(name, stat_id, points, manifest, add=False)
