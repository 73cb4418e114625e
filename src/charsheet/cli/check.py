"""
Skill check command for charsheet CLI.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from charsheet.cli.utils import (
    ManifestOption,
    console,
    err_console,
    format_number,
    load_project,
    load_project_character,
    make_roller,
)
from charsheet.core.ir.checks import SkillCheck, parse_difficulty


def _outcome_text(check: SkillCheck) -> str:
    degree = format_number(check.success_degree)
    if check.is_success:
        text = f"[bold green]Success[/bold green] (degree {degree})"
    else:
        text = f"[bold red]Failure[/bold red] (degree {degree})"
    if check.critical_degree > 0:
        text += f" [green]critical x{check.critical_degree}[/green]"
    elif check.critical_degree < 0:
        text += f" [red]critical x{-check.critical_degree}[/red]"
    return text


def check_command(
    character: Annotated[str, typer.Argument(help="Saved character name")],
    stat_id: Annotated[str, typer.Argument(help="Statistic to check")],
    difficulty: Annotated[
        str,
        typer.Option(
            "--difficulty",
            "-d",
            help="trivial, easy, moderate, hard, formidable or impossible",
        ),
    ] = "moderate",
    advantage: Annotated[
        int,
        typer.Option("--advantage", "-a", help="Net advantage (negative for disadvantage)"),
    ] = 0,
    bonus: Annotated[
        int, typer.Option("--bonus", "-b", help="Net bonus (negative for a penalty)")
    ] = 0,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for the die roll")] = None,
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """
    Roll a skill check for a saved character.

    Examples:
        charsheet check Aria athletics -d hard
        charsheet check Aria STR --advantage 2 --bonus 1
    """
    try:
        base_difficulty = parse_difficulty(difficulty)
    except ValueError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    project = load_project(manifest)
    sheet = load_project_character(project, character, make_roller(project, seed))

    check = sheet.roll_skill_check(stat_id, base_difficulty, advantage, bonus)
    if check is None:
        err_console.print(f"[red]Unknown statistic '{escape(stat_id)}'[/red]")
        raise typer.Exit(code=1)

    stat = sheet.get_statistic(check.stat_id)
    title = stat.display_name if stat is not None else check.stat_id

    table = Table(title=f"{escape(sheet.name)}: {escape(title)} check")
    table.add_column("Line", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Amount", justify="right")
    table.add_row("Base", check.stat_id, format_number(check.evaluation.base_value))
    for line in check.evaluation.modifications:
        table.add_row(
            escape(line.display_name), escape(line.display_formula), format_number(line.amount)
        )
    table.add_row("[bold]Skill value[/bold]", "", format_number(check.effective_skill_value))
    console.print(table)

    difficulty_text = check.roll_difficulty.label
    if check.roll_difficulty != check.base_difficulty:
        difficulty_text += f" (from {check.base_difficulty.label})"
    console.print(f"Difficulty: {difficulty_text}")
    console.print(f"Rolled {check.die_roll} on d{check.die_sides}")
    console.print(_outcome_text(check))
