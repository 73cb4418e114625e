"""
Formula commands for charsheet CLI.

Commands:
- formula scan: Show the tokens of a formula
- formula parse: Show the parsed tree of a formula
- formula eval: Evaluate a formula, optionally against a saved character
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from charsheet.cli.utils import (
    ManifestOption,
    console,
    format_number,
    load_project,
    load_project_character,
    make_roller,
    print_diagnostics,
)
from charsheet.core.ir.formula import (
    BinaryTerm,
    DieRollTerm,
    EvaluatedBinary,
    EvaluatedDieRoll,
    EvaluatedStat,
    EvaluatedTerm,
    EvaluatedUnary,
    Term,
    UnaryTerm,
)

formula_app = typer.Typer(
    help="Scan, parse and evaluate formulas.",
    no_args_is_help=True,
)


def _term_label(term: Term) -> str:
    span = f"[dim]@{term.span.start_index}+{term.span.length}[/dim]"
    if isinstance(term, BinaryTerm):
        return f"[bold]{term.operator_source}[/bold] {span}"
    if isinstance(term, UnaryTerm):
        return f"[bold]{term.operator_source}[/bold] (negate) {span}"
    if isinstance(term, DieRollTerm):
        return f"[magenta]{escape(term.source)}[/magenta] {span}"
    return f"{escape(term.source)} {span}"


def _build_term_tree(term: Term, tree: Tree) -> None:
    node = tree.add(_term_label(term))
    if isinstance(term, BinaryTerm):
        _build_term_tree(term.left, node)
        _build_term_tree(term.right, node)
    elif isinstance(term, UnaryTerm):
        _build_term_tree(term.operand, node)


def _evaluated_label(node: EvaluatedTerm) -> str:
    value = f"[cyan]= {format_number(node.value)}[/cyan]"
    if isinstance(node, EvaluatedDieRoll):
        rolls = ", ".join(str(r) for r in node.rolls)
        return f"[magenta]{escape(node.term.source)}[/magenta] [{rolls}] {value}"
    if isinstance(node, EvaluatedStat):
        if node.resolved:
            return f"{escape(node.term.source)} ({node.resolved_stat_id}) {value}"
        return f"{escape(node.term.source)} [yellow](unresolved)[/yellow] {value}"
    if isinstance(node, EvaluatedBinary | EvaluatedUnary):
        return f"[bold]{node.term.operator_source}[/bold] {value}"
    return f"{escape(node.term.source)} {value}"


def _build_evaluated_tree(node: EvaluatedTerm, tree: Tree) -> None:
    branch = tree.add(_evaluated_label(node))
    if isinstance(node, EvaluatedBinary):
        _build_evaluated_tree(node.left, branch)
        _build_evaluated_tree(node.right, branch)
    elif isinstance(node, EvaluatedUnary):
        _build_evaluated_tree(node.operand, branch)


@formula_app.command("scan")
def scan_command(
    source: Annotated[str, typer.Argument(help="Formula source text")],
) -> None:
    """Show the tokens of a formula."""
    from charsheet.core.formula.scanner import scan_formula_with_diagnostics

    tokens, messages = scan_formula_with_diagnostics(source)

    table = Table(title=f"Tokens of {escape(repr(source))}")
    table.add_column("Kind", style="cyan")
    table.add_column("Text")
    table.add_column("Start", justify="right")
    table.add_column("Length", justify="right")
    for token in tokens:
        table.add_row(
            token.kind.value,
            token.text,
            str(token.span.start_index),
            str(token.span.length),
        )
    console.print(table)
    print_diagnostics(source, messages)


@formula_app.command("parse")
def parse_command(
    source: Annotated[str, typer.Argument(help="Formula source text")],
) -> None:
    """Show the parsed tree of a formula.

    Exits with code 1 if the formula does not parse.
    """
    from charsheet.core.formula.parser import parse_source

    result = parse_source(source)
    if result.term is not None:
        tree = Tree(f"[bold]{escape(source)}[/bold]  [dim]{result.term}[/dim]")
        _build_term_tree(result.term, tree)
        console.print(tree)
    print_diagnostics(source, result.messages)

    if not result.success:
        raise typer.Exit(code=1)


@formula_app.command("eval")
def eval_command(
    source: Annotated[str, typer.Argument(help="Formula source text")],
    character: Annotated[
        str | None,
        typer.Option("--character", "-c", help="Evaluate against this saved character"),
    ] = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for dice rolls")] = None,
    show_tree: Annotated[
        bool, typer.Option("--tree/--no-tree", help="Show the evaluated tree")
    ] = True,
    manifest: ManifestOption = "charsheet.toml",
) -> None:
    """
    Evaluate a formula.

    Without --character, statistic references are unresolved and count as 0.

    Examples:
        charsheet formula eval "2d6 + 3" --seed 7
        charsheet formula eval "STR * 2 + 1d4" -c Aria
    """
    from charsheet.core.formula.evaluator import EvaluationContext, evaluate_formula
    from charsheet.core.ir.gamedata import GameData
    from charsheet.core.sheet import CharacterSheet

    project = load_project(manifest)
    roll_die = make_roller(project, seed)

    if character:
        sheet = load_project_character(project, character, roll_die)
    else:
        sheet = CharacterSheet(GameData(), roll_die)

    result = evaluate_formula(source, EvaluationContext(sheet, roll_die))
    if result.root is not None:
        if show_tree:
            tree = Tree(f"[bold]{escape(source)}[/bold]")
            _build_evaluated_tree(result.root, tree)
            console.print(tree)
        console.print(f"[bold green]{format_number(result.root.value)}[/bold green]")
    print_diagnostics(source, result.messages)

    if not result.success:
        raise typer.Exit(code=1)
