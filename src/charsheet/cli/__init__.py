"""
charsheet CLI Package.

- formula.py: formula scan/parse/eval commands
- sheet.py: character creation, display and levelling
- check.py: skill checks
- utils.py: Shared utilities
"""

from typing import Annotated

import typer

from charsheet.cli import utils
from charsheet.cli.check import check_command
from charsheet.cli.formula import formula_app
from charsheet.cli.sheet import sheet_app
from charsheet.cli.utils import version_callback

app = typer.Typer(
    help="""charsheet - tabletop RPG character tracker

Formulas:   charsheet formula eval "2d6 + STR"
Characters: charsheet sheet new NAME, sheet show NAME, sheet upgrade NAME STAT
Checks:     charsheet check NAME STAT --difficulty hard
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log at DEBUG level")
    ] = False,
) -> None:
    """charsheet CLI main callback for global options."""
    utils.verbose_logging = verbose


app.add_typer(formula_app, name="formula")
app.add_typer(sheet_app, name="sheet")
app.command(name="check")(check_command)


def main() -> None:
    app()


__all__ = [
    "app",
    "main",
    "formula_app",
    "sheet_app",
    "check_command",
]
