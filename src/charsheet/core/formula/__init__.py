"""
charsheet formula language.

Scanner, parser and evaluator for the formulas that define derived
statistics and resolve skill checks.

Usage:
    from charsheet.core.formula import EvaluationContext, evaluate_formula

    result = evaluate_formula("2d6 + STR - 1", EvaluationContext(sheet))
    # result.value == dice total + STR - 1
"""

from charsheet.core.formula.evaluator import (
    DieRoller,
    EvaluationContext,
    evaluate_formula,
    evaluate_term,
    fixed_die_roller,
    make_die_roller,
)
from charsheet.core.formula.parser import parse_formula, parse_source
from charsheet.core.formula.scanner import (
    Token,
    TokenKind,
    scan_formula,
    scan_formula_with_diagnostics,
)

__all__ = [
    "DieRoller",
    "EvaluationContext",
    "Token",
    "TokenKind",
    "evaluate_formula",
    "evaluate_term",
    "fixed_die_roller",
    "make_die_roller",
    "parse_formula",
    "parse_source",
    "scan_formula",
    "scan_formula_with_diagnostics",
]
