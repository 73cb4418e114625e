"""
Formula evaluator for charsheet.

Walks a parsed term tree against a character's statistics, rolling dice
through an injectable die roller, and returns a parallel tree of evaluated
terms. Pure apart from consuming randomness; evaluating the same tree twice
may give different values because of dice and because referenced
statistics may have changed in between.
"""

from __future__ import annotations

import logging
import math
import operator
import random
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol

from charsheet.core.errors import make_defect_error
from charsheet.core.formula.parser import parse_source
from charsheet.core.ir.formula import (
    BinaryOp,
    BinaryTerm,
    Diagnostic,
    DieRollTerm,
    EvaluatedBinary,
    EvaluatedDieRoll,
    EvaluatedLiteral,
    EvaluatedStat,
    EvaluatedTerm,
    EvaluatedUnary,
    FormulaEvaluationResult,
    LiteralTerm,
    Number,
    StatTerm,
    Term,
    UnaryOp,
    UnaryTerm,
    saturating_float,
)

if TYPE_CHECKING:
    from charsheet.core.ir.statistics import StatisticEvaluation

logger = logging.getLogger(__name__)

DieRoller = Callable[[int], int]


class StatisticSource(Protocol):
    """What the evaluator needs from a character."""

    def get_statistic(self, stat_id: str) -> object | None: ...

    def evaluate_statistic(
        self, stat_id: str, context: EvaluationContext | None = None
    ) -> StatisticEvaluation: ...


def make_die_roller(seed: int | None = None) -> DieRoller:
    """Build a uniform die roller; a seed makes its rolls reproducible."""
    rng = random.Random(seed)

    def roll_die(sides: int) -> int:
        return rng.randint(1, sides)

    return roll_die


def fixed_die_roller(value: int) -> DieRoller:
    """Build a die roller that always rolls *value*, clamped to the die."""

    def roll_die(sides: int) -> int:
        return max(1, min(value, sides))

    return roll_die


class EvaluationContext:
    """
    Character statistics and die source used while evaluating formulas.

    Also tracks which statistics are currently being evaluated so that a
    formula referring back to itself resolves to 0 instead of recursing.
    """

    def __init__(
        self,
        character: StatisticSource,
        roll_die: DieRoller | None = None,
        *,
        _active: set[str] | None = None,
    ) -> None:
        self.character = character
        self._roll_die = roll_die or make_die_roller()
        self._active: set[str] = _active if _active is not None else set()
        self.messages: list[Diagnostic] = []

    def roll_die(self, sides: int) -> int:
        return self._roll_die(sides)

    def child(self) -> EvaluationContext:
        """A context sharing dice and active statistics, with its own messages."""
        return EvaluationContext(self.character, self._roll_die, _active=self._active)

    def is_evaluating(self, stat_id: str) -> bool:
        return stat_id in self._active

    @contextmanager
    def evaluating(self, stat_id: str) -> Iterator[None]:
        """Mark *stat_id* as being evaluated for the duration of the block."""
        self._active.add(stat_id)
        try:
            yield
        finally:
            self._active.discard(stat_id)


def evaluate_term(term: Term, context: EvaluationContext) -> EvaluatedTerm:
    """Evaluate a term tree.

    Args:
        term: Parsed term tree.
        context: Character statistics and die source.

    Returns:
        The evaluated tree; its root ``value`` is the formula's value.

    Raises:
        FormulaDefectError: If the tree holds an operator or node kind the
            parser never produces.
    """
    if isinstance(term, LiteralTerm):
        return EvaluatedLiteral(term=term, value=term.value)

    if isinstance(term, DieRollTerm):
        return _evaluate_die_roll(term, context)

    if isinstance(term, StatTerm):
        return _evaluate_stat(term, context)

    if isinstance(term, UnaryTerm):
        return _evaluate_unary(term, context)

    if isinstance(term, BinaryTerm):
        return _evaluate_binary(term, context)

    raise make_defect_error(
        f"Unknown term type: {type(term).__name__}",
        str(getattr(term, "source", "")),
        0,
        len(str(getattr(term, "source", ""))),
    )


def _evaluate_die_roll(term: DieRollTerm, context: EvaluationContext) -> EvaluatedDieRoll:
    rolls = [context.roll_die(term.die_sides) for _ in range(term.die_count)]
    logger.debug("Rolled %s: %s", term.source, rolls)
    return EvaluatedDieRoll(term=term, value=sum(rolls), rolls=rolls)


def _evaluate_stat(term: StatTerm, context: EvaluationContext) -> EvaluatedStat:
    stat = context.character.get_statistic(term.stat_id)
    if stat is None:
        context.messages.append(
            Diagnostic(span=term.span, text=f"Unknown statistic {term.stat_id!r}")
        )
        return EvaluatedStat(term=term, value=0, resolved_stat_id=None)

    stat_id: str = stat.id  # type: ignore[attr-defined]
    if context.is_evaluating(stat_id):
        logger.warning("Circular reference to statistic %s", stat_id)
        context.messages.append(
            Diagnostic(span=term.span, text=f"Circular reference to statistic {stat_id!r}")
        )
        return EvaluatedStat(term=term, value=0, resolved_stat_id=None)

    evaluation = context.character.evaluate_statistic(stat_id, context)
    return EvaluatedStat(term=term, value=evaluation.final_value, resolved_stat_id=stat_id)


def _evaluate_unary(term: UnaryTerm, context: EvaluationContext) -> EvaluatedUnary:
    operand = evaluate_term(term.operand, context)
    if term.op == UnaryOp.NEG:
        return EvaluatedUnary(term=term, value=-operand.value, operand=operand)
    raise make_defect_error(
        f"Unknown unary operator: {term.op!r}",
        term.source,
        term.op_span.start_index - term.span.start_index,
        term.op_span.length,
    )


def _evaluate_binary(term: BinaryTerm, context: EvaluationContext) -> EvaluatedBinary:
    left = evaluate_term(term.left, context)
    right = evaluate_term(term.right, context)

    arithmetic = _ARITHMETIC.get(term.op)
    if arithmetic is None:
        raise make_defect_error(
            f"Unknown binary operator: {term.op!r}",
            term.source,
            term.op_span.start_index - term.span.start_index,
            term.op_span.length,
        )
    value: Number
    try:
        value = arithmetic(left.value, right.value)
    except OverflowError:
        # An integer too large for a float met a float
        value = arithmetic(saturating_float(left.value), saturating_float(right.value))
    return EvaluatedBinary(term=term, value=value, left=left, right=right)


def _divide(left: Number, right: Number) -> Number:
    """Real division with IEEE-754 results for a zero divisor."""
    if right == 0:
        dividend = saturating_float(left)
        if dividend == 0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, right)
    return left / right


_ARITHMETIC: dict[BinaryOp, Callable[[Number, Number], Number]] = {
    BinaryOp.ADD: operator.add,
    BinaryOp.SUB: operator.sub,
    BinaryOp.MUL: operator.mul,
    BinaryOp.DIV: _divide,
}


def evaluate_formula(formula: str, context: EvaluationContext) -> FormulaEvaluationResult:
    """Parse (memoized) and evaluate a formula string.

    Returns:
        A result with ``root`` set on success, or ``None`` when the formula
        does not parse. Parse and evaluation diagnostics are in ``messages``.
    """
    parsed = parse_source(formula)
    if parsed.term is None:
        return FormulaEvaluationResult(formula=formula, messages=list(parsed.messages))

    start = len(context.messages)
    root = evaluate_term(parsed.term, context)
    messages = [*parsed.messages, *context.messages[start:]]
    return FormulaEvaluationResult(formula=formula, root=root, messages=messages)
