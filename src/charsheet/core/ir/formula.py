"""
Formula expression types for charsheet IR.

This module defines the typed tree produced by the formula parser and the
parallel tree produced by the evaluator.

Supports:
- Integer literals: 3, 12
- Dice rolls: 2d6, 1d20
- Stat references: STR, Athletics (case-insensitive at lookup time)
- Negation: -x
- Arithmetic: +, -, *, / (a backslash is accepted as divide)
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

Number = int | float


def saturating_float(value: Number) -> float:
    """Convert to float; integers too large for a float become +inf or -inf."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


# ---------------------------------------------------------------------------
# Source locations and diagnostics
# ---------------------------------------------------------------------------


class Span(BaseModel):
    """A range of a formula: offset of the first character and a length."""

    start_index: int = Field(ge=0, description="Offset of the first character")
    length: int = Field(ge=0, description="Number of characters covered")

    model_config = ConfigDict(frozen=True)

    @property
    def end(self) -> int:
        """Offset one past the last covered character."""
        return self.start_index + self.length

    def combine(self, other: Span) -> Span:
        """Return the smallest span covering both this span and *other*."""
        start = min(self.start_index, other.start_index)
        end = max(self.end, other.end)
        return Span(start_index=start, length=end - start)

    def source_of(self, formula: str) -> str:
        """Return the portion of *formula* this span refers to."""
        return formula[self.start_index : self.end]


class DiagnosticLevel(StrEnum):
    """Severity of a formula diagnostic."""

    WARNING = "warning"
    # User error that prevented a tree or value from being produced
    USER_ERROR = "user_error"


class Diagnostic(BaseModel):
    """A message about a span of a formula."""

    span: Span
    text: str
    level: DiagnosticLevel = DiagnosticLevel.WARNING

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.level.value} at {self.span.start_index}: {self.text}"


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary arithmetic operators."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


class UnaryOp(StrEnum):
    """Unary operators."""

    NEG = "-"


# ---------------------------------------------------------------------------
# Term nodes
# ---------------------------------------------------------------------------


class LiteralTerm(BaseModel):
    """An integer literal."""

    value: int = Field(ge=0)
    span: Span
    source: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.value)


class DieRollTerm(BaseModel):
    """A dice roll such as ``2d6``."""

    die_count: int = Field(ge=1)
    die_sides: int = Field(ge=1)
    span: Span
    source: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.die_count}d{self.die_sides}"


class StatTerm(BaseModel):
    """
    Reference to a statistic by id.

    The id is kept exactly as written; resolution against the character's
    statistics happens at evaluation time and ignores case.
    """

    stat_id: str
    span: Span
    source: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.stat_id


class UnaryTerm(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    op_span: Span
    operand: Term
    span: Span
    source: str

    model_config = ConfigDict(frozen=True)

    @property
    def operator_source(self) -> str:
        """The operator exactly as written in the formula."""
        offset = self.op_span.start_index - self.span.start_index
        return self.source[offset : offset + self.op_span.length]

    def __str__(self) -> str:
        return f"{self.op.value}{self.operand}"


class BinaryTerm(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    op_span: Span
    left: Term
    right: Term
    span: Span
    source: str

    model_config = ConfigDict(frozen=True)

    @property
    def operator_source(self) -> str:
        """The operator exactly as written (``\\`` for a backslash divide)."""
        offset = self.op_span.start_index - self.span.start_index
        return self.source[offset : offset + self.op_span.length]

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


Term = LiteralTerm | DieRollTerm | StatTerm | UnaryTerm | BinaryTerm

UnaryTerm.model_rebuild()
BinaryTerm.model_rebuild()


def zero_term() -> LiteralTerm:
    """The literal-zero term used in place of a formula that failed to parse."""
    return LiteralTerm(value=0, span=Span(start_index=0, length=0), source="")


class ParseResult(BaseModel):
    """Outcome of parsing one formula: the tree (if any) and diagnostics."""

    formula: str
    term: Term | None = None
    messages: list[Diagnostic] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return self.term is not None


# ---------------------------------------------------------------------------
# Evaluated term nodes
# ---------------------------------------------------------------------------


class EvaluatedLiteral(BaseModel):
    """A literal paired with its value."""

    term: LiteralTerm
    value: Number

    model_config = ConfigDict(frozen=True)


class EvaluatedDieRoll(BaseModel):
    """A dice roll with the individual die results, in roll order."""

    term: DieRollTerm
    value: Number
    rolls: list[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class EvaluatedStat(BaseModel):
    """A stat reference with its resolved id, or ``None`` when unresolved."""

    term: StatTerm
    value: Number
    resolved_stat_id: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def resolved(self) -> bool:
        return self.resolved_stat_id is not None


class EvaluatedUnary(BaseModel):
    term: UnaryTerm
    value: Number
    operand: EvaluatedTerm

    model_config = ConfigDict(frozen=True)


class EvaluatedBinary(BaseModel):
    term: BinaryTerm
    value: Number
    left: EvaluatedTerm
    right: EvaluatedTerm

    model_config = ConfigDict(frozen=True)


EvaluatedTerm = (
    EvaluatedLiteral | EvaluatedDieRoll | EvaluatedStat | EvaluatedUnary | EvaluatedBinary
)

EvaluatedUnary.model_rebuild()
EvaluatedBinary.model_rebuild()


class FormulaEvaluationResult(BaseModel):
    """
    Outcome of evaluating a formula.

    ``root`` is the evaluated tree, or ``None`` when the formula could not
    be parsed. ``messages`` holds parse and evaluation diagnostics.
    """

    formula: str
    root: EvaluatedTerm | None = None
    messages: list[Diagnostic] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return self.root is not None

    @property
    def value(self) -> Number | None:
        return self.root.value if self.root is not None else None
