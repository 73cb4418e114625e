"""
Recursive descent parser for charsheet formulas.

Grammar (precedence low to high):
    expr      → term (("+" | "-") term)*
    term      → unary (("*" | "/" | "\\") unary)*
    unary     → "-"? atom
    atom      → "(" expr ")" | INTEGER | NAME | DICE
    DICE      → INTEGER "d" INTEGER   (no whitespace)

Binary operators are left-associative. A production that cannot complete
fails as a whole; parse failures are reported as diagnostics and an absent
tree rather than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache

from charsheet.core.formula.scanner import (
    DiceRollToken,
    IntegerToken,
    NameToken,
    Token,
    TokenKind,
    scan_formula_with_diagnostics,
)
from charsheet.core.ir.formula import (
    BinaryOp,
    BinaryTerm,
    Diagnostic,
    DiagnosticLevel,
    DieRollTerm,
    LiteralTerm,
    ParseResult,
    Span,
    StatTerm,
    Term,
    UnaryOp,
    UnaryTerm,
)

logger = logging.getLogger(__name__)

_ADDITIVE_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.PLUS: BinaryOp.ADD,
    TokenKind.MINUS: BinaryOp.SUB,
}
_MULTIPLICATIVE_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.STAR: BinaryOp.MUL,
    TokenKind.SLASH: BinaryOp.DIV,
}


class _Parser:
    """Recursive descent parser over a scanned token list."""

    def __init__(self, formula: str, tokens: list[Token]) -> None:
        self.formula = formula
        self.tokens = tokens
        self.pos = 0
        self.messages: list[Diagnostic] = []

    @property
    def current(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def error(self, text: str, span: Span | None = None) -> None:
        if span is None:
            span = Span(start_index=len(self.formula), length=0)
        self.messages.append(Diagnostic(span=span, text=text, level=DiagnosticLevel.USER_ERROR))

    # -- Grammar rules --

    def parse_expr(self) -> Term | None:
        """term (('+' | '-') term)*"""
        return self._parse_binary(self.parse_term, _ADDITIVE_OPS)

    def parse_term(self) -> Term | None:
        """unary (('*' | '/') unary)*"""
        return self._parse_binary(self.parse_unary, _MULTIPLICATIVE_OPS)

    def _parse_binary(
        self, operand_rule: Callable[[], Term | None], ops: dict[TokenKind, BinaryOp]
    ) -> Term | None:
        left = operand_rule()
        if left is None:
            return None
        while self.current is not None and self.current.kind in ops:
            op_tok = self.advance()
            right = operand_rule()
            if right is None:
                return None
            span = left.span.combine(right.span)
            left = BinaryTerm(
                op=ops[op_tok.kind],
                op_span=op_tok.span,
                left=left,
                right=right,
                span=span,
                source=span.source_of(self.formula),
            )
        return left

    def parse_unary(self) -> Term | None:
        """'-'? atom"""
        tok = self.current
        if tok is not None and tok.kind == TokenKind.MINUS:
            self.advance()
            operand = self.parse_atom()
            if operand is None:
                return None
            span = tok.span.combine(operand.span)
            return UnaryTerm(
                op=UnaryOp.NEG,
                op_span=tok.span,
                operand=operand,
                span=span,
                source=span.source_of(self.formula),
            )
        return self.parse_atom()

    def parse_atom(self) -> Term | None:
        """'(' expr ')' | DICE | NAME | INTEGER"""
        tok = self.current
        if tok is None:
            self.error("Expected a value but reached the end of the formula")
            return None
        self.advance()

        if tok.kind == TokenKind.LPAREN:
            # The returned span covers only the inner expression
            inner = self.parse_expr()
            if inner is None:
                return None
            close = self.current
            if close is None or close.kind != TokenKind.RPAREN:
                self.error("Expected ')'", close.span if close is not None else None)
                return None
            self.advance()
            return inner

        if isinstance(tok, DiceRollToken):
            if tok.die_count < 1 or tok.die_sides < 1:
                self.error(
                    f"Dice roll {tok.text!r} needs at least one die with at least one side",
                    tok.span,
                )
                return None
            return DieRollTerm(
                die_count=tok.die_count,
                die_sides=tok.die_sides,
                span=tok.span,
                source=tok.span.source_of(self.formula),
            )

        if isinstance(tok, NameToken):
            return StatTerm(
                stat_id=tok.name, span=tok.span, source=tok.span.source_of(self.formula)
            )

        if isinstance(tok, IntegerToken):
            return LiteralTerm(
                value=tok.value, span=tok.span, source=tok.span.source_of(self.formula)
            )

        self.error(f"Unexpected {tok.text!r}", tok.span)
        return None


def parse_formula(formula: str, tokens: list[Token]) -> ParseResult:
    """Parse scanned tokens of *formula* into a term tree.

    Args:
        formula: The formula source the tokens were scanned from.
        tokens: Output of the scanner.

    Returns:
        ParseResult whose ``term`` is ``None`` when the tokens do not form
        a complete expression.
    """
    parser = _Parser(formula, tokens)
    if not tokens:
        parser.error("Formula is empty")
        return ParseResult(formula=formula, messages=parser.messages)

    term = parser.parse_expr()

    # Ensure all tokens consumed
    leftover = parser.current
    if term is not None and leftover is not None:
        parser.error(f"Unexpected {leftover.text!r} after expression", leftover.span)
        term = None

    return ParseResult(formula=formula, term=term, messages=parser.messages)


@lru_cache(maxsize=1024)
def parse_source(formula: str) -> ParseResult:
    """Scan and parse a formula string, memoized per string.

    Term trees are immutable, so the cached result is shared by all callers.
    A user error from the scanner fails the parse even if the remaining
    tokens form an expression.
    """
    logger.debug("Parsing formula %r", formula)
    tokens, scan_messages = scan_formula_with_diagnostics(formula)
    result = parse_formula(formula, tokens)
    if not scan_messages:
        return result
    scan_failed = any(m.level == DiagnosticLevel.USER_ERROR for m in scan_messages)
    return ParseResult(
        formula=formula,
        term=None if scan_failed else result.term,
        messages=[*scan_messages, *result.messages],
    )
