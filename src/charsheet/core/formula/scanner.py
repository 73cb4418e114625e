"""
Scanner for charsheet formulas.

Converts a formula string into a flat sequence of typed tokens in a single
left-to-right pass. Characters outside the formula alphabet are skipped and
reported as warnings. A number too long to convert is dropped and reported
as a user error, which makes the formula fail to parse. Scanning never
raises.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto

from charsheet.core.ir.formula import Diagnostic, DiagnosticLevel, Span


class TokenKind(StrEnum):
    """Token types for the formula language."""

    NAME = auto()
    INTEGER = auto()
    DICE_ROLL = auto()  # #d#, e.g. 2d20

    LPAREN = auto()
    RPAREN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()  # "/" or "\"


class Token:
    """A single token from the formula scanner."""

    __slots__ = ("kind", "span", "text")

    def __init__(self, kind: TokenKind, span: Span, text: str) -> None:
        self.kind = kind
        self.span = span
        self.text = text

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.text!r}, at={self.span.start_index})"


class IntegerToken(Token):
    __slots__ = ("value",)

    def __init__(self, span: Span, text: str, value: int) -> None:
        super().__init__(TokenKind.INTEGER, span, text)
        self.value = value


class DiceRollToken(Token):
    __slots__ = ("die_count", "die_sides")

    def __init__(self, span: Span, text: str, die_count: int, die_sides: int) -> None:
        super().__init__(TokenKind.DICE_ROLL, span, text)
        self.die_count = die_count
        self.die_sides = die_sides


class NameToken(Token):
    __slots__ = ()

    def __init__(self, span: Span, text: str) -> None:
        super().__init__(TokenKind.NAME, span, text)

    @property
    def name(self) -> str:
        return self.text


_SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "\\": TokenKind.SLASH,
}

_WHITESPACE = " \t\n\r"

# An integer, or a dice roll when followed directly by d<digits>.
# ASCII only; str.isdigit/isalpha would accept other scripts
_NUMBER_RE = re.compile(r"([0-9]+)(?:[dD]([0-9]+))?")
_NAME_RE = re.compile(r"[A-Za-z]+")


def scan_formula_with_diagnostics(source: str) -> tuple[list[Token], list[Diagnostic]]:
    """Scan *source* and also return diagnostics for skipped characters."""
    tokens: list[Token] = []
    messages: list[Diagnostic] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        if c in _WHITESPACE:
            i += 1
            continue

        if c in _SINGLE_CHAR_TOKENS:
            tokens.append(Token(_SINGLE_CHAR_TOKENS[c], _span(i, i + 1), c))
            i += 1
            continue

        m = _NUMBER_RE.match(source, i)
        if m is not None:
            token = _number_token(m, messages)
            if token is not None:
                tokens.append(token)
            i = m.end()
            continue

        m = _NAME_RE.match(source, i)
        if m is not None:
            tokens.append(NameToken(_span(i, m.end()), m.group(0)))
            i = m.end()
            continue

        messages.append(
            Diagnostic(
                span=_span(i, i + 1),
                text=f"Ignored unexpected character {c!r}",
                level=DiagnosticLevel.WARNING,
            )
        )
        i += 1

    return tokens, messages


def _number_token(m: re.Match[str], messages: list[Diagnostic]) -> Token | None:
    """Build an integer or dice token; None (with a user error) if a number is too long."""
    span = _span(m.start(), m.end())
    count_text, sides_text = m.group(1), m.group(2)
    try:
        count = int(count_text)
        sides = int(sides_text) if sides_text is not None else None
    except ValueError:
        # Longer than the interpreter's int conversion limit
        messages.append(
            Diagnostic(
                span=span,
                text=f"Number too long ({m.end() - m.start()} characters)",
                level=DiagnosticLevel.USER_ERROR,
            )
        )
        return None

    if sides is None:
        return IntegerToken(span, m.group(0), count)
    return DiceRollToken(span, m.group(0), count, sides)


def scan_formula(source: str) -> list[Token]:
    """Tokenize a formula string into a list of tokens."""
    tokens, _ = scan_formula_with_diagnostics(source)
    return tokens


def _span(start: int, end: int) -> Span:
    return Span(start_index=start, length=end - start)
