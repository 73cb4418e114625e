"""
Error types for charsheet formula handling, content loading and persistence.

Ordinary problems in user-authored formulas are never raised: they are
reported as diagnostics and absent results. Exceptions are reserved for
I/O failures and for programming defects.
"""

from dataclasses import dataclass


class CharsheetError(Exception):
    """Base exception for all charsheet errors."""

    def __init__(self, message: str, context: "ErrorContext | None" = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class FormulaDefectError(CharsheetError):
    """
    Raised when the evaluator meets a tree the parser should never produce.

    Examples:
    - A unary operator other than negation
    - An unknown binary operator
    - An unknown term kind

    This signals a grammar/evaluator mismatch, not a mistake in the formula.
    """

    pass


class GameDataError(CharsheetError):
    """
    Raised when content data cannot be loaded.

    Examples:
    - Missing or unreadable file
    - Invalid YAML/JSON syntax
    - Schema violations (non-positive level-up points, duplicate ids)
    """

    pass


class PersistenceError(CharsheetError):
    """Raised when a saved character cannot be read or written."""

    pass


class ManifestError(CharsheetError):
    """Raised when charsheet.toml cannot be read or is malformed."""

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside a formula.

    Attributes:
        formula: The full formula source text
        start_index: Offset of the offending span (0-indexed)
        length: Length of the offending span
        stat_id: Optional id of the statistic the formula belongs to
    """

    formula: str
    start_index: int
    length: int
    stat_id: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "formula 'STR + 2' at 4:5 in stat HEALTH"
            followed by the formula and a caret marker.
        """
        end = self.start_index + self.length
        location = f"formula {self.formula!r} at {self.start_index}:{end}"
        if self.stat_id:
            location += f" in stat {self.stat_id}"
        return f"{location}\n{self._format_snippet()}"

    def _format_snippet(self) -> str:
        """Format the formula with a marker under the offending span."""
        prefix = "    | "
        marker = " " * (len(prefix) + self.start_index) + "^" * max(1, self.length)
        return f"{prefix}{self.formula}\n{marker}"


def make_defect_error(
    message: str,
    formula: str,
    start_index: int,
    length: int,
    stat_id: str | None = None,
) -> FormulaDefectError:
    """
    Helper to create a FormulaDefectError with context.

    Args:
        message: Error description
        formula: Formula source text
        start_index: Offset of the offending span
        length: Length of the offending span
        stat_id: Optional owning statistic id

    Returns:
        FormulaDefectError with context attached
    """
    context = ErrorContext(
        formula=formula, start_index=start_index, length=length, stat_id=stat_id
    )
    return FormulaDefectError(message, context)
