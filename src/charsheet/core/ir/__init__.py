"""
charsheet Intermediate Representation (IR) types.

Formula trees, statistic evaluations, skill check records and the content
data schema. All types are re-exported from this package.
"""

from .checks import (
    CRITICAL_STEP,
    DIFFICULTY_DIE_SIDES,
    EffectiveDifficulty,
    SkillCheck,
    SkillCheckDifficulty,
    parse_difficulty,
)
from .formula import (
    BinaryOp,
    BinaryTerm,
    Diagnostic,
    DiagnosticLevel,
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
    ParseResult,
    Span,
    StatTerm,
    Term,
    UnaryOp,
    UnaryTerm,
    saturating_float,
    zero_term,
)
from .gamedata import (
    AttributeDefinition,
    AttributeGroupDefinition,
    DerivedStatisticDefinition,
    GameData,
    SkillDefinition,
)
from .statistics import (
    StatChange,
    StatField,
    StatisticEvaluation,
    StatisticModification,
    StatModifier,
    StatProgress,
)

__all__ = [
    # Formula
    "BinaryOp",
    "BinaryTerm",
    "Diagnostic",
    "DiagnosticLevel",
    "DieRollTerm",
    "EvaluatedBinary",
    "EvaluatedDieRoll",
    "EvaluatedLiteral",
    "EvaluatedStat",
    "EvaluatedTerm",
    "EvaluatedUnary",
    "FormulaEvaluationResult",
    "LiteralTerm",
    "Number",
    "ParseResult",
    "Span",
    "StatTerm",
    "Term",
    "UnaryOp",
    "UnaryTerm",
    "saturating_float",
    "zero_term",
    # Statistics
    "StatChange",
    "StatField",
    "StatisticEvaluation",
    "StatisticModification",
    "StatModifier",
    "StatProgress",
    # Checks
    "CRITICAL_STEP",
    "DIFFICULTY_DIE_SIDES",
    "EffectiveDifficulty",
    "SkillCheck",
    "SkillCheckDifficulty",
    "parse_difficulty",
    # Game data
    "AttributeDefinition",
    "AttributeGroupDefinition",
    "DerivedStatisticDefinition",
    "GameData",
    "SkillDefinition",
]
