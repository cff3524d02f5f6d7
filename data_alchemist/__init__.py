"""Normalize, validate and reason about client/worker/task allocation data."""
from .corrections import suggest_corrections, recommend_rules, apply_suggestions
from .errors import DataAlchemistError, UnsupportedInputError, UnknownPresetError
from .models import (
    EntityKind,
    Severity,
    ValidationIssue,
    RuleType,
    BusinessRule,
    CorrectionSuggestion,
    RuleRecommendation,
)
from .normalizer import normalize, NormalizationResult
from .rules import nl_to_rule
from .search import natural_language_search
from .validator import validate

__all__ = [
    "normalize",
    "NormalizationResult",
    "validate",
    "natural_language_search",
    "nl_to_rule",
    "suggest_corrections",
    "recommend_rules",
    "apply_suggestions",
    "EntityKind",
    "Severity",
    "ValidationIssue",
    "RuleType",
    "BusinessRule",
    "CorrectionSuggestion",
    "RuleRecommendation",
    "DataAlchemistError",
    "UnsupportedInputError",
    "UnknownPresetError",
]
