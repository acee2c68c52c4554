"""
KidGuard Core Module
====================

Structure:
- config.py: Application settings and environment configuration
- exceptions.py: Exception hierarchy rendered by the API
- correlation.py: Request correlation ID for logging
- types.py: Age bands, violations and result records
- policy.py: Immutable lexicons and threshold tables
"""

from .config import Settings, get_settings, settings
from .correlation import generate_request_id, get_request_id, set_request_id
from .exceptions import (
    AccessDeniedError,
    ContentBlockedError,
    FilterExecutionError,
    KidGuardException,
    ResponseGeneratorError,
    ValidationInputError,
)
from .policy import PolicyTables, get_default_tables
from .types import (
    AgeGroup,
    ComplexityLevel,
    ContentFilterResult,
    FilterContext,
    LanguageMetrics,
    LanguageValidationResult,
    Priority,
    Severity,
    Suggestion,
    SuggestionType,
    Violation,
    ViolationType,
)

__all__ = [
    "AccessDeniedError",
    "AgeGroup",
    "ComplexityLevel",
    "ContentBlockedError",
    "ContentFilterResult",
    "FilterContext",
    "FilterExecutionError",
    "KidGuardException",
    "LanguageMetrics",
    "LanguageValidationResult",
    "PolicyTables",
    "Priority",
    "ResponseGeneratorError",
    "Settings",
    "Severity",
    "Suggestion",
    "SuggestionType",
    "ValidationInputError",
    "Violation",
    "ViolationType",
    "generate_request_id",
    "get_default_tables",
    "get_request_id",
    "get_settings",
    "set_request_id",
    "settings",
]
