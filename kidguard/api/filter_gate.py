"""
Filter Gate
===========

Applies the safety stage (and optionally the readability stage) at the
request boundary:

- ``filter_user_input``: blocks or cleans the child's message before it
  reaches the AI response generator
- ``filter_ai_response``: returns a ResponseFilter that the pipeline calls
  on the outbound payload right before it is sent
- ``validate_age_appropriate_access``: guards topic/subject selection

The age group is resolved from the request (explicit value, then the
authenticated profile, then the body, then the query string). When none
can be found the gate logs a warning and lets traffic through untouched.

Modes:
- permissive (default): internal faults are logged and traffic passes
- strict: faults block the input path (500) and replace the response
  with a fixed apology
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.config import VALID_FILTER_MODES, settings
from ..core.exceptions import AccessDeniedError, ContentBlockedError, FilterExecutionError
from ..core.policy import PolicyTables, get_default_tables
from ..core.types import (
    AgeGroup,
    ContentFilterResult,
    FilterContext,
    Severity,
    ViolationType,
)
from ..services.complexity_analyzer import ComplexityAnalyzer
from ..services.content_filter import ContentFilterService
from ..services.language_validation import LanguageValidationService

logger = logging.getLogger(__name__)

SAFETY_REDIRECT_MESSAGE = (
    "Let's talk about something else! I'm here to help you learn. "
    "What would you like to explore today?"
)
GENERAL_REDIRECT_MESSAGE = (
    "I can't share that answer. Let's try a different question "
    "about what you're learning!"
)
STRICT_FALLBACK_MESSAGE = (
    "I'm sorry, but I can't give a response right now. "
    "Please try asking your question in a different way."
)

_SAFETY_TYPES = frozenset(
    {
        ViolationType.VIOLENCE,
        ViolationType.ADULT_TOPICS,
        ViolationType.PERSONAL_INFORMATION,
    }
)


def _age_from(source: Any) -> AgeGroup | None:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return AgeGroup.parse(source.get("age_group") or source.get("ageGroup"))
    return AgeGroup.parse(
        getattr(source, "age_group", None) or getattr(source, "ageGroup", None)
    )


@dataclass
class GateRequest:
    """Framework-neutral view of an incoming request."""

    body: dict[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    age_group: Any = None
    user: Any = None
    state: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request, body: Mapping[str, Any]) -> "GateRequest":
        return cls(
            body=dict(body),
            query=dict(request.query_params),
            age_group=getattr(request.state, "age_group", None),
            user=getattr(request.state, "user", None),
        )

    def resolve_age_group(self) -> AgeGroup | None:
        """Explicit value, then profile, then body, then query; invalid values skipped."""
        candidates = (
            AgeGroup.parse(self.age_group),
            _age_from(self.user),
            AgeGroup.parse(self.body.get("ageGroup")),
            AgeGroup.parse(self.query.get("ageGroup")),
        )
        return next((age for age in candidates if age is not None), None)

    @property
    def context(self) -> FilterContext:
        return FilterContext.from_mapping(self.body)


@dataclass
class GateDecision:
    """Outcome of an input-side check."""

    allowed: bool
    status_code: int = 200
    payload: dict[str, Any] | None = None

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.payload or {})


class ResponseFilter:
    """
    Filters an outbound payload for one request.

    Created by ``FilterGate.filter_ai_response`` and applied by the request
    pipeline immediately before the payload is emitted.
    """

    def __init__(
        self,
        gate: "FilterGate",
        age_group: AgeGroup | None,
        context: FilterContext,
        validate_language: bool = False,
    ):
        self.gate = gate
        self.age_group = age_group
        self.context = context
        self.validate_language = validate_language

    def apply(self, payload: dict[str, Any]) -> dict[str, Any]:
        content = payload.get("content")
        if self.age_group is None or not isinstance(content, str):
            return payload

        try:
            return self._filter(payload, content)
        except Exception as e:
            logger.error(
                f"AI response filtering failed for {self.age_group.value}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            if not self.gate.strict:
                return payload
            return {
                **payload,
                "content": STRICT_FALLBACK_MESSAGE,
                "filtered": True,
                "ageAppropriate": False,
                "filterError": True,
            }

    def _filter(self, payload: dict[str, Any], content: str) -> dict[str, Any]:
        result = self.gate.service.filter_content(content, self.age_group, self.context)
        self.gate.log_violations(result, self.age_group, "AI response")

        output = dict(payload)
        output["filterConfidence"] = result.confidence

        if not result.is_appropriate:
            logger.error(
                f"Inappropriate AI response blocked age_group={self.age_group.value} "
                f"violations={len(result.violations)}"
            )
            output.update(
                content=redirect_message(result),
                filtered=True,
                ageAppropriate=False,
                filterViolations=[v.to_dict() for v in result.violations],
            )
            return output

        text = result.filtered_content
        if self.validate_language and self.gate.language_service is not None:
            validation = self.gate.language_service.validate_language(
                text, self.age_group, self.context
            )
            output["languageAdjusted"] = validation.adjusted_content != text
            output["readabilityScore"] = validation.readability_score
            output["complexityLevel"] = validation.complexity_level.value
            text = validation.adjusted_content

        output["content"] = text
        output["filtered"] = text != content
        output["ageAppropriate"] = True
        if self.gate.include_warnings and result.warnings:
            output["filterWarnings"] = list(result.warnings)
        return output


def redirect_message(result: ContentFilterResult) -> str:
    """Age-neutral replacement for a blocked AI response."""
    blocking = [v for v in result.violations if v.severity >= Severity.HIGH] or list(
        result.violations
    )
    if any(v.type in _SAFETY_TYPES for v in blocking):
        return SAFETY_REDIRECT_MESSAGE
    return GENERAL_REDIRECT_MESSAGE


class FilterGate:
    """Request/response gate around the filtering engine."""

    def __init__(
        self,
        service: ContentFilterService | None = None,
        language_service: LanguageValidationService | None = None,
        mode: str = "permissive",
        log_violations: bool = True,
        include_warnings: bool = True,
    ):
        if mode not in VALID_FILTER_MODES:
            raise ValueError(f"Unknown filter mode: {mode}")
        self.service = service or ContentFilterService()
        self.language_service = language_service
        self.mode = mode
        self.log_violations_enabled = log_violations
        self.include_warnings = include_warnings

    @property
    def strict(self) -> bool:
        return self.mode == "strict"

    def filter_user_input(self, request: GateRequest) -> GateDecision:
        """
        Check the child's message.

        On success the message in ``request.body`` is replaced by the filtered
        text and the result is stored in ``request.state["content_filter"]``.
        """
        message = request.body.get("message")
        if not isinstance(message, str):
            return GateDecision(allowed=True)

        age_group = request.resolve_age_group()
        if age_group is None:
            logger.warning("No age group available for content filtering")
            return GateDecision(allowed=True)

        try:
            result = self.service.filter_content(message, age_group, request.context)
        except Exception as e:
            logger.error(
                f"User input filtering failed for {age_group.value}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            if not self.strict:
                return GateDecision(allowed=True)
            error = FilterExecutionError(stage="input", age_group=age_group.value)
            return GateDecision(
                allowed=False, status_code=error.status_code, payload=error.to_dict()
            )

        self.log_violations(result, age_group, "User input")

        if not result.is_appropriate:
            logger.warning(
                f"Inappropriate user input blocked age_group={age_group.value} "
                f"violations={len(result.violations)}"
            )
            error = ContentBlockedError(
                age_group.value,
                [v.summary() for v in result.violations]
                if self.include_warnings
                else None,
            )
            return GateDecision(
                allowed=False, status_code=error.status_code, payload=error.to_dict()
            )

        request.body["message"] = result.filtered_content
        request.state["content_filter"] = result
        return GateDecision(allowed=True)

    def filter_ai_response(
        self, request: GateRequest, validate_language: bool = False
    ) -> ResponseFilter:
        """ResponseFilter bound to the request's age group and context."""
        age_group = request.resolve_age_group()
        if age_group is None:
            logger.warning("No age group available for AI response filtering")
        return ResponseFilter(self, age_group, request.context, validate_language)

    def validate_age_appropriate_access(self, request: GateRequest) -> GateDecision:
        """Check a requested topic/subject before a lesson starts."""
        topic = request.body.get("topic")
        subject = request.body.get("subject")
        if not topic and not subject:
            return GateDecision(allowed=True)

        age_group = request.resolve_age_group()
        if age_group is None:
            logger.warning("No age group available for access validation")
            return GateDecision(allowed=True)

        combined = " ".join(str(part) for part in (topic, subject) if part)
        try:
            result = self.service.filter_content(combined, age_group)
        except Exception as e:
            logger.error(
                f"Age access validation failed for {age_group.value}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            if not self.strict:
                return GateDecision(allowed=True)
            error = FilterExecutionError(stage="access", age_group=age_group.value)
            return GateDecision(
                allowed=False, status_code=error.status_code, payload=error.to_dict()
            )

        if not result.is_appropriate:
            logger.warning(f"Age-inappropriate topic blocked age_group={age_group.value}")
            error = AccessDeniedError(age_group.value, combined)
            return GateDecision(
                allowed=False, status_code=error.status_code, payload=error.to_dict()
            )

        return GateDecision(allowed=True)

    def log_violations(
        self, result: ContentFilterResult, age_group: AgeGroup, source: str
    ) -> None:
        if not self.log_violations_enabled or not result.violations:
            return
        logger.warning(
            f"{source} violations age_group={age_group.value} "
            f"confidence={result.confidence} "
            f"violations={[v.summary() for v in result.violations]}"
        )

    def stats(self) -> dict[str, Any]:
        return {
            **self.service.filtering_stats(),
            "mode": self.mode,
            "logViolations": self.log_violations_enabled,
            "includeWarnings": self.include_warnings,
        }


# =============================================================================
# FACTORIES
# =============================================================================


def _tables() -> PolicyTables:
    if settings.policy_tables_path is not None:
        return PolicyTables.from_file(settings.policy_tables_path)
    return get_default_tables()


def create_content_filter_service(
    tables: PolicyTables | None = None,
) -> ContentFilterService:
    return ContentFilterService(tables or _tables())


def create_language_validation_service(
    tables: PolicyTables | None = None,
) -> LanguageValidationService:
    tables = tables or _tables()
    analyzer = ComplexityAnalyzer(tables, reading_speed_wpm=settings.READING_SPEED_WPM)
    return LanguageValidationService(tables, analyzer=analyzer)


def create_filter_gate(
    mode: str | None = None,
    log_violations: bool | None = None,
    include_warnings: bool | None = None,
    tables: PolicyTables | None = None,
) -> FilterGate:
    """Build a gate whose services share one PolicyTables instance."""
    tables = tables or _tables()
    return FilterGate(
        service=create_content_filter_service(tables),
        language_service=create_language_validation_service(tables),
        mode=mode or settings.FILTER_MODE,
        log_violations=(
            settings.FILTER_LOG_VIOLATIONS if log_violations is None else log_violations
        ),
        include_warnings=(
            settings.FILTER_INCLUDE_WARNINGS
            if include_warnings is None
            else include_warnings
        ),
    )


__all__ = [
    "GENERAL_REDIRECT_MESSAGE",
    "SAFETY_REDIRECT_MESSAGE",
    "STRICT_FALLBACK_MESSAGE",
    "FilterGate",
    "GateDecision",
    "GateRequest",
    "ResponseFilter",
    "create_content_filter_service",
    "create_filter_gate",
    "create_language_validation_service",
    "redirect_message",
]
