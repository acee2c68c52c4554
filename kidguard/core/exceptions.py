"""Custom exception classes for KidGuard.

Includes:
- Base exception carrying an HTTP status and error code
- Input sanitization, rule-engine and access errors
"""

from datetime import UTC, datetime


class KidGuardException(Exception):
    """Base exception for all KidGuard errors."""

    def __init__(
        self, detail: str, status_code: int = 500, error_code: str = "INTERNAL_ERROR"
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_dict(self):
        """Convert exception to dictionary for API response."""
        return {
            "error": self.error_code,
            "detail": self.detail,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }


class ValidationInputError(KidGuardException):
    """Raised when text is malformed or carries control characters.

    The sanitized replacement travels with the error so services can
    continue with it instead of surfacing the fault to the caller.
    """

    def __init__(self, detail: str, sanitized: str = ""):
        super().__init__(
            detail=detail, status_code=422, error_code="VALIDATION_INPUT_ERROR"
        )
        self.sanitized = sanitized


class FilterExecutionError(KidGuardException):
    """Raised when the rule engine fails internally."""

    def __init__(
        self,
        detail: str = "Content filtering failed",
        stage: str = "safety",
        age_group: str | None = None,
    ):
        super().__init__(
            detail=detail, status_code=500, error_code="content_filtering_error"
        )
        self.stage = stage
        self.age_group = age_group

    def to_dict(self):
        return {
            "error": self.error_code,
            "message": "Unable to process your message right now. Please try again.",
            "ageGroup": self.age_group,
        }


class ResponseGeneratorError(KidGuardException):
    """Raised when the AI response generator cannot produce a reply."""

    def __init__(self, detail: str = "AI response generator unavailable"):
        super().__init__(
            detail=detail, status_code=502, error_code="AI_GENERATOR_ERROR"
        )


class AccessDeniedError(KidGuardException):
    """Raised when a topic or subject is blocked for the resolved age band."""

    def __init__(self, age_group: str, blocked_content: str | None = None):
        super().__init__(
            detail=(
                "This topic is not appropriate for your age group. Please ask "
                "about something else or talk to a parent or teacher."
            ),
            status_code=403,
            error_code="age_inappropriate_topic",
        )
        self.age_group = age_group
        self.blocked_content = blocked_content

    def to_dict(self):
        return {
            "error": self.error_code,
            "message": self.detail,
            "ageGroup": self.age_group,
            "blockedContent": self.blocked_content,
        }


class ContentBlockedError(KidGuardException):
    """Raised when a child message is blocked by the safety stage."""

    def __init__(self, age_group: str, violations: list[dict] | None = None):
        super().__init__(
            detail=(
                "Your message contains content that is not appropriate. "
                "Please try rephrasing your question."
            ),
            status_code=400,
            error_code="inappropriate_content",
        )
        self.age_group = age_group
        self.violations = violations

    def to_dict(self):
        payload = {
            "error": self.error_code,
            "message": self.detail,
            "ageGroup": self.age_group,
        }
        if self.violations is not None:
            payload["violations"] = self.violations
        return payload
