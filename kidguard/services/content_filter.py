"""
Content Filter Service - Safety Stage
=====================================

Orchestrates the ViolationScanner and ContentRewriter for one text and one
age band and returns a ContentFilterResult:

- ``filtered_content``: the text with personal information redacted,
  profanity softened and severe violent/adult spans removed
- ``is_appropriate``: false on any violation of severity >= high, and on
  any adult-topic or violence hit for the two younger bands
- ``confidence``: self-assessed certainty, reduced by severity, violation
  count, very short or very long input and hedging language

Fail-closed: any internal error yields an inappropriate verdict with
confidence 0 and a fixed apology as the filtered content.
"""

import logging
import re
import threading
from collections import Counter
from typing import Any

from ..core.policy import PolicyTables, get_default_tables
from ..core.types import (
    AgeGroup,
    ContentFilterResult,
    FilterContext,
    Severity,
    Violation,
    ViolationType,
)
from ..utils.sanitizer import sanitize_text
from .content_rewriter import ContentRewriter
from .violation_scanner import ViolationScanner, is_scan_failure, scan_failure

logger = logging.getLogger(__name__)

FILTER_FAILURE_MESSAGE = (
    "I'm sorry, but I can't provide a response right now. "
    "Please try asking your question in a different way."
)
FILTER_FAILURE_WARNING = "Content filtering service encountered an error"

# Categories that rewrite the text; complexity and emotion are advisory here
REWRITE_TYPES = frozenset(
    {
        ViolationType.INAPPROPRIATE_LANGUAGE,
        ViolationType.PERSONAL_INFORMATION,
        ViolationType.VIOLENCE,
        ViolationType.ADULT_TOPICS,
    }
)

# Categories that block the two younger bands regardless of severity
_ALWAYS_BLOCKED_TYPES = frozenset({ViolationType.ADULT_TOPICS, ViolationType.VIOLENCE})
_ALWAYS_BLOCKED_AGES = frozenset({AgeGroup.AGES_6_TO_9, AgeGroup.AGES_10_TO_13})

_SEVERITY_PENALTY = {
    Severity.CRITICAL: 0.3,
    Severity.HIGH: 0.2,
    Severity.MEDIUM: 0.1,
    Severity.LOW: 0.05,
}


class ContentFilterService:
    """
    Safety stage of the filtering engine.

    Holds only immutable collaborators; every call is independent.
    """

    def __init__(
        self,
        tables: PolicyTables | None = None,
        scanner: ViolationScanner | None = None,
        rewriter: ContentRewriter | None = None,
    ):
        self.tables = tables or get_default_tables()
        self.scanner = scanner or ViolationScanner(self.tables)
        self.rewriter = rewriter or ContentRewriter(self.tables)
        self._hedging = tuple(
            re.compile(r"\b" + re.escape(marker) + r"\b", re.IGNORECASE)
            for marker in self.tables.hedging_markers
        )

    def filter_content(
        self,
        text: Any,
        age_group: AgeGroup | str,
        context: FilterContext | dict | None = None,
    ) -> ContentFilterResult:
        """
        Filter text for one age band.

        Args:
            text: Text to filter (sanitized in place when malformed)
            age_group: Target band
            context: Optional educational context

        Returns:
            ContentFilterResult; inappropriate with confidence 0 on failure
        """
        try:
            age = AgeGroup(age_group)
            if not isinstance(context, FilterContext):
                context = FilterContext.from_mapping(context)
            clean = sanitize_text(text)

            violations = self.scanner.scan(clean, age, context)
            if any(is_scan_failure(v) for v in violations):
                return self._failure_result(age, violations)

            targets = [v for v in violations if v.type in REWRITE_TYPES]
            filtered = self.rewriter.rewrite(clean, targets, age) if targets else clean

            result = ContentFilterResult(
                is_appropriate=self.is_appropriate(violations, age),
                filtered_content=filtered,
                violations=tuple(violations),
                confidence=self.calculate_confidence(clean, violations),
                warnings=tuple(self._collect_warnings(clean, violations, age)),
            )
        except Exception as e:
            logger.error(
                f"Content filtering failed: {type(e).__name__}: {e}", exc_info=True
            )
            return self._failure_result(AgeGroup.parse(age_group), [scan_failure()])

        self._log_decision(result, age, len(clean))
        return result

    # =========================================================================
    # VERDICT
    # =========================================================================

    @staticmethod
    def is_appropriate(violations: list[Violation], age_group: AgeGroup) -> bool:
        for violation in violations:
            if violation.severity >= Severity.HIGH:
                return False
            if (
                violation.type in _ALWAYS_BLOCKED_TYPES
                and age_group in _ALWAYS_BLOCKED_AGES
            ):
                return False
        return True

    def calculate_confidence(self, text: str, violations: list[Violation]) -> float:
        """Confidence in [0, 1]; starts at 1.0 and only goes down."""
        confidence = 1.0

        for violation in violations:
            confidence -= _SEVERITY_PENALTY[violation.severity]

        if len(text) < 20:
            confidence -= 0.1
        if len(text) > 1000:
            confidence -= 0.1

        if len(violations) > 3:
            confidence -= 0.1
        if len(violations) > 6:
            confidence -= 0.1

        hedges = sum(len(pattern.findall(text)) for pattern in self._hedging)
        confidence -= min(0.2, hedges * 0.05)

        return round(max(0.0, min(1.0, confidence)), 3)

    def _collect_warnings(
        self, text: str, violations: list[Violation], age_group: AgeGroup
    ) -> list[str]:
        warnings: list[str] = []

        def add(message: str) -> None:
            if message not in warnings:
                warnings.append(message)

        for violation in violations:
            if violation.type is ViolationType.COMPLEX_LANGUAGE:
                add(f"Content may be too complex for {age_group.value}")
            elif violation.type is ViolationType.EMOTIONAL_CONTENT:
                add(f"Content contains emotional themes: {violation.original_text}")
            elif violation.severity < Severity.HIGH:
                add(f"{violation.description}: {violation.original_text}")

        # Tolerated bands still get a note on very intense content
        thresholds = self.tables.filter_thresholds[age_group]
        if thresholds.emotional_intensity_limit is None:
            intensity, words = self.scanner.emotional_intensity(text)
            if intensity >= thresholds.emotional_warning_limit:
                add(f"Content contains emotional themes: {', '.join(words)}")

        return warnings

    def _failure_result(
        self, age_group: AgeGroup | None, violations: list[Violation]
    ) -> ContentFilterResult:
        logger.error(
            f"Content filter failed closed age_group={getattr(age_group, 'value', None)}"
        )
        return ContentFilterResult(
            is_appropriate=False,
            filtered_content=FILTER_FAILURE_MESSAGE,
            violations=tuple(violations),
            confidence=0.0,
            warnings=(FILTER_FAILURE_WARNING,),
        )

    def _log_decision(
        self, result: ContentFilterResult, age_group: AgeGroup, length: int
    ) -> None:
        # Counts only; raw child text never reaches the log
        counts = Counter(
            f"{v.type.value}:{v.severity.value}" for v in result.violations
        )
        level = logging.INFO if result.violations else logging.DEBUG
        logger.log(
            level,
            f"Filter decision age_group={age_group.value} "
            f"appropriate={result.is_appropriate} "
            f"confidence={result.confidence} length={length} "
            f"violations={dict(counts)}",
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def filtering_stats(self) -> dict[str, Any]:
        return {
            "patternsLoaded": self.tables.pattern_count(),
            "ageGroupsSupported": len(AgeGroup),
            "tablesSource": self.tables.source,
        }


# Singleton instance
_service_instance: ContentFilterService | None = None
_service_lock = threading.Lock()


def get_content_filter_service() -> ContentFilterService:
    """Get or create the global ContentFilterService instance."""
    global _service_instance

    with _service_lock:
        if _service_instance is None:
            _service_instance = ContentFilterService()
            logger.info("Created ContentFilterService singleton")
        return _service_instance


def reset_content_filter_service() -> None:
    """Reset the service singleton (for testing)."""
    global _service_instance
    with _service_lock:
        _service_instance = None


__all__ = [
    "FILTER_FAILURE_MESSAGE",
    "FILTER_FAILURE_WARNING",
    "ContentFilterService",
    "get_content_filter_service",
    "reset_content_filter_service",
]
