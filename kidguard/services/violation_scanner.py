"""
Violation Scanner
=================

Detects safety-policy violations in a text for one age band. Each category
is an independent pass over the same input; every pass runs, and the
results are concatenated in a fixed order:

1. inappropriate_language - profanity / negative-word lexicon
2. violence               - threat phrases and graphic words
3. personal_information   - phone, email, address and ID patterns
4. adult_topics           - age-scoped topic keyword lists
5. emotional_content      - intensity-scored emotional keywords
6. complex_language       - sentence length and word syllable ceilings

The scanner is fail-closed: an internal fault produces a single synthetic
critical violation instead of a partial (and possibly clean) list.
"""

import logging
import re
from collections.abc import Iterable

from ..core.policy import PolicyTables, TopicRule, get_default_tables
from ..core.types import AgeGroup, FilterContext, Severity, Violation, ViolationType
from .complexity_analyzer import count_syllables, split_sentences, tokenize

logger = logging.getLogger(__name__)

SCAN_FAILURE_DESCRIPTION = "Content filtering error - blocked for safety"

# (pattern, severity, description)
_PII_PATTERNS: tuple[tuple[str, Severity, str], ...] = (
    (
        # Bounded runs, anchored at the start of the local part
        r"(?<![A-Za-z0-9._%+-])[A-Za-z0-9._%+-]{1,64}@[A-Za-z0-9.-]{1,253}\.[A-Za-z]{2,24}",
        Severity.HIGH,
        "Email address detected",
    ),
    (r"(?<!\d)\d{3}-\d{2}-\d{4}(?!\d)", Severity.HIGH, "ID number detected"),
    (
        r"(?<!\d)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)",
        Severity.HIGH,
        "Phone number detected",
    ),
    (r"(?<!\d)\d{3}[-.]\d{4}(?!\d)", Severity.HIGH, "Phone number detected"),
    (
        r"\b\d{1,5}\s+(?:[A-Za-z]+\s+){1,3}"
        r"(?:street|st|avenue|ave|road|rd|lane|ln|drive|dr|court|ct|boulevard|blvd)\b",
        Severity.MEDIUM,
        "Street address detected",
    ),
    (
        r"\b(?:social\s+security\s+number|ssn|passport\s+number|"
        r"credit\s+card\s+number|home\s+address)\b",
        Severity.MEDIUM,
        "Request for identifying information detected",
    ),
)


def _alternation(phrases: Iterable[str]) -> str:
    """Word-boundary regex alternation; multi-word phrases allow any spacing."""
    ordered = sorted(set(phrases), key=len, reverse=True)
    parts = [r"\s+".join(re.escape(piece) for piece in p.split()) for p in ordered]
    return r"\b(?:" + "|".join(parts) + r")\b"


def _normalize(phrase: str) -> str:
    return " ".join(phrase.lower().split())


def context_matches(context: FilterContext | None, subjects: Iterable[str]) -> bool:
    """True when the subject or learning objective names one of ``subjects``."""
    if context is None:
        return False
    haystack = context.text
    if not haystack:
        return False
    return any(
        re.search(r"\b" + re.escape(subject) + r"\b", haystack) for subject in subjects
    )


def scan_failure() -> Violation:
    """Synthetic critical violation returned when scanning fails."""
    return Violation(
        type=ViolationType.ADULT_TOPICS,
        severity=Severity.CRITICAL,
        description=SCAN_FAILURE_DESCRIPTION,
        original_text="",
    )


def is_scan_failure(violation: Violation) -> bool:
    return (
        violation.severity is Severity.CRITICAL
        and violation.description == SCAN_FAILURE_DESCRIPTION
    )


class ViolationScanner:
    """
    Pure per-call scanner over immutable policy tables.

    Patterns are compiled once at construction; ``scan`` keeps no state
    between calls, so one instance can serve concurrent requests.
    """

    def __init__(self, tables: PolicyTables | None = None):
        self.tables = tables or get_default_tables()
        flags = re.IGNORECASE

        self._profanity = re.compile(_alternation(self.tables.profanity), flags)
        self._threats = re.compile(
            _alternation(self.tables.threat_verbs)
            + r"\s+"
            + _alternation(self.tables.threat_targets)
            + r"|\bbeat\s+(?:you|u|him|her|them)\s+up\b",
            flags,
        )
        self._graphic = re.compile(_alternation(self.tables.graphic_violence), flags)
        self._pii = tuple(
            (re.compile(pattern, flags), severity, description)
            for pattern, severity, description in _PII_PATTERNS
        )
        self._topics = tuple(
            (rule, re.compile(_alternation(rule.keywords), flags))
            for rule in self.tables.topics
        )
        self._emotions = re.compile(_alternation(self.tables.emotions), flags)

    def scan(
        self,
        text: str,
        age_group: AgeGroup,
        context: FilterContext | None = None,
    ) -> list[Violation]:
        """
        Scan text for violations.

        Args:
            text: Sanitized text
            age_group: Band whose thresholds apply
            context: Optional educational context

        Returns:
            Violations from every pass, or a single synthetic critical
            violation if any pass failed
        """
        passes = (
            self._scan_language,
            self._scan_violence,
            self._scan_personal_information,
            self._scan_adult_topics,
            self._scan_emotional_content,
            self._scan_complex_language,
        )
        violations: list[Violation] = []
        try:
            for scan_pass in passes:
                violations.extend(scan_pass(text, age_group, context))
        except Exception as e:
            logger.error(
                f"Violation scan failed for {getattr(age_group, 'value', age_group)}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            return [scan_failure()]
        return violations

    # =========================================================================
    # PASSES
    # =========================================================================

    def _scan_language(self, text, age_group, context) -> list[Violation]:
        violations = []
        for match in self._profanity.finditer(text):
            word = _normalize(match.group(0))
            violations.append(
                Violation(
                    type=ViolationType.INAPPROPRIATE_LANGUAGE,
                    severity=self.tables.profanity[word],
                    description="Inappropriate language detected",
                    original_text=match.group(0),
                    span=match.span(),
                )
            )
        return violations

    def _scan_violence(self, text, age_group, context) -> list[Violation]:
        violations = []
        threat_spans = []
        for match in self._threats.finditer(text):
            threat_spans.append(match.span())
            violations.append(
                Violation(
                    type=ViolationType.VIOLENCE,
                    severity=Severity.HIGH,
                    description="Threatening or harmful language detected",
                    original_text=match.group(0),
                    span=match.span(),
                )
            )

        severity = self.tables.graphic_violence_severity[age_group]
        for match in self._graphic.finditer(text):
            start, end = match.span()
            if any(s <= start and end <= e for s, e in threat_spans):
                continue
            violations.append(
                Violation(
                    type=ViolationType.VIOLENCE,
                    severity=severity,
                    description="Violent content detected",
                    original_text=match.group(0),
                    span=match.span(),
                )
            )
        return violations

    def _scan_personal_information(self, text, age_group, context) -> list[Violation]:
        found: list[tuple[int, int, Severity, str]] = []
        for pattern, severity, description in self._pii:
            for match in pattern.finditer(text):
                found.append((match.start(), match.end(), severity, description))

        # Longest match wins where patterns overlap (a 7-digit phone inside a 10-digit one)
        found.sort(key=lambda item: (item[0], -(item[1] - item[0])))
        violations = []
        covered_until = -1
        for start, end, severity, description in found:
            if start < covered_until:
                continue
            covered_until = end
            violations.append(
                Violation(
                    type=ViolationType.PERSONAL_INFORMATION,
                    severity=severity,
                    description=description,
                    original_text=text[start:end],
                    span=(start, end),
                )
            )
        return violations

    def _scan_adult_topics(self, text, age_group, context) -> list[Violation]:
        violations = []
        for rule, pattern in self._topics:
            severity = self._topic_severity(rule, age_group, context)
            if severity is None:
                continue
            seen = set()
            for match in pattern.finditer(text):
                keyword = _normalize(match.group(0))
                if keyword in seen:
                    continue
                seen.add(keyword)
                violations.append(
                    Violation(
                        type=ViolationType.ADULT_TOPICS,
                        severity=severity,
                        description=f"Topic not suitable for this age group ({rule.name})",
                        original_text=match.group(0),
                        span=match.span(),
                    )
                )
        return violations

    def _topic_severity(
        self, rule: TopicRule, age_group: AgeGroup, context: FilterContext | None
    ) -> Severity | None:
        if rule.educational_subjects and context_matches(
            context, rule.educational_subjects
        ):
            return rule.severity_for(age_group.relaxed())
        return rule.severity_for(age_group)

    def _scan_emotional_content(self, text, age_group, context) -> list[Violation]:
        thresholds = self.tables.filter_thresholds[age_group]
        if thresholds.emotional_intensity_limit is None:
            return []

        intensity, words = self.emotional_intensity(text)
        if intensity < thresholds.emotional_intensity_limit:
            return []

        return [
            Violation(
                type=ViolationType.EMOTIONAL_CONTENT,
                severity=thresholds.emotional_severity or Severity.LOW,
                description=f"Strong emotional content (intensity {intensity})",
                original_text=", ".join(words),
            )
        ]

    def emotional_intensity(self, text: str) -> tuple[int, list[str]]:
        """Summed intensity of emotional keywords and the distinct words found."""
        intensity = 0
        words: list[str] = []
        for match in self._emotions.finditer(text):
            word = match.group(0).lower()
            intensity += self.tables.emotions[word][1]
            if word not in words:
                words.append(word)
        return intensity, words

    def _scan_complex_language(self, text, age_group, context) -> list[Violation]:
        thresholds = self.tables.filter_thresholds[age_group]
        violations = []

        for sentence in split_sentences(text):
            if len(tokenize(sentence)) > thresholds.max_sentence_words:
                violations.append(
                    Violation(
                        type=ViolationType.COMPLEX_LANGUAGE,
                        severity=Severity.MEDIUM,
                        description="Sentence is too long for this age group",
                        original_text=sentence,
                    )
                )

        limit = thresholds.max_syllables_per_word
        seen = set()
        for word in tokenize(text):
            lowered = word.lower()
            if lowered in seen:
                continue
            syllables = count_syllables(word)
            if syllables <= limit:
                continue
            seen.add(lowered)
            violations.append(
                Violation(
                    type=ViolationType.COMPLEX_LANGUAGE,
                    severity=Severity.MEDIUM if syllables > limit * 1.5 else Severity.LOW,
                    description="Word may be too complex for this age group",
                    original_text=word,
                )
            )
        return violations


__all__ = [
    "SCAN_FAILURE_DESCRIPTION",
    "ViolationScanner",
    "context_matches",
    "is_scan_failure",
    "scan_failure",
]
