"""
Domain types shared by the safety and readability stages.

All records are immutable and created fresh per call. ``to_dict()`` renders
the camelCase shape used on the wire.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AgeGroup(str, Enum):
    """Age bands, ordered from most to least restrictive."""

    AGES_6_TO_9 = "ages6to9"
    AGES_10_TO_13 = "ages10to13"
    AGES_14_TO_16 = "ages14to16"

    @property
    def rank(self) -> int:
        return _AGE_ORDER.index(self)

    def relaxed(self) -> "AgeGroup":
        """Next less restrictive band; the oldest band relaxes to itself."""
        return _AGE_ORDER[min(self.rank + 1, len(_AGE_ORDER) - 1)]

    @classmethod
    def parse(cls, value: Any) -> "AgeGroup | None":
        """Parse a loose value into an AgeGroup, returning None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip())
            except ValueError:
                return None
        return None


_AGE_ORDER = (AgeGroup.AGES_6_TO_9, AgeGroup.AGES_10_TO_13, AgeGroup.AGES_14_TO_16)


class ViolationType(str, Enum):
    """Categories of safety-policy violations."""

    INAPPROPRIATE_LANGUAGE = "inappropriate_language"
    VIOLENCE = "violence"
    PERSONAL_INFORMATION = "personal_information"
    ADULT_TOPICS = "adult_topics"
    EMOTIONAL_CONTENT = "emotional_content"
    COMPLEX_LANGUAGE = "complex_language"


class Severity(str, Enum):
    """Violation severity, ordered."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __ge__(self, other):
        if isinstance(other, Severity):
            return self.rank >= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, Severity):
            return self.rank > other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, Severity):
            return self.rank <= other.rank
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, Severity):
            return self.rank < other.rank
        return NotImplemented


_SEVERITY_ORDER = (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)


class ComplexityLevel(str, Enum):
    """Readability classification, easiest first."""

    VERY_EASY = "very_easy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"

    @property
    def rank(self) -> int:
        return list(ComplexityLevel).index(self)


class SuggestionType(str, Enum):
    VOCABULARY = "vocabulary"
    SENTENCE_STRUCTURE = "sentence_structure"
    CONCEPT_SIMPLIFICATION = "concept_simplification"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)


@dataclass(frozen=True)
class FilterContext:
    """Optional educational context supplied with a message."""

    subject: str | None = None
    learning_objective: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "FilterContext":
        if not data:
            return cls()
        subject = data.get("subject")
        objective = data.get("learningObjective", data.get("learning_objective"))
        return cls(
            subject=subject if isinstance(subject, str) else None,
            learning_objective=objective if isinstance(objective, str) else None,
        )

    @property
    def text(self) -> str:
        """Lowercased subject and objective joined for keyword matching."""
        return " ".join(
            part for part in (self.subject, self.learning_objective) if part
        ).lower()


@dataclass(frozen=True)
class Violation:
    """A single detected issue."""

    type: ViolationType
    severity: Severity
    description: str
    original_text: str
    span: tuple[int, int] | None = None

    def summary(self) -> dict[str, str]:
        """Type, severity and description only; no detection internals."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
        }

    def to_dict(self) -> dict[str, Any]:
        return {**self.summary(), "originalText": self.original_text}


@dataclass(frozen=True)
class ContentFilterResult:
    """Verdict of the safety stage."""

    is_appropriate: bool
    filtered_content: str
    violations: tuple[Violation, ...] = ()
    confidence: float = 1.0
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "isAppropriate": self.is_appropriate,
            "filteredContent": self.filtered_content,
            "violations": [v.to_dict() for v in self.violations],
            "confidence": self.confidence,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class LanguageMetrics:
    """Lexical and readability measurements for a text."""

    average_words_per_sentence: float = 0.0
    average_syllables_per_word: float = 0.0
    vocabulary_complexity: float = 0.0
    time_to_read_seconds: int = 0
    reading_level: str = "Unknown"
    word_count: int = 0
    sentence_count: int = 0
    sentence_complexity: float = 0.0
    conceptual_complexity: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "averageWordsPerSentence": self.average_words_per_sentence,
            "averageSyllablesPerWord": self.average_syllables_per_word,
            "vocabularyComplexity": self.vocabulary_complexity,
            "timeToReadSeconds": self.time_to_read_seconds,
            "readingLevel": self.reading_level,
            "wordCount": self.word_count,
            "sentenceCount": self.sentence_count,
            "sentenceComplexity": self.sentence_complexity,
            "conceptualComplexity": self.conceptual_complexity,
        }


@dataclass(frozen=True)
class Suggestion:
    """A ranked recommendation for simplifying text."""

    type: SuggestionType
    priority: Priority
    description: str
    original_text: str = ""
    suggested_text: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "description": self.description,
            "originalText": self.original_text,
            "suggestedText": self.suggested_text,
        }


@dataclass(frozen=True)
class LanguageValidationResult:
    """Verdict of the readability stage."""

    is_appropriate: bool
    complexity_level: ComplexityLevel
    readability_score: float
    metrics: LanguageMetrics
    suggestions: tuple[Suggestion, ...] = field(default_factory=tuple)
    adjusted_content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "isAppropriate": self.is_appropriate,
            "complexityLevel": self.complexity_level.value,
            "readabilityScore": self.readability_score,
            "metrics": self.metrics.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "adjustedContent": self.adjusted_content,
        }
