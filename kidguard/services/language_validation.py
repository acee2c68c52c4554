"""
Language Validation Service - Readability Stage

Checks whether a text reads at the right level for an age band:

- classifies the readability score against the band's threshold table
- checks sentence length, syllables per word and vocabulary complexity
- ranks suggestions (high when the issue blocks appropriateness)
- always returns ``adjusted_content`` from the ContentRewriter

Subjects on the curriculum allow-list are judged one band older. Faults
degrade to a best-effort verdict that returns the original text.
"""

import logging
import threading
from typing import Any

from ..core.policy import LanguageStandards, PolicyTables, get_default_tables
from ..core.types import (
    AgeGroup,
    ComplexityLevel,
    FilterContext,
    LanguageMetrics,
    LanguageValidationResult,
    Priority,
    Suggestion,
    SuggestionType,
)
from ..utils.sanitizer import sanitize_text
from .complexity_analyzer import ComplexityAnalyzer, split_sentences, tokenize
from .content_rewriter import ContentRewriter
from .violation_scanner import context_matches

logger = logging.getLogger(__name__)

# Long sentences are tolerated up to this multiple of the band ceiling
SENTENCE_LENGTH_TOLERANCE = 1.5


class LanguageValidationService:
    """Readability stage of the filtering engine."""

    def __init__(
        self,
        tables: PolicyTables | None = None,
        analyzer: ComplexityAnalyzer | None = None,
        rewriter: ContentRewriter | None = None,
    ):
        self.tables = tables or get_default_tables()
        self.analyzer = analyzer or ComplexityAnalyzer(self.tables)
        self.rewriter = rewriter or ContentRewriter(self.tables)

    def effective_age_group(
        self, age_group: AgeGroup, context: FilterContext | None
    ) -> AgeGroup:
        """Band whose standards apply, after the curriculum override."""
        if context_matches(context, self.tables.curriculum_subjects):
            return age_group.relaxed()
        return age_group

    def validate_language(
        self,
        text: Any,
        age_group: AgeGroup | str,
        context: FilterContext | dict | None = None,
    ) -> LanguageValidationResult:
        """
        Validate text complexity for an age band.

        Args:
            text: Text to validate
            age_group: Target band
            context: Optional educational context (subject, learning objective)

        Returns:
            LanguageValidationResult with ranked suggestions and adjusted content
        """
        clean = sanitize_text(text)
        try:
            age = AgeGroup(age_group)
            if not isinstance(context, FilterContext):
                context = FilterContext.from_mapping(context)
            band = self.effective_age_group(age, context)
            standards = self.tables.language_standards[band]

            metrics = self.analyzer.analyze(clean)
            score = self.analyzer.readability_score(metrics)
            if metrics.word_count == 0:
                return LanguageValidationResult(
                    is_appropriate=True,
                    complexity_level=ComplexityLevel.VERY_EASY,
                    readability_score=score,
                    metrics=metrics,
                    adjusted_content=clean,
                )

            level = standards.classify(score)
            problems = self._blocking_problems(metrics, level, standards)
            suggestions = self.generate_suggestions(
                clean, metrics, level, band, problems
            )
            adjusted = self.rewriter.rewrite(
                clean, suggestions, band, standards.max_words_per_sentence
            )

            result = LanguageValidationResult(
                is_appropriate=not problems,
                complexity_level=level,
                readability_score=score,
                metrics=metrics,
                suggestions=tuple(suggestions),
                adjusted_content=adjusted,
            )
        except Exception as e:
            logger.error(
                f"Language validation failed: {type(e).__name__}: {e}", exc_info=True
            )
            return LanguageValidationResult(
                is_appropriate=False,
                complexity_level=ComplexityLevel.VERY_HARD,
                readability_score=0.0,
                metrics=LanguageMetrics(),
                adjusted_content=clean,
            )

        logger.debug(
            f"Language validation age_group={age.value} band={band.value} "
            f"level={level.value} score={score} appropriate={result.is_appropriate} "
            f"suggestions={len(suggestions)}"
        )
        return result

    @staticmethod
    def _blocking_problems(
        metrics: LanguageMetrics,
        level: ComplexityLevel,
        standards: LanguageStandards,
    ) -> set[SuggestionType]:
        """Suggestion types whose issue makes the text inappropriate."""
        problems = set()
        if level.rank > standards.tolerance.rank:
            problems.add(SuggestionType.CONCEPT_SIMPLIFICATION)
        if (
            metrics.average_words_per_sentence
            > standards.max_words_per_sentence * SENTENCE_LENGTH_TOLERANCE
        ):
            problems.add(SuggestionType.SENTENCE_STRUCTURE)
        if (
            metrics.vocabulary_complexity > standards.max_vocabulary_complexity
            or metrics.average_syllables_per_word > standards.max_syllables_per_word
        ):
            problems.add(SuggestionType.VOCABULARY)
        return problems

    def generate_suggestions(
        self,
        text: str,
        metrics: LanguageMetrics,
        level: ComplexityLevel,
        band: AgeGroup,
        problems: set[SuggestionType],
    ) -> list[Suggestion]:
        """Ranked suggestions, highest priority first."""
        standards = self.tables.language_standards[band]
        suggestions = []

        long_sentences = [
            s
            for s in split_sentences(text)
            if len(tokenize(s)) > standards.max_words_per_sentence
        ]
        if SuggestionType.SENTENCE_STRUCTURE in problems or long_sentences:
            suggestions.append(
                Suggestion(
                    type=SuggestionType.SENTENCE_STRUCTURE,
                    priority=(
                        Priority.HIGH
                        if SuggestionType.SENTENCE_STRUCTURE in problems
                        else Priority.MEDIUM
                    ),
                    description=(
                        f"Break sentences into {standards.max_words_per_sentence} "
                        f"words or fewer (average is "
                        f"{metrics.average_words_per_sentence:.1f})"
                    ),
                    original_text=long_sentences[0] if long_sentences else "",
                )
            )

        complex_words = self.analyzer.complex_words(text)
        if SuggestionType.VOCABULARY in problems or complex_words:
            replacements = []
            for word in complex_words:
                simpler = self.tables.simplification_for(word, band)
                if simpler:
                    replacements.append(f"{word} -> {simpler}")
            suggestions.append(
                Suggestion(
                    type=SuggestionType.VOCABULARY,
                    priority=(
                        Priority.HIGH
                        if SuggestionType.VOCABULARY in problems
                        else Priority.LOW
                    ),
                    description="Use simpler words"
                    + (f": {', '.join(complex_words[:5])}" if complex_words else ""),
                    original_text=", ".join(complex_words[:5]),
                    suggested_text="; ".join(replacements[:5]),
                )
            )

        if (
            SuggestionType.CONCEPT_SIMPLIFICATION in problems
            or metrics.conceptual_complexity > 0
        ):
            suggestions.append(
                Suggestion(
                    type=SuggestionType.CONCEPT_SIMPLIFICATION,
                    priority=(
                        Priority.HIGH
                        if SuggestionType.CONCEPT_SIMPLIFICATION in problems
                        else Priority.LOW
                    ),
                    description=(
                        f"Reading level is {level.value} ({metrics.reading_level}); "
                        f"aim for {standards.target_reading_level} with concrete examples"
                    ),
                )
            )

        return sorted(suggestions, key=lambda s: s.priority.rank)


# Singleton instance
_service_instance: LanguageValidationService | None = None
_service_lock = threading.Lock()


def get_language_validation_service() -> LanguageValidationService:
    """Get or create the global LanguageValidationService instance."""
    global _service_instance

    with _service_lock:
        if _service_instance is None:
            _service_instance = LanguageValidationService()
            logger.info("Created LanguageValidationService singleton")
        return _service_instance


def reset_language_validation_service() -> None:
    """Reset the service singleton (for testing)."""
    global _service_instance
    with _service_lock:
        _service_instance = None
