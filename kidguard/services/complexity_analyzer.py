"""
Complexity Analyzer

Lexical and readability metrics for a piece of text:
- sentence and word segmentation
- vowel-group syllable estimate
- vocabulary-complexity ratio from the curated word lists
- Flesch Reading Ease (higher = simpler) and Flesch-Kincaid grade
"""

import logging
import math
import re

from ..core.policy import PolicyTables, get_default_tables
from ..core.types import LanguageMetrics

logger = logging.getLogger(__name__)

# Letters only; digits and punctuation never form a word
WORD_PATTERN = re.compile(r"[^\W\d_]+(?:['’][^\W\d_]+)*")
# A dot between two digits is a decimal point, not a boundary
SENTENCE_BOUNDARY = re.compile(r"(?:[!?]|(?<!\d)\.|\.(?!\d))+")

_CLAUSE_MARKERS = re.compile(
    r"\b(and|or|but|because|although|however|therefore|moreover|furthermore)\b",
    re.IGNORECASE,
)

_ABSTRACT_MARKERS = (
    re.compile(
        r"\b(concept|theory|principle|philosophy|ideology|methodology)\b", re.IGNORECASE
    ),
    re.compile(r"\b(analyze|synthesize|evaluate|interpret|hypothesize)\b", re.IGNORECASE),
    re.compile(
        r"\b(therefore|consequently|nevertheless|furthermore|moreover)\b", re.IGNORECASE
    ),
    re.compile(
        r"\b(abstract|theoretical|empirical|fundamental|comprehensive)\b", re.IGNORECASE
    ),
)

_ORDINAL_SUFFIX = {1: "st", 2: "nd", 3: "rd"}

DEFAULT_READING_SPEED_WPM = 200


def tokenize(text: str) -> list[str]:
    """Words of ``text``; punctuation and digits are dropped."""
    return WORD_PATTERN.findall(text or "")


def split_sentences(text: str) -> list[str]:
    """Sentences of ``text`` that contain at least one word."""
    sentences = SENTENCE_BOUNDARY.split(text or "")
    return [s.strip() for s in sentences if WORD_PATTERN.search(s)]


def count_syllables(word: str) -> int:
    """
    Count syllables in a word (vowel-group heuristic).

    Short words count as one syllable, a trailing silent ``e`` is dropped
    and every word has at least one syllable.
    """
    cleaned = re.sub(r"[^a-z]", "", word.lower())
    if not cleaned:
        return 1 if word.strip() else 0
    if len(cleaned) <= 3:
        return 1

    count = len(re.findall(r"[aeiouy]+", cleaned))

    # Silent e, except consonant + "le" (table, little)
    if cleaned.endswith("e") and count > 1:
        if not (cleaned.endswith("le") and cleaned[-3] not in "aeiouy"):
            count -= 1

    return max(1, count)


def reading_level_for_grade(grade: float) -> str:
    """Map a Flesch-Kincaid grade to a reading level label."""
    if grade < 1:
        return "Kindergarten"
    if grade >= 13:
        return "College"
    whole = int(grade)
    return f"{whole}{_ORDINAL_SUFFIX.get(whole, 'th')} Grade"


class ComplexityAnalyzer:
    """Computes LanguageMetrics for text. Stateless between calls."""

    def __init__(
        self,
        tables: PolicyTables | None = None,
        reading_speed_wpm: int = DEFAULT_READING_SPEED_WPM,
    ):
        self.tables = tables or get_default_tables()
        self.reading_speed_wpm = reading_speed_wpm

    def analyze(self, text: str) -> LanguageMetrics:
        """
        Analyze text complexity.

        Args:
            text: Text to measure

        Returns:
            LanguageMetrics; all zero when the text has no words
        """
        words = tokenize(text)
        sentences = split_sentences(text)

        if not words or not sentences:
            return LanguageMetrics()

        total_syllables = sum(count_syllables(word) for word in words)
        avg_words = len(words) / len(sentences)
        avg_syllables = total_syllables / len(words)

        return LanguageMetrics(
            average_words_per_sentence=round(avg_words, 2),
            average_syllables_per_word=round(avg_syllables, 2),
            vocabulary_complexity=round(self.vocabulary_complexity(words), 3),
            time_to_read_seconds=math.ceil(len(words) * 60 / self.reading_speed_wpm),
            reading_level=reading_level_for_grade(
                self.grade_level(avg_words, avg_syllables)
            ),
            word_count=len(words),
            sentence_count=len(sentences),
            sentence_complexity=round(self.sentence_complexity(sentences), 2),
            conceptual_complexity=self.conceptual_complexity(text),
        )

    def readability_score(self, metrics: LanguageMetrics) -> float:
        """Flesch Reading Ease clamped to [0, 100]; 100 for empty text."""
        if metrics.word_count == 0:
            return 100.0
        score = (
            206.835
            - 1.015 * metrics.average_words_per_sentence
            - 84.6 * metrics.average_syllables_per_word
        )
        return round(max(0.0, min(100.0, score)), 2)

    @staticmethod
    def grade_level(avg_words_per_sentence: float, avg_syllables_per_word: float) -> float:
        """Flesch-Kincaid grade level."""
        return 0.39 * avg_words_per_sentence + 11.8 * avg_syllables_per_word - 15.59

    def is_complex_word(self, word: str) -> bool:
        lowered = word.lower()
        if lowered in self.tables.complex_words:
            return True
        if lowered in self.tables.simple_words or lowered in self.tables.common_words:
            return False
        return count_syllables(lowered) >= 4

    def vocabulary_complexity(self, words: list[str]) -> float:
        """Share of complex words, in [0, 1]."""
        if not words:
            return 0.0
        return sum(1 for word in words if self.is_complex_word(word)) / len(words)

    def complex_words(self, text: str) -> list[str]:
        """Distinct complex words in order of first appearance."""
        seen: dict[str, None] = {}
        for word in tokenize(text):
            if self.is_complex_word(word):
                seen.setdefault(word.lower(), None)
        return list(seen)

    def sentence_complexity(self, sentences: list[str]) -> float:
        if not sentences:
            return 0.0
        total = 0.0
        for sentence in sentences:
            clauses = sentence.count(",") + len(_CLAUSE_MARKERS.findall(sentence)) + 1
            total += len(tokenize(sentence)) * 0.1 + clauses * 0.5
        return total / len(sentences)

    def conceptual_complexity(self, text: str) -> float:
        """Abstract-concept marker density, capped at 10."""
        hits = sum(len(pattern.findall(text)) for pattern in _ABSTRACT_MARKERS)
        return min(10.0, hits * 0.5)
