"""
Content Rewriter

Two ordered transforms over text:

1. Word substitution - personal information is replaced with a fixed
   placeholder, severe violent/adult spans are removed, profanity is
   softened and complex vocabulary is simplified for the age band.
2. Sentence splitting - sentences over the band's word ceiling are split
   at the comma or conjunction nearest their midpoint, or at the middle
   word boundary when they have neither.

Each transform is idempotent on its own output. Mixed categories applied
together are not guaranteed to be (a softened word can land inside a
sentence that is then split).
"""

import logging
import re
from collections.abc import Iterable

from ..core.policy import PolicyTables, get_default_tables
from ..core.types import (
    AgeGroup,
    Severity,
    Suggestion,
    SuggestionType,
    Violation,
    ViolationType,
)
from .complexity_analyzer import tokenize

logger = logging.getLogger(__name__)

# Sentence body followed by its terminal punctuation; concatenation of all
# chunks reproduces the input exactly. A dot between digits is not a terminal
_SENTENCE_CHUNK = re.compile(r"(?:[^.!?]|(?<=\d)\.(?=\d))+[.!?]*|[.!?]+")

# Conjunctions where a sentence may be split; the first group is dropped
_DROPPED_CONJUNCTIONS = frozenset({"and", "but", "so", "or", "then"})
_KEPT_CONJUNCTIONS = frozenset({"because", "which", "while", "although", "when"})
_CONJUNCTIONS = _DROPPED_CONJUNCTIONS | _KEPT_CONJUNCTIONS


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _capitalize_first(text: str) -> str:
    for index, char in enumerate(text):
        if char.isalpha():
            return text[:index] + char.upper() + text[index + 1 :]
    return text


def _phrase_pattern(phrase: str) -> str:
    body = r"\s+".join(re.escape(piece) for piece in phrase.split())
    # \b only makes sense next to word characters
    prefix = r"\b" if re.match(r"\w", phrase) else ""
    suffix = r"\b" if re.search(r"\w$", phrase) else ""
    return prefix + body + suffix


class ContentRewriter:
    """Applies substitutions and sentence splitting; no per-call state."""

    def __init__(self, tables: PolicyTables | None = None):
        self.tables = tables or get_default_tables()

    def rewrite(
        self,
        text: str,
        findings: Iterable[Violation | Suggestion],
        age_group: AgeGroup,
        max_sentence_words: int | None = None,
    ) -> str:
        """
        Rewrite text for the violations or suggestions found in it.

        Args:
            text: Original text
            findings: Violations and/or suggestions that triggered the rewrite
            age_group: Band whose vocabulary and ceilings apply
            max_sentence_words: Sentence ceiling (defaults to the band standard)

        Returns:
            Rewritten text; the input itself when nothing applies
        """
        findings = list(findings)
        if not text or not findings:
            return text

        if max_sentence_words is None:
            max_sentence_words = self.tables.language_standards[
                age_group
            ].max_words_per_sentence

        redact: list[str] = []
        remove: list[str] = []
        soften = False
        simplify = False
        split = False

        for finding in findings:
            if isinstance(finding, Violation):
                if finding.type is ViolationType.PERSONAL_INFORMATION:
                    redact.append(finding.original_text)
                elif finding.type is ViolationType.INAPPROPRIATE_LANGUAGE:
                    soften = True
                elif finding.type in (
                    ViolationType.VIOLENCE,
                    ViolationType.ADULT_TOPICS,
                ) and finding.severity >= Severity.HIGH:
                    remove.append(finding.original_text)
                elif finding.type is ViolationType.COMPLEX_LANGUAGE:
                    simplify = True
                    split = True
            elif finding.type is SuggestionType.SENTENCE_STRUCTURE:
                split = True
            else:
                simplify = True

        result = text
        if redact:
            result = self.replace_phrases(result, redact, self.tables.pii_placeholder)
        if remove:
            result = self.replace_phrases(
                result, remove, self.tables.removed_placeholder
            )
        if soften:
            result = self.soften_language(result)
        if simplify:
            result = self.simplify_vocabulary(result, age_group)
        if split:
            result = self.split_long_sentences(result, max_sentence_words)
        return result

    # =========================================================================
    # SUBSTITUTION
    # =========================================================================

    @staticmethod
    def replace_phrases(text: str, phrases: Iterable[str], placeholder: str) -> str:
        """Replace every occurrence of the given phrases with ``placeholder``."""
        unique = sorted({p for p in phrases if p and p.strip()}, key=len, reverse=True)
        if not unique:
            return text
        pattern = re.compile("|".join(_phrase_pattern(p) for p in unique), re.IGNORECASE)
        return pattern.sub(placeholder, text)

    def soften_language(self, text: str) -> str:
        """Replace profanity with milder words or a placeholder."""
        pattern = re.compile(
            "|".join(
                _phrase_pattern(word)
                for word in sorted(self.tables.profanity, key=len, reverse=True)
            ),
            re.IGNORECASE,
        )

        def substitute(match: re.Match) -> str:
            word = " ".join(match.group(0).lower().split())
            replacement = self.tables.profanity_replacements.get(word)
            if replacement is None:
                return self.tables.profanity_placeholder
            return _match_case(match.group(0), replacement)

        return pattern.sub(substitute, text)

    def simplify_vocabulary(self, text: str, age_group: AgeGroup) -> str:
        """Swap complex words for the band's simpler synonyms."""
        words = [
            word
            for word in self.tables.simplifications
            if self.tables.simplification_for(word, age_group)
        ]
        if not words:
            return text
        pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True)) + r")\b",
            re.IGNORECASE,
        )

        def substitute(match: re.Match) -> str:
            replacement = self.tables.simplification_for(match.group(0), age_group)
            return _match_case(match.group(0), replacement)

        return pattern.sub(substitute, text)

    # =========================================================================
    # SENTENCE SPLITTING
    # =========================================================================

    def split_long_sentences(self, text: str, max_words: int) -> str:
        """Split every sentence longer than ``max_words``; others are kept verbatim."""
        pieces = []
        for chunk in _SENTENCE_CHUNK.findall(text):
            body = chunk.rstrip(".!?")
            punctuation = chunk[len(body) :]
            if len(tokenize(body)) <= max_words:
                pieces.append(chunk)
                continue

            leading = body[: len(body) - len(body.lstrip())]
            parts = self._split_sentence(body.strip(), max_words)
            if len(parts) == 1:
                pieces.append(chunk)
                continue

            terminal = punctuation or "."
            sentences = [_capitalize_first(part) for part in parts]
            pieces.append(leading + ". ".join(sentences) + terminal)
        return "".join(pieces)

    def _split_sentence(self, sentence: str, max_words: int) -> list[str]:
        tokens = sentence.split()
        if len(tokenize(sentence)) <= max_words:
            return [sentence]

        point = self._split_point(tokens)
        if point is None:
            return [sentence]

        index, drop = point
        left_tokens = tokens[:index]
        right_tokens = tokens[index + 1 :] if drop else tokens[index:]
        while len(left_tokens) > 1 and left_tokens[-1].lower().strip(",;:") in _CONJUNCTIONS:
            left_tokens.pop()
        left_tokens[-1] = left_tokens[-1].rstrip(",;:")

        left = " ".join(left_tokens)
        right = " ".join(right_tokens)
        return self._split_sentence(left, max_words) + self._split_sentence(
            right, max_words
        )

    @staticmethod
    def _split_point(tokens: list[str]) -> tuple[int, bool] | None:
        """Index to split before (and whether that token is dropped), nearest the middle."""
        candidates = []
        for index in range(2, len(tokens) - 1):
            word = tokens[index].lower().strip(",;:")
            previous = tokens[index - 1]
            if word in _DROPPED_CONJUNCTIONS:
                if len(tokens) - index - 1 >= 2:
                    candidates.append((index, True))
            elif word in _KEPT_CONJUNCTIONS or previous.endswith((",", ";")):
                candidates.append((index, False))

        if not candidates:
            # No natural break: fall back to the word boundary nearest the middle
            if len(tokens) < 2:
                return None
            return len(tokens) // 2, False
        middle = len(tokens) / 2
        return min(candidates, key=lambda c: abs(c[0] - middle))
