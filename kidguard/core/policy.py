"""
Policy Tables - Age-Banded Reference Data
=========================================

Every lexicon, topic list, threshold table and substitution dictionary used
by the filtering engine lives in one frozen ``PolicyTables`` value. Tables
are built once per engine instance and never mutated afterwards, so several
engines (per tenant, per test) can coexist without interfering.

Severity -> block mapping (adult_topics / violence always block for the two
younger bands regardless of severity; everything else blocks at >= high):

    category                  ages6to9   ages10to13  ages14to16
    violence (threat phrase)  high       high        high
    violence (graphic word)   high       high        medium
    adult: sexual             critical   critical    high
    adult: substances         critical   high        medium
    adult: self harm          critical   critical    high
    adult: romance            high       medium      -
    adult: war                high       medium      -
    adult: finance            medium     -           -
    adult: mature themes      medium     -           -

An educational context matching a topic's allow-list evaluates that topic
one band older.

Tables can be extended from a JSON file (see ``PolicyTables.from_file``).
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .types import AgeGroup, ComplexityLevel, Severity

logger = logging.getLogger(__name__)

A6, A10, A14 = AgeGroup.AGES_6_TO_9, AgeGroup.AGES_10_TO_13, AgeGroup.AGES_14_TO_16
LOW, MEDIUM, HIGH, CRITICAL = (
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)

PII_PLACEHOLDER = "[personal information removed]"
REMOVED_PLACEHOLDER = "[removed]"
PROFANITY_PLACEHOLDER = "[inappropriate word]"


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TopicRule:
    """Age-scoped keyword list for one adult topic."""

    name: str
    keywords: tuple[str, ...]
    # None means the topic is allowed for that band
    severity: Mapping[AgeGroup, Severity | None]
    educational_subjects: frozenset[str] = frozenset()

    def severity_for(self, age_group: AgeGroup) -> Severity | None:
        return self.severity.get(age_group)


@dataclass(frozen=True)
class FilterThresholds:
    """Per-band ceilings used by the safety stage."""

    max_sentence_words: int
    max_syllables_per_word: int
    # Emotional intensity at which a violation is raised; None = tolerated
    emotional_intensity_limit: int | None
    emotional_severity: Severity | None
    # Intensity at which a tolerated band still gets a warning
    emotional_warning_limit: int = 6


@dataclass(frozen=True)
class LanguageStandards:
    """Per-band readability targets used by the readability stage."""

    max_words_per_sentence: int
    max_syllables_per_word: float
    max_vocabulary_complexity: float
    # Minimum readability score for very_easy, easy, medium, hard
    level_thresholds: tuple[float, float, float, float]
    tolerance: ComplexityLevel
    target_reading_level: str

    def classify(self, readability_score: float) -> ComplexityLevel:
        very_easy, easy, medium, hard = self.level_thresholds
        if readability_score >= very_easy:
            return ComplexityLevel.VERY_EASY
        if readability_score >= easy:
            return ComplexityLevel.EASY
        if readability_score >= medium:
            return ComplexityLevel.MEDIUM
        if readability_score >= hard:
            return ComplexityLevel.HARD
        return ComplexityLevel.VERY_HARD


# =============================================================================
# DEFAULT LEXICONS
# =============================================================================

_PROFANITY: dict[str, Severity] = {
    # Mild, family-context words: softened, never blocking
    "boring": LOW,
    "lame": LOW,
    "sucks": LOW,
    "hate": LOW,
    "stupid": MEDIUM,
    "dumb": MEDIUM,
    "idiot": MEDIUM,
    "loser": MEDIUM,
    "jerk": MEDIUM,
    "shut up": MEDIUM,
    "damn": MEDIUM,
    "hell": MEDIUM,
    "crap": MEDIUM,
    "piss": MEDIUM,
    # Profanity and slurs
    "fuck": HIGH,
    "fucking": HIGH,
    "shit": HIGH,
    "bitch": HIGH,
    "bastard": HIGH,
    "asshole": HIGH,
    "retard": HIGH,
    "kill yourself": CRITICAL,
    "kys": CRITICAL,
}

_PROFANITY_REPLACEMENTS: dict[str, str] = {
    "boring": "not exciting",
    "lame": "not great",
    "sucks": "is not great",
    "hate": "dislike",
    "stupid": "silly",
    "dumb": "confused",
    "idiot": "person",
    "loser": "friend",
    "jerk": "person",
    "shut up": "please be quiet",
    "damn": "darn",
    "hell": "heck",
    "crap": "stuff",
}

_THREAT_VERBS: tuple[str, ...] = (
    "kill",
    "hurt",
    "fight",
    "punch",
    "kick",
    "attack",
    "stab",
    "shoot",
    "slap",
    "choke",
    "beat up",
)

_THREAT_TARGETS: tuple[str, ...] = ("you", "u", "him", "her", "them", "your family")

_GRAPHIC_VIOLENCE: tuple[str, ...] = (
    "kill",
    "kills",
    "killed",
    "killing",
    "murder",
    "murdered",
    "blood",
    "bloody",
    "gore",
    "weapon",
    "weapons",
    "gun",
    "guns",
    "knife",
    "knives",
    "bomb",
    "bombs",
    "stabbed",
    "shooting",
    "torture",
)

_GRAPHIC_VIOLENCE_SEVERITY = {A6: HIGH, A10: HIGH, A14: MEDIUM}

_TOPICS: tuple[TopicRule, ...] = (
    TopicRule(
        name="sexual",
        keywords=("sex", "sexual", "porn", "pornography", "nude", "naked"),
        severity=_frozen({A6: CRITICAL, A10: CRITICAL, A14: HIGH}),
    ),
    TopicRule(
        name="self_harm",
        keywords=("suicide", "self-harm", "self harm", "kill myself", "cut myself"),
        severity=_frozen({A6: CRITICAL, A10: CRITICAL, A14: HIGH}),
    ),
    TopicRule(
        name="substances",
        keywords=(
            "alcohol",
            "beer",
            "wine",
            "vodka",
            "drunk",
            "drug",
            "drugs",
            "cigarette",
            "cigarettes",
            "smoking",
            "vape",
            "vaping",
            "weed",
            "marijuana",
            "cocaine",
            "gambling",
            "casino",
        ),
        severity=_frozen({A6: CRITICAL, A10: HIGH, A14: MEDIUM}),
    ),
    TopicRule(
        name="romance",
        keywords=(
            "romantic",
            "romance",
            "dating",
            "boyfriend",
            "girlfriend",
            "kissing",
            "divorce",
        ),
        severity=_frozen({A6: HIGH, A10: MEDIUM, A14: None}),
        educational_subjects=frozenset({"health", "literature"}),
    ),
    TopicRule(
        name="war",
        keywords=("war", "wars", "warfare", "battle", "battles", "conflict", "invasion"),
        severity=_frozen({A6: HIGH, A10: MEDIUM, A14: None}),
        educational_subjects=frozenset(
            {"history", "social studies", "civics", "geography", "current events"}
        ),
    ),
    TopicRule(
        name="finance",
        keywords=(
            "money",
            "finance",
            "financial",
            "salary",
            "debt",
            "mortgage",
            "loan",
            "loans",
            "credit",
            "investment",
            "investing",
            "stock market",
            "taxes",
        ),
        severity=_frozen({A6: MEDIUM, A10: None, A14: None}),
        educational_subjects=frozenset(
            {"math", "mathematics", "economics", "financial literacy"}
        ),
    ),
    TopicRule(
        name="mature_themes",
        keywords=("death", "dying", "funeral", "horror", "politics", "political", "religion"),
        severity=_frozen({A6: MEDIUM, A10: None, A14: None}),
        educational_subjects=frozenset({"history", "social studies", "civics", "science"}),
    ),
)

# word -> (emotion, intensity)
_EMOTIONS: dict[str, tuple[str, int]] = {
    "scared": ("fear", 2),
    "afraid": ("fear", 2),
    "terrified": ("fear", 3),
    "frightened": ("fear", 2),
    "panic": ("fear", 3),
    "terror": ("fear", 3),
    "nightmare": ("fear", 2),
    "sad": ("sadness", 1),
    "depressed": ("sadness", 3),
    "crying": ("sadness", 2),
    "tears": ("sadness", 1),
    "grief": ("sadness", 3),
    "devastated": ("sadness", 3),
    "hopeless": ("sadness", 3),
    "lonely": ("sadness", 2),
    "angry": ("anger", 2),
    "furious": ("anger", 3),
    "rage": ("anger", 3),
    "mad": ("anger", 1),
    "annoyed": ("anger", 1),
    "frustrated": ("anger", 1),
    "worried": ("anxiety", 1),
    "anxious": ("anxiety", 2),
    "nervous": ("anxiety", 1),
    "stressed": ("anxiety", 2),
    "overwhelmed": ("anxiety", 2),
}

_HEDGING_MARKERS: tuple[str, ...] = (
    "could potentially",
    "might",
    "maybe",
    "perhaps",
    "possibly",
    "not sure",
    "may be",
)

_FILTER_THRESHOLDS = {
    A6: FilterThresholds(
        max_sentence_words=15,
        max_syllables_per_word=3,
        emotional_intensity_limit=3,
        emotional_severity=MEDIUM,
    ),
    A10: FilterThresholds(
        max_sentence_words=25,
        max_syllables_per_word=4,
        emotional_intensity_limit=5,
        emotional_severity=LOW,
    ),
    A14: FilterThresholds(
        max_sentence_words=35,
        max_syllables_per_word=6,
        emotional_intensity_limit=None,
        emotional_severity=None,
    ),
}

_LANGUAGE_STANDARDS = {
    A6: LanguageStandards(
        max_words_per_sentence=10,
        max_syllables_per_word=2.0,
        max_vocabulary_complexity=0.2,
        level_thresholds=(90.0, 80.0, 70.0, 60.0),
        tolerance=ComplexityLevel.MEDIUM,
        target_reading_level="3rd Grade",
    ),
    A10: LanguageStandards(
        max_words_per_sentence=15,
        max_syllables_per_word=2.5,
        max_vocabulary_complexity=0.3,
        level_thresholds=(80.0, 70.0, 60.0, 50.0),
        tolerance=ComplexityLevel.MEDIUM,
        target_reading_level="6th Grade",
    ),
    A14: LanguageStandards(
        max_words_per_sentence=20,
        max_syllables_per_word=3.0,
        max_vocabulary_complexity=0.45,
        level_thresholds=(70.0, 60.0, 50.0, 40.0),
        tolerance=ComplexityLevel.MEDIUM,
        target_reading_level="9th Grade",
    ),
}

# Subjects that count as on-curriculum for the readability override
_CURRICULUM_SUBJECTS = frozenset(
    {
        "math",
        "mathematics",
        "science",
        "biology",
        "chemistry",
        "physics",
        "reading",
        "english",
        "spelling",
        "writing",
        "history",
        "geography",
        "social studies",
        "civics",
        "economics",
        "art",
        "music",
        "technology",
        "computer science",
    }
)

_SIMPLE_WORDS = frozenset(
    """a an and are as at be by for from has he in is it its of on that the to
    was will with you your have they we she her his him me my our us them their
    this these those what where when why how can could would should may might
    must do does did go goes went get got make made take took come came see saw
    know knew think thought say said tell told ask asked work worked play played
    help helped want wanted need needed like liked love loved big small good bad
    happy sad fun easy hard new old young fast slow cat dog sun run ran home""".split()
)

_COMMON_WORDS = frozenset(
    """about above across after again against all almost alone along already
    also although always among another any anyone anything around because become
    before began begin being below between both bring brought called change
    children complete country course during each early every example family feel
    find first found friend give great group hand head high house however
    important information interest large last later learn least leave left less
    let life line little long look many member money month more most move much
    name never next night nothing now number often once only open order other
    over own part people place point problem program public question really right
    room same school second seem several show since social some something
    sometimes still study system table than then there thing three through time
    today together turn under until upon use used using very water way well were
    while white without word words world write written year years""".split()
)

_COMPLEX_WORDS = frozenset(
    """analyze analysis analytical synthesize synthesis hypothesize hypothesis
    contemplate elaborate distinguish fundamental comprehensive simultaneously
    consequently nevertheless furthermore specifically particularly
    approximately significantly paradigm paradigms sophisticated methodology
    methodologies epistemological ontological phenomenological heuristic
    dialectical hermeneutic teleological multifaceted necessitate necessitates
    theoretical empirical implementation substantial considerable alternative
    framework frameworks evaluate evaluation interpret interpretation demonstrate
    investigate determine establish utilize facilitate subsequently phenomena
    phenomenon systematically expeditiously domicile traversed""".split()
)

# complex word -> replacement per band (None keeps the word for that band)
_SIMPLIFICATIONS: dict[str, tuple[str | None, str | None, str | None]] = {
    "analyze": ("look at", "study", "examine"),
    "analysis": ("close look", "study", None),
    "synthesize": ("put together", "combine", "bring together"),
    "evaluate": ("decide if good", "judge", "assess"),
    "comprehensive": ("complete", "thorough", "detailed"),
    "simultaneously": ("at the same time", "at once", "together"),
    "fundamental": ("basic", "important", "essential"),
    "approximately": ("about", "about", "roughly"),
    "consequently": ("so", "so", "as a result"),
    "nevertheless": ("but", "still", "still"),
    "furthermore": ("also", "also", "also"),
    "specifically": ("exactly", "exactly", None),
    "significantly": ("a lot", "greatly", None),
    "utilize": ("use", "use", "use"),
    "demonstrate": ("show", "show", None),
    "demonstrates": ("shows", "shows", None),
    "methodology": ("way", "method", "method"),
    "methodologies": ("ways", "methods", "methods"),
    "necessitate": ("need", "need", "require"),
    "necessitates": ("needs", "needs", "requires"),
    "sophisticated": ("fancy", "advanced", None),
    "facilitate": ("help", "help", None),
    "investigate": ("look into", "look into", None),
    "determine": ("find out", "figure out", None),
    "phenomena": ("things that happen", "events", None),
    "phenomenon": ("thing that happens", "event", None),
    "hypothesis": ("guess", "prediction", None),
    "hypothesize": ("guess", "predict", None),
    "systematically": ("step by step", "step by step", None),
    "expeditiously": ("quickly", "quickly", "quickly"),
    "domicile": ("home", "home", "home"),
    "paradigm": ("way of thinking", "model", "model"),
    "multifaceted": ("many-sided", "complex", None),
    "subsequently": ("later", "later", "later"),
    "contemplate": ("think about", "think about", None),
}

_BAND_INDEX = {A6: 0, A10: 1, A14: 2}


# =============================================================================
# TABLES
# =============================================================================


@dataclass(frozen=True)
class PolicyTables:
    """Immutable reference data for one engine instance."""

    profanity: Mapping[str, Severity]
    profanity_replacements: Mapping[str, str]
    threat_verbs: tuple[str, ...]
    threat_targets: tuple[str, ...]
    graphic_violence: tuple[str, ...]
    graphic_violence_severity: Mapping[AgeGroup, Severity]
    topics: tuple[TopicRule, ...]
    emotions: Mapping[str, tuple[str, int]]
    hedging_markers: tuple[str, ...]
    filter_thresholds: Mapping[AgeGroup, FilterThresholds]
    language_standards: Mapping[AgeGroup, LanguageStandards]
    curriculum_subjects: frozenset[str]
    simple_words: frozenset[str]
    common_words: frozenset[str]
    complex_words: frozenset[str]
    simplifications: Mapping[str, tuple[str | None, str | None, str | None]]
    pii_placeholder: str = PII_PLACEHOLDER
    removed_placeholder: str = REMOVED_PLACEHOLDER
    profanity_placeholder: str = PROFANITY_PLACEHOLDER
    source: str = field(default="builtin", compare=False)

    @classmethod
    def default(cls) -> "PolicyTables":
        """Built-in tables."""
        return cls(
            profanity=_frozen(_PROFANITY),
            profanity_replacements=_frozen(_PROFANITY_REPLACEMENTS),
            threat_verbs=_THREAT_VERBS,
            threat_targets=_THREAT_TARGETS,
            graphic_violence=_GRAPHIC_VIOLENCE,
            graphic_violence_severity=_frozen(_GRAPHIC_VIOLENCE_SEVERITY),
            topics=_TOPICS,
            emotions=_frozen(_EMOTIONS),
            hedging_markers=_HEDGING_MARKERS,
            filter_thresholds=_frozen(_FILTER_THRESHOLDS),
            language_standards=_frozen(_LANGUAGE_STANDARDS),
            curriculum_subjects=_CURRICULUM_SUBJECTS,
            simple_words=_SIMPLE_WORDS,
            common_words=_COMMON_WORDS,
            complex_words=_COMPLEX_WORDS,
            simplifications=_frozen(_SIMPLIFICATIONS),
        )

    @classmethod
    def from_file(cls, path: Path | str | None) -> "PolicyTables":
        """
        Load the built-in tables and overlay entries from a JSON file.

        Recognised keys::

            {
              "profanity": {"word": "low|medium|high|critical"},
              "profanity_replacements": {"word": "replacement"},
              "complex_words": ["word", ...],
              "simplifications": {"word": ["6to9", "10to13", "14to16 or null"]},
              "curriculum_subjects": ["subject", ...],
              "topic_keywords": {"topic name": ["keyword", ...]}
            }

        Missing or malformed files are logged and the defaults are returned.
        """
        tables = cls.default()
        if path is None:
            return tables

        config_path = Path(path)
        if not config_path.exists():
            logger.warning(f"Policy tables file not found: {config_path}")
            return tables

        try:
            with open(config_path, encoding="utf-8") as f:
                overlay = json.load(f)
            tables = tables.merged(overlay)
            logger.info(f"Loaded policy tables from {config_path}")
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Failed to load policy tables from {config_path}: {e}")
            return cls.default()

        return replace(tables, source=str(config_path))

    def merged(self, overlay: Mapping[str, Any]) -> "PolicyTables":
        """Return a new instance with ``overlay`` entries added."""
        profanity = dict(self.profanity)
        for word, severity in overlay.get("profanity", {}).items():
            profanity[word.lower()] = Severity(severity)

        replacements = dict(self.profanity_replacements)
        replacements.update(
            {k.lower(): v for k, v in overlay.get("profanity_replacements", {}).items()}
        )

        simplifications = dict(self.simplifications)
        for word, options in overlay.get("simplifications", {}).items():
            if isinstance(options, str):
                options = [options, options, None]
            if len(options) != 3:
                raise ValueError(f"simplification for '{word}' needs three entries")
            simplifications[word.lower()] = tuple(options)

        topic_keywords = overlay.get("topic_keywords", {})
        topics = tuple(
            replace(
                rule,
                keywords=rule.keywords
                + tuple(k.lower() for k in topic_keywords.get(rule.name, ())),
            )
            for rule in self.topics
        )

        return replace(
            self,
            profanity=_frozen(profanity),
            profanity_replacements=_frozen(replacements),
            complex_words=self.complex_words
            | frozenset(w.lower() for w in overlay.get("complex_words", ())),
            simplifications=_frozen(simplifications),
            curriculum_subjects=self.curriculum_subjects
            | frozenset(s.lower() for s in overlay.get("curriculum_subjects", ())),
            topics=topics,
        )

    def simplification_for(self, word: str, age_group: AgeGroup) -> str | None:
        """Simpler replacement of ``word`` for the band, if one exists."""
        options = self.simplifications.get(word.lower())
        if options is None:
            return None
        return options[_BAND_INDEX[age_group]]

    def pattern_count(self) -> int:
        """Number of lexicon entries, used for stats reporting."""
        return (
            len(self.profanity)
            + len(self.threat_verbs)
            + len(self.graphic_violence)
            + sum(len(rule.keywords) for rule in self.topics)
            + len(self.emotions)
        )


_default_tables: PolicyTables | None = None


def get_default_tables() -> PolicyTables:
    """Shared built-in tables (immutable, safe to share)."""
    global _default_tables
    if _default_tables is None:
        _default_tables = PolicyTables.default()
    return _default_tables
