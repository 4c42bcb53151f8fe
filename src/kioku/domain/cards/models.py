"""
Domain models for the card catalog and the learner's progress.

The catalog is owned by the caller; the engine only reads it.
"""

from dataclasses import dataclass, field
from enum import Enum

from kioku.domain.errors import InvalidInputError


class JlptLevel(str, Enum):
    """JLPT levels, declared easiest first."""

    N5 = "N5"
    N4 = "N4"
    N3 = "N3"
    N2 = "N2"
    N1 = "N1"

    @property
    def tier(self) -> int:
        """0-based difficulty tier (N5 = 0 ... N1 = 4)."""
        return _LEVEL_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return self.value

    def is_easier_than(self, other: "JlptLevel") -> bool:
        return self.tier < other.tier

    def is_harder_than(self, other: "JlptLevel") -> bool:
        return self.tier > other.tier


_LEVEL_ORDER = list(JlptLevel)


class VocabularyTopic(str, Enum):
    ANIME = "anime"
    BODY_PARTS = "body_parts"
    FOOD = "food"
    DAILY_LIFE = "daily_life"
    ANIMALS = "animals"
    SCHOOL = "school"
    TRAVEL = "travel"
    WEATHER = "weather"
    FAMILY = "family"
    TECHNOLOGY = "technology"
    CLOTHES = "clothes"
    COLORS = "colors"
    NUMBERS = "numbers"
    COMMON_EXPRESSIONS = "common_expressions"

    @property
    def display_name(self) -> str:
        return _TOPIC_DISPLAY_NAMES[self]


_TOPIC_DISPLAY_NAMES: dict[VocabularyTopic, str] = {
    VocabularyTopic.ANIME: "Anime",
    VocabularyTopic.BODY_PARTS: "Body Parts",
    VocabularyTopic.FOOD: "Food",
    VocabularyTopic.DAILY_LIFE: "Daily Life",
    VocabularyTopic.ANIMALS: "Animals",
    VocabularyTopic.SCHOOL: "School",
    VocabularyTopic.TRAVEL: "Travel",
    VocabularyTopic.WEATHER: "Weather",
    VocabularyTopic.FAMILY: "Family",
    VocabularyTopic.TECHNOLOGY: "Technology",
    VocabularyTopic.CLOTHES: "Clothes",
    VocabularyTopic.COLORS: "Colors",
    VocabularyTopic.NUMBERS: "Numbers",
    VocabularyTopic.COMMON_EXPRESSIONS: "Common Expressions",
}


class DifficultyPreference(str, Enum):
    EASY = "easy"
    BALANCED = "balanced"
    CHALLENGING = "challenging"


@dataclass(frozen=True)
class CardSummary:
    """
    Read-only catalog entry used as ranking input.

    Attributes:
        id: Stable card identifier.
        topic: Vocabulary topic of the card.
        level: JLPT level of the card.
        difficulty: Numeric difficulty weight (higher = harder).
    """

    id: str
    topic: VocabularyTopic
    level: JlptLevel
    difficulty: float = 1.0

    def __post_init__(self):
        if not self.id:
            raise InvalidInputError("Card id cannot be empty")


@dataclass(frozen=True)
class LearningProgressSnapshot:
    """Caller-owned aggregate of a learner's progress."""

    current_streak: int = 0
    level_progress: dict[JlptLevel, float] = field(default_factory=dict)
    flashcards_learned: int = 0
    quizzes_completed: int = 0
    total_study_time_minutes: int = 0

    def __post_init__(self):
        if self.current_streak < 0:
            raise InvalidInputError("Current streak cannot be negative")
        if self.flashcards_learned < 0 or self.quizzes_completed < 0:
            raise InvalidInputError("Progress counters cannot be negative")
        if self.total_study_time_minutes < 0:
            raise InvalidInputError("Total study time cannot be negative")
        if any(not 0.0 <= p <= 1.0 for p in self.level_progress.values()):
            raise InvalidInputError("Level progress must be between 0.0 and 1.0")

    def progress_for(self, level: JlptLevel) -> float:
        return self.level_progress.get(level, 0.0)


@dataclass(frozen=True)
class UserPreferences:
    """Optional learner preferences. Empty sets mean "no filter"."""

    preferred_topics: frozenset[VocabularyTopic] = frozenset()
    preferred_levels: frozenset[JlptLevel] = frozenset()
    max_session_size: int = 20
    preferred_study_time: int = 15  # minutes
    difficulty_preference: DifficultyPreference = DifficultyPreference.BALANCED

    def accepts(self, card: CardSummary) -> bool:
        return (not self.preferred_topics or card.topic in self.preferred_topics) and (
            not self.preferred_levels or card.level in self.preferred_levels
        )
