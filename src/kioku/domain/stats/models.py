"""
Domain models for learning analytics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum

from kioku.domain.cards.models import JlptLevel, VocabularyTopic
from kioku.domain.constants import DEFAULT_EASE_FACTOR, DEFAULT_WINDOW_DAYS


class LearningPattern(str, Enum):
    CONSISTENT_IMPROVEMENT = "consistent_improvement"
    RETENTION_ISSUES = "retention_issues"
    FAST_LEARNER = "fast_learner"
    NEEDS_MORE_PRACTICE = "needs_more_practice"


class StudyRecommendationKind(str, Enum):
    REDUCE_SESSION_SIZE = "reduce_session_size"
    INCREASE_DIFFICULTY = "increase_difficulty"
    FOCUS_ON_REVIEW = "focus_on_review"
    ADD_NEW_CONTENT = "add_new_content"
    INCREASE_FREQUENCY = "increase_frequency"
    MAINTAIN_ROUTINE = "maintain_routine"
    FOCUS_ON_TOPIC = "focus_on_topic"


class RecommendationPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


@dataclass(frozen=True)
class PerformanceSnapshot:
    """
    Summary of a learner's recent performance.

    Attributes:
        total_reviews: Sum of total_reviews across the analysed records.
        accuracy: Streak-based accuracy proxy (sum of streaks / sum of reviews).
        average_ease_factor: Mean ease factor; 2.5 when there is no data.
        average_mastery: Mean mastery level (0.0-1.0).
        average_response_time_ms: Mean of the per-record running averages.
        learning_velocity: Cards mastered per day of the analysis window.
        retention_rate: Share of multi-review cards whose streak is alive.
        patterns: Detected learning patterns, in declaration order.
        window_days: Size of the analysis window.
    """

    total_reviews: int = 0
    accuracy: float = 0.0
    average_ease_factor: float = DEFAULT_EASE_FACTOR
    average_mastery: float = 0.0
    average_response_time_ms: int = 0
    learning_velocity: float = 0.0
    retention_rate: float = 0.0
    patterns: list[LearningPattern] = field(default_factory=list)
    window_days: int = DEFAULT_WINDOW_DAYS


@dataclass(frozen=True)
class CategoryPerformance:
    total_cards: int = 0
    mastered_cards: int = 0
    average_mastery: float = 0.0
    average_ease_factor: float = DEFAULT_EASE_FACTOR
    total_reviews: int = 0
    average_response_time_ms: int = 0


@dataclass(frozen=True)
class CategoryBreakdown:
    """Performance grouped by vocabulary topic and by JLPT level."""

    by_topic: dict[VocabularyTopic, CategoryPerformance] = field(default_factory=dict)
    by_level: dict[JlptLevel, CategoryPerformance] = field(default_factory=dict)

    def weakest_topic(self) -> tuple[VocabularyTopic, CategoryPerformance] | None:
        if not self.by_topic:
            return None
        return min(self.by_topic.items(), key=lambda item: item[1].average_mastery)


@dataclass(frozen=True)
class StudyRecommendation:
    kind: StudyRecommendationKind
    title: str
    description: str
    priority: RecommendationPriority


@dataclass(frozen=True)
class DailyStudyRecord:
    user_id: str
    date: date
    cards_studied: int
    time_spent_minutes: int
    accuracy: float
    timestamp: datetime
