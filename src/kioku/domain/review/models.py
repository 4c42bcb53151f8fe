"""
Domain models for spaced-repetition review state.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum

from kioku.domain.cards.models import (
    CardSummary,
    LearningProgressSnapshot,
    UserPreferences,
)
from kioku.domain.constants import (
    CORRECT_QUALITY_THRESHOLD,
    DEFAULT_EASE_FACTOR,
    INITIAL_INTERVAL,
    MAX_DIFFICULTY_ADJUSTMENT,
    MAX_EASE_FACTOR,
    MIN_DIFFICULTY_ADJUSTMENT,
    MIN_EASE_FACTOR,
)
from kioku.domain.errors import InvalidInputError


class ReviewQuality(IntEnum):
    """Ordinal quality of a learner's answer (0-5, where 3+ is correct)."""

    BLACKOUT = 0
    INCORRECT_EASY = 1
    INCORRECT_HARD = 2
    CORRECT_HARD = 3
    CORRECT_HESITANT = 4
    CORRECT_EASY = 5

    @property
    def is_correct(self) -> bool:
        return self.value >= CORRECT_QUALITY_THRESHOLD

    @property
    def description(self) -> str:
        return _QUALITY_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: "int | ReviewQuality") -> "ReviewQuality":
        """
        Coerce a raw integer into a ReviewQuality.

        Raises:
            InvalidInputError: If the value is outside 0..5.
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(
                f"Quality must be between 0 and 5, got {value!r}"
            ) from None


_QUALITY_DESCRIPTIONS: dict[ReviewQuality, str] = {
    ReviewQuality.BLACKOUT: "Complete blackout - no memory of the answer",
    ReviewQuality.INCORRECT_EASY: "Incorrect response but answer seemed easy",
    ReviewQuality.INCORRECT_HARD: "Incorrect response and answer seemed hard",
    ReviewQuality.CORRECT_HARD: "Correct response but with serious difficulty",
    ReviewQuality.CORRECT_HESITANT: "Correct response but with some hesitation",
    ReviewQuality.CORRECT_EASY: "Correct response with perfect recall",
}


@dataclass(frozen=True)
class ReviewRecord:
    """
    Spaced-repetition state for one (user, card) pair.

    Attributes:
        user_id: Owner of the record.
        card_id: Catalog card this record tracks.
        next_review_at: When the card becomes due again.
        repetition_count: Consecutive correct answers; reset on failure.
        ease_factor: Interval growth multiplier, within [1.3, 4.0].
        interval_days: Days between the last review and the next one (>= 1).
        last_reviewed_at: Time of the most recent review, None if never reviewed.
        correct_streak: Current run of correct answers.
        total_reviews: Lifetime number of reviews.
        average_response_time_ms: Running mean of answer latency.
        difficulty_adjustment: Accumulated difficulty bias, within [-1.0, 1.0].
    """

    user_id: str
    card_id: str
    next_review_at: datetime
    repetition_count: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = INITIAL_INTERVAL
    last_reviewed_at: datetime | None = None
    correct_streak: int = 0
    total_reviews: int = 0
    average_response_time_ms: int = 0
    difficulty_adjustment: float = 0.0

    def __post_init__(self):
        if not MIN_EASE_FACTOR <= self.ease_factor <= MAX_EASE_FACTOR:
            raise InvalidInputError(
                f"Ease factor must be within [{MIN_EASE_FACTOR}, {MAX_EASE_FACTOR}], "
                f"got {self.ease_factor}"
            )
        if self.interval_days < 1:
            raise InvalidInputError("Interval must be at least 1 day")
        if self.repetition_count < 0:
            raise InvalidInputError("Repetition count cannot be negative")
        if self.correct_streak < 0:
            raise InvalidInputError("Correct streak cannot be negative")
        if self.total_reviews < 0:
            raise InvalidInputError("Total reviews cannot be negative")
        if self.average_response_time_ms < 0:
            raise InvalidInputError("Average response time cannot be negative")
        if not (
            MIN_DIFFICULTY_ADJUSTMENT
            <= self.difficulty_adjustment
            <= MAX_DIFFICULTY_ADJUSTMENT
        ):
            raise InvalidInputError(
                f"Difficulty adjustment must be within [-1.0, 1.0], "
                f"got {self.difficulty_adjustment}"
            )

    @classmethod
    def new(cls, user_id: str, card_id: str, now: datetime) -> "ReviewRecord":
        """Default state for a card the learner has never reviewed."""
        return cls(user_id=user_id, card_id=card_id, next_review_at=now)


@dataclass
class LearnerProfile:
    """
    Everything the host application stores for one learner.

    This is the unit the persistence port loads and saves; the engine itself
    only ever sees the individual pieces.
    """

    user_id: str
    cards: list[CardSummary] = field(default_factory=list)
    records: list[ReviewRecord] = field(default_factory=list)
    progress: LearningProgressSnapshot = field(default_factory=LearningProgressSnapshot)
    preferences: UserPreferences | None = None

    def record_for(self, card_id: str) -> ReviewRecord | None:
        for record in self.records:
            if record.card_id == card_id:
                return record
        return None

    def put_record(self, record: ReviewRecord) -> None:
        """Insert or replace the record for ``record.card_id``."""
        for i, existing in enumerate(self.records):
            if existing.card_id == record.card_id:
                self.records[i] = record
                return
        self.records.append(record)
