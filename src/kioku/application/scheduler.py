"""
Review scheduler: the per-card spaced-repetition state machine.

An SM-2 variant with response-time and streak adjustments. This is a pure
computation module with no I/O; the current time is always passed in.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta

from kioku.domain.constants import (
    INITIAL_INTERVAL,
    MAX_DIFFICULTY_ADJUSTMENT,
    MAX_EASE_FACTOR,
    MIN_DIFFICULTY_ADJUSTMENT,
    MIN_EASE_FACTOR,
    SECOND_INTERVAL,
)
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import ReviewQuality, ReviewRecord

logger = logging.getLogger(__name__)

# Difficulty nudges keyed by answer quality.
_QUALITY_NUDGE: dict[ReviewQuality, float] = {
    ReviewQuality.BLACKOUT: 0.2,
    ReviewQuality.INCORRECT_EASY: 0.2,
    ReviewQuality.INCORRECT_HARD: 0.1,
    ReviewQuality.CORRECT_HARD: 0.0,
    ReviewQuality.CORRECT_HESITANT: -0.05,
    ReviewQuality.CORRECT_EASY: -0.1,
}


class Scheduler:
    """
    Computes the next ReviewRecord after a review event.

    Stateless and side-effect free.
    """

    def update(
        self,
        record: ReviewRecord,
        quality: int | ReviewQuality,
        response_time_ms: int,
        now: datetime,
    ) -> ReviewRecord:
        """
        Apply one review outcome to a record.

        Args:
            record: Current state of the (user, card) pair.
            quality: Answer quality, 0-5.
            response_time_ms: Answer latency; 0 means "not measured".
            now: Time of the review.

        Returns:
            A new ReviewRecord; the input is left untouched.

        Raises:
            InvalidInputError: If quality is outside 0..5 or the response time
                is negative.
        """
        q = ReviewQuality.parse(quality)
        if response_time_ms < 0:
            raise InvalidInputError("Response time cannot be negative")

        ease = self._next_ease(record.ease_factor, q)
        interval = self._next_interval(record, q, ease)

        if q.is_correct:
            streak = record.correct_streak + 1
            repetitions = record.repetition_count + 1
        else:
            streak = 0
            repetitions = 0

        average = self._next_average_response(record, response_time_ms)
        adjustment = self._next_difficulty_adjustment(
            record, q, response_time_ms, streak, average
        )

        logger.debug(
            f"Card {record.card_id}: q={int(q)} ease {record.ease_factor:.2f}->{ease:.2f} "
            f"interval {record.interval_days}->{interval}"
        )

        return replace(
            record,
            repetition_count=repetitions,
            ease_factor=ease,
            interval_days=interval,
            next_review_at=now + timedelta(days=interval),
            last_reviewed_at=now,
            correct_streak=streak,
            total_reviews=record.total_reviews + 1,
            average_response_time_ms=average,
            difficulty_adjustment=adjustment,
        )

    def first_review(
        self,
        user_id: str,
        card_id: str,
        quality: int | ReviewQuality,
        response_time_ms: int,
        now: datetime,
    ) -> ReviewRecord:
        """
        Create the record for a card reviewed for the first time.

        Starts from the default state and applies the regular transition once.
        """
        return self.update(
            ReviewRecord.new(user_id, card_id, now), quality, response_time_ms, now
        )

    def _next_ease(self, ease: float, q: ReviewQuality) -> float:
        if q.is_correct:
            miss = 5 - int(q)
            ease = ease + 0.1 - miss * (0.08 + miss * 0.02)
        else:
            ease = ease - 0.2
        return min(MAX_EASE_FACTOR, max(MIN_EASE_FACTOR, ease))

    def _next_interval(self, record: ReviewRecord, q: ReviewQuality, ease: float) -> int:
        if not q.is_correct:
            return INITIAL_INTERVAL
        if record.repetition_count == 0:
            return INITIAL_INTERVAL
        if record.repetition_count == 1:
            return SECOND_INTERVAL
        return max(1, _round_half_up(record.interval_days * ease))

    def _next_average_response(self, record: ReviewRecord, response_time_ms: int) -> int:
        if response_time_ms <= 0:
            return record.average_response_time_ms
        total = record.total_reviews
        return (record.average_response_time_ms * total + response_time_ms) // (total + 1)

    def _next_difficulty_adjustment(
        self,
        record: ReviewRecord,
        q: ReviewQuality,
        response_time_ms: int,
        streak: int,
        average_response_ms: int,
    ) -> float:
        adjustment = record.difficulty_adjustment + _QUALITY_NUDGE[q]

        if response_time_ms > 0 and average_response_ms > 0:
            ratio = response_time_ms / average_response_ms
            if ratio > 2.0:
                adjustment += 0.1
            elif ratio > 1.5:
                adjustment += 0.05
            elif ratio < 0.5:
                adjustment -= 0.05
            elif ratio < 0.7:
                adjustment -= 0.02

        if streak >= 10:
            adjustment -= 0.1
        elif streak >= 5:
            adjustment -= 0.05
        elif streak == 0 and record.total_reviews > 3:
            adjustment += 0.1

        return min(MAX_DIFFICULTY_ADJUSTMENT, max(MIN_DIFFICULTY_ADJUSTMENT, adjustment))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
