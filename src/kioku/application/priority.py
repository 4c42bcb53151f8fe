"""
Priority ranking for review records and unseen cards.

Pure scoring functions; nothing here mutates its inputs or reads the clock.
"""

import random
from datetime import datetime

from kioku.domain.cards.models import (
    CardSummary,
    JlptLevel,
    LearningProgressSnapshot,
    VocabularyTopic,
)
from kioku.domain.constants import (
    DEFAULT_EASE_FACTOR,
    MASTERY_EASE_CEILING,
    MASTERY_EASE_FLOOR,
    MASTERY_INTERVAL_CAP_DAYS,
    NEW_CARD_JITTER,
    SECONDS_PER_DAY,
)
from kioku.domain.review.models import ReviewRecord

# Bonus favouring easier levels when introducing new cards.
LEVEL_BONUS: dict[JlptLevel, float] = {
    JlptLevel.N5: 2.0,
    JlptLevel.N4: 1.5,
    JlptLevel.N3: 1.0,
    JlptLevel.N2: 0.5,
    JlptLevel.N1: 0.0,
}

TOPIC_PRIORITY: dict[VocabularyTopic, float] = {
    VocabularyTopic.COMMON_EXPRESSIONS: 1.0,
    VocabularyTopic.DAILY_LIFE: 1.0,
    VocabularyTopic.NUMBERS: 0.9,
    VocabularyTopic.COLORS: 0.9,
    VocabularyTopic.FAMILY: 0.8,
    VocabularyTopic.FOOD: 0.8,
    VocabularyTopic.SCHOOL: 0.7,
    VocabularyTopic.TRAVEL: 0.7,
    VocabularyTopic.TECHNOLOGY: 0.6,
    VocabularyTopic.ANIME: 0.6,
    VocabularyTopic.BODY_PARTS: 0.5,
    VocabularyTopic.ANIMALS: 0.5,
    VocabularyTopic.WEATHER: 0.5,
    VocabularyTopic.CLOTHES: 0.5,
}

# Level priority by progress band: (upper bound of band, table).
_LEVEL_PRIORITY_BANDS: list[tuple[float, dict[JlptLevel, float]]] = [
    (
        0.3,
        {
            JlptLevel.N5: 1.0,
            JlptLevel.N4: 0.3,
            JlptLevel.N3: 0.1,
            JlptLevel.N2: 0.1,
            JlptLevel.N1: 0.1,
        },
    ),
    (
        0.7,
        {
            JlptLevel.N5: 0.8,
            JlptLevel.N4: 1.0,
            JlptLevel.N3: 0.4,
            JlptLevel.N2: 0.1,
            JlptLevel.N1: 0.1,
        },
    ),
    (
        float("inf"),
        {
            JlptLevel.N5: 0.3,
            JlptLevel.N4: 0.6,
            JlptLevel.N3: 1.0,
            JlptLevel.N2: 0.7,
            JlptLevel.N1: 0.4,
        },
    ),
]


def is_due(record: ReviewRecord, now: datetime) -> bool:
    """A record is due once its next review time has arrived."""
    return record.next_review_at <= now


def overdue_days(record: ReviewRecord, now: datetime) -> int:
    """Whole days elapsed since the record became due (0 if not overdue)."""
    if record.next_review_at >= now:
        return 0
    return int((now - record.next_review_at).total_seconds() // SECONDS_PER_DAY)


def due_score(record: ReviewRecord, now: datetime) -> float:
    """
    Urgency of a review (higher = more urgent), never negative.

    Overdue days dominate; hard cards (low ease, positive difficulty bias)
    rise and long correct streaks sink.
    """
    score = float(overdue_days(record, now))
    score += (DEFAULT_EASE_FACTOR - record.ease_factor) * 2
    score += record.difficulty_adjustment * 3
    score -= record.correct_streak * 0.1
    return max(0.0, score)


def mastery_level(record: ReviewRecord) -> float:
    """
    Estimated mastery of a card in [0, 1].

    Blends the streak ratio (50%), normalised ease (30%) and interval
    length capped at 30 days (20%).
    """
    if record.total_reviews == 0:
        return 0.0

    correct_rate = record.correct_streak / record.total_reviews
    ease_bonus = (record.ease_factor - MASTERY_EASE_FLOOR) / (
        MASTERY_EASE_CEILING - MASTERY_EASE_FLOOR
    )
    interval_bonus = min(record.interval_days / MASTERY_INTERVAL_CAP_DAYS, 1.0)

    mastery = correct_rate * 0.5 + ease_bonus * 0.3 + interval_bonus * 0.2
    return min(1.0, max(0.0, mastery))


def new_card_score(
    card: CardSummary,
    progress: LearningProgressSnapshot,
    rng: random.Random,
) -> float:
    """
    Priority of a card the learner has never seen.

    Args:
        card: Catalog entry to score.
        progress: Learner's per-level progress.
        rng: Per-call random source for the tie-breaking jitter.
    """
    score = 1.0
    score += (1.0 - progress.progress_for(card.level)) * 2
    score += LEVEL_BONUS[card.level]
    score += (3.0 - card.difficulty) * 0.5
    score += rng.random() * NEW_CARD_JITTER
    return score


def review_priority(record: ReviewRecord, now: datetime) -> float:
    """Display priority of a due card, in [0, 5]."""
    urgency = due_score(record, now)
    difficulty = max(0.0, 3.0 - record.ease_factor)
    weakness = 1.0 - mastery_level(record)
    return min(5.0, max(0.0, urgency * 0.5 + difficulty * 0.3 + weakness * 0.2))


def topic_priority(topic: VocabularyTopic) -> float:
    return TOPIC_PRIORITY[topic]


def level_priority(level: JlptLevel, progress: float) -> float:
    """Priority of a level given the learner's progress in that level."""
    for upper, table in _LEVEL_PRIORITY_BANDS:
        if progress < upper:
            return table[level]
    return _LEVEL_PRIORITY_BANDS[-1][1][level]
