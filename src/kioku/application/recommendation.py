"""
Recommendation engine for building study sessions.

Combines the scheduler's per-card state, the priority ranker and the
analytics engine into:
1. A session plan (due reviews first, then new cards)
2. Personalized card categories (review, new, challenge, reinforcement)
3. Session sizing and a textual learning summary
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeVar

from kioku.application.priority import (
    due_score,
    is_due,
    level_priority,
    mastery_level,
    new_card_score,
    review_priority,
    topic_priority,
)
from kioku.application.stats.analytics import AnalyticsEngine
from kioku.domain.cards.models import (
    CardSummary,
    JlptLevel,
    LearningProgressSnapshot,
    UserPreferences,
    VocabularyTopic,
)
from kioku.domain.constants import (
    BASE_SESSION_SIZE,
    CHALLENGE_MASTERY_GATE,
    CHALLENGE_MIN_DIFFICULTY,
    CHALLENGE_MIN_TIER,
    CHALLENGE_PRIORITY,
    DEFAULT_RECENT_ACCURACY,
    DEFAULT_WINDOW_DAYS,
    DUE_SESSION_PERCENT,
    MASTERED_THRESHOLD,
    MAX_CHALLENGE_RECOMMENDATIONS,
    MAX_DAILY_NEW_CARDS,
    MAX_NEW_RECOMMENDATIONS,
    MAX_REINFORCEMENT_RECOMMENDATIONS,
    MAX_REVIEW_RECOMMENDATIONS,
    MAX_SESSION_SIZE,
    MAX_WEAK_LEVELS,
    MAX_WEAK_TOPICS,
    MIN_SESSION_SIZE,
    REINFORCEMENT_MASTERY_CEILING,
    REINFORCEMENT_MIN_REVIEWS,
    SHUFFLE_CHUNK_SIZE,
    STRUGGLING_THRESHOLD,
)
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import ReviewRecord
from kioku.domain.stats.models import (
    CategoryBreakdown,
    PerformanceSnapshot,
    StudyRecommendation,
)

logger = logging.getLogger(__name__)

_Category = TypeVar("_Category", VocabularyTopic, JlptLevel)


class RecommendationKind(str, Enum):
    REVIEW = "review"
    NEW_CONTENT = "new_content"
    CHALLENGE = "challenge"
    REINFORCEMENT = "reinforcement"


class InsightKind(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    IMPROVEMENT_NEEDED = "improvement_needed"


@dataclass(frozen=True)
class RecommendedCard:
    card: CardSummary
    reason: str
    priority: float
    estimated_difficulty: float
    kind: RecommendationKind


@dataclass(frozen=True)
class PerformanceInsight:
    title: str
    description: str
    kind: InsightKind
    actionable: bool


@dataclass
class SessionPlan:
    """Result of session planning."""

    due_cards: list[CardSummary]  # Selected due cards, most urgent first
    new_cards: list[CardSummary]  # Selected new cards, highest priority first
    ordered: list[CardSummary]  # Presentation order (chunk-shuffled)

    @property
    def card_ids(self) -> list[str]:
        return [card.id for card in self.ordered]


@dataclass
class PersonalizedRecommendations:
    review_cards: list[RecommendedCard]
    new_cards: list[RecommendedCard]
    challenge_cards: list[RecommendedCard]
    reinforcement_cards: list[RecommendedCard]
    study_recommendations: list[StudyRecommendation]
    optimal_session_size: int
    insights: list[PerformanceInsight] = field(default_factory=list)


@dataclass
class LearningSummary:
    due_cards_count: int
    new_cards_recommended: int
    mastered_cards_count: int
    struggling_cards_count: int
    weak_topics: list[VocabularyTopic]
    weak_levels: list[JlptLevel]
    recommendations: list[str]
    optimal_session_size: int


class RecommendationEngine:
    """
    Orchestrates ranking and analytics over a learner's card population.

    Holds no per-learner state; every call works only on its arguments.
    """

    def __init__(self, analytics: AnalyticsEngine | None = None):
        """
        Args:
            analytics: Optional custom analytics engine; uses default if not provided.
        """
        self._analytics = analytics or AnalyticsEngine()

    def recommend(
        self,
        cards: list[CardSummary],
        records: list[ReviewRecord],
        progress: LearningProgressSnapshot,
        now: datetime,
        max_cards: int = 20,
        rng: random.Random | None = None,
    ) -> SessionPlan:
        """
        Pick the cards for the next study session.

        Due cards take up to 70% of ``max_cards``; the remaining slots go to
        new cards, never more than the daily new-card ceiling. The combined
        list is shuffled within chunks of three so the order varies while
        keeping coarse priority.

        Args:
            cards: Candidate catalog.
            records: The learner's review records.
            progress: The learner's progress snapshot.
            now: Reference time for due checks.
            max_cards: Session size limit (must be positive).
            rng: Random source for jitter and shuffling; a fresh one per call if omitted.

        Returns:
            SessionPlan with the selected due and new cards and their presentation order.
        """
        if max_cards <= 0:
            raise InvalidInputError(f"max_cards must be positive, got {max_cards}")
        rng = rng or random.Random()

        _index_cards(cards)
        record_map = _index_records(records)

        due: list[tuple[CardSummary, float]] = []
        new: list[tuple[CardSummary, float]] = []
        for card in cards:
            record = record_map.get(card.id)
            if record is None:
                new.append((card, new_card_score(card, progress, rng)))
            elif is_due(record, now):
                due.append((card, due_score(record, now)))

        due.sort(key=lambda pair: pair[1], reverse=True)
        new.sort(key=lambda pair: pair[1], reverse=True)

        max_due = max_cards * DUE_SESSION_PERCENT // 100
        due_cards = [card for card, _ in due[:max_due]]

        remaining = max_cards - len(due_cards)
        new_limit = min(remaining, MAX_DAILY_NEW_CARDS)
        new_cards = [card for card, _ in new[:new_limit]]

        logger.debug(
            f"Session plan: {len(due_cards)}/{len(due)} due, {len(new_cards)}/{len(new)} new"
        )

        return SessionPlan(
            due_cards=due_cards,
            new_cards=new_cards,
            ordered=_shuffle_in_chunks(due_cards + new_cards, rng),
        )

    def personalize(
        self,
        cards: list[CardSummary],
        records: list[ReviewRecord],
        progress: LearningProgressSnapshot,
        now: datetime,
        preferences: UserPreferences | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> PersonalizedRecommendations:
        """
        Build categorized recommendations plus study advice and insights.
        """
        card_map = _index_cards(cards)
        _index_records(records)

        snapshot = self._analytics.analyze(records, now, window_days)
        breakdown = self._analytics.analyze_by_category(records, cards)

        return PersonalizedRecommendations(
            review_cards=self._review_cards(records, card_map, now),
            new_cards=self._new_cards(cards, records, progress, preferences),
            challenge_cards=self._challenge_cards(cards, records),
            reinforcement_cards=self._reinforcement_cards(records, card_map),
            study_recommendations=self._analytics.generate_study_recommendations(
                snapshot, breakdown
            ),
            optimal_session_size=self.optimal_session_size(progress, records),
            insights=self._insights(snapshot, breakdown),
        )

    def optimal_session_size(
        self,
        progress: LearningProgressSnapshot,
        records: list[ReviewRecord],
    ) -> int:
        """
        Recommended number of cards for the next session, within [5, 25].

        Scales a base of 10 by the learner's streak and by the mean
        streak-to-reviews ratio of their records.
        """
        streak = progress.current_streak
        if streak >= 7:
            streak_factor = 1.5
        elif streak >= 3:
            streak_factor = 1.2
        elif streak == 0:
            streak_factor = 0.8
        else:
            streak_factor = 1.0

        if records:
            ratios = [r.correct_streak / max(1, r.total_reviews) for r in records]
            accuracy = sum(ratios) / len(ratios)
        else:
            accuracy = DEFAULT_RECENT_ACCURACY

        if accuracy >= 0.9:
            accuracy_factor = 1.3
        elif accuracy >= 0.7:
            accuracy_factor = 1.0
        elif accuracy >= 0.5:
            accuracy_factor = 0.8
        else:
            accuracy_factor = 0.6

        size = int(BASE_SESSION_SIZE * streak_factor * accuracy_factor)
        return min(MAX_SESSION_SIZE, max(MIN_SESSION_SIZE, size))

    def summarize(
        self,
        cards: list[CardSummary],
        records: list[ReviewRecord],
        progress: LearningProgressSnapshot,
        now: datetime,
    ) -> LearningSummary:
        """
        Headline counts, weakest topics and levels, and plain-text advice.
        """
        card_map = _index_cards(cards)
        _index_records(records)

        masteries = [mastery_level(r) for r in records]
        due_count = sum(1 for r in records if is_due(r, now))
        mastered_count = sum(1 for m in masteries if m >= MASTERED_THRESHOLD)
        struggling_count = sum(1 for m in masteries if m < STRUGGLING_THRESHOLD)

        weak_topics = _weakest(records, card_map, lambda c: c.topic)[:MAX_WEAK_TOPICS]
        weak_levels = _weakest(records, card_map, lambda c: c.level)[:MAX_WEAK_LEVELS]

        messages: list[str] = []
        if due_count > 20:
            messages.append(
                f"You have {due_count} cards due for review. "
                "Consider focusing on reviews before learning new cards."
            )
        if struggling_count > 5:
            messages.append(
                f"You're struggling with {struggling_count} cards. "
                "Try breaking study sessions into smaller chunks."
            )
        if weak_topics:
            names = ", ".join(t.display_name for t in weak_topics)
            messages.append(f"Focus on these topics: {names}")
        if progress.current_streak == 0:
            messages.append(
                "Start a new study streak! Even 5 minutes daily can make a big difference."
            )
        elif progress.current_streak >= 7:
            messages.append(
                f"Great streak! You're on day {progress.current_streak}. Keep it up!"
            )

        return LearningSummary(
            due_cards_count=due_count,
            new_cards_recommended=_recommended_new_cards(progress, due_count),
            mastered_cards_count=mastered_count,
            struggling_cards_count=struggling_count,
            weak_topics=weak_topics,
            weak_levels=weak_levels,
            recommendations=messages,
            optimal_session_size=self.optimal_session_size(progress, records),
        )

    def _review_cards(
        self,
        records: list[ReviewRecord],
        card_map: dict[str, CardSummary],
        now: datetime,
    ) -> list[RecommendedCard]:
        due = [r for r in records if r.card_id in card_map and is_due(r, now)]
        due.sort(key=lambda r: due_score(r, now), reverse=True)

        return [
            RecommendedCard(
                card=card_map[r.card_id],
                reason="Due for review",
                priority=review_priority(r, now),
                estimated_difficulty=r.difficulty_adjustment + 2.5,
                kind=RecommendationKind.REVIEW,
            )
            for r in due[:MAX_REVIEW_RECOMMENDATIONS]
        ]

    def _new_cards(
        self,
        cards: list[CardSummary],
        records: list[ReviewRecord],
        progress: LearningProgressSnapshot,
        preferences: UserPreferences | None,
    ) -> list[RecommendedCard]:
        studied = {r.card_id for r in records}
        candidates = [c for c in cards if c.id not in studied]
        if preferences is not None:
            candidates = [c for c in candidates if preferences.accepts(c)]

        recommended = [
            RecommendedCard(
                card=card,
                reason=f"New content for {card.level.display_name}",
                priority=(
                    topic_priority(card.topic)
                    + level_priority(card.level, progress.progress_for(card.level))
                )
                / 2,
                estimated_difficulty=card.difficulty,
                kind=RecommendationKind.NEW_CONTENT,
            )
            for card in candidates
        ]
        recommended.sort(key=lambda rc: rc.priority, reverse=True)
        return recommended[:MAX_NEW_RECOMMENDATIONS]

    def _challenge_cards(
        self,
        cards: list[CardSummary],
        records: list[ReviewRecord],
    ) -> list[RecommendedCard]:
        if not records:
            return []
        average_mastery = sum(mastery_level(r) for r in records) / len(records)
        if average_mastery < CHALLENGE_MASTERY_GATE:
            return []

        studied = {r.card_id for r in records}
        challenging = [
            c
            for c in cards
            if c.id not in studied
            and c.difficulty >= CHALLENGE_MIN_DIFFICULTY
            and c.level.tier >= CHALLENGE_MIN_TIER
        ]

        return [
            RecommendedCard(
                card=card,
                reason="Challenge yourself with advanced content",
                priority=CHALLENGE_PRIORITY,
                estimated_difficulty=card.difficulty,
                kind=RecommendationKind.CHALLENGE,
            )
            for card in challenging[:MAX_CHALLENGE_RECOMMENDATIONS]
        ]

    def _reinforcement_cards(
        self,
        records: list[ReviewRecord],
        card_map: dict[str, CardSummary],
    ) -> list[RecommendedCard]:
        weak = [
            (r, mastery_level(r))
            for r in records
            if r.card_id in card_map and r.total_reviews >= REINFORCEMENT_MIN_REVIEWS
        ]
        weak = [(r, m) for r, m in weak if m < REINFORCEMENT_MASTERY_CEILING]
        weak.sort(key=lambda pair: pair[1])

        result = []
        for record, mastery in weak[:MAX_REINFORCEMENT_RECOMMENDATIONS]:
            card = card_map[record.card_id]
            result.append(
                RecommendedCard(
                    card=card,
                    reason=f"Reinforce weak area: {card.topic.display_name}",
                    priority=1.0 - mastery,
                    estimated_difficulty=record.difficulty_adjustment + 3.0,
                    kind=RecommendationKind.REINFORCEMENT,
                )
            )
        return result

    def _insights(
        self,
        snapshot: PerformanceSnapshot,
        breakdown: CategoryBreakdown,
    ) -> list[PerformanceInsight]:
        insights: list[PerformanceInsight] = []
        percent = int(snapshot.accuracy * 100)

        if snapshot.accuracy >= 0.9:
            insights.append(
                PerformanceInsight(
                    title="Excellent Accuracy!",
                    description=f"You're getting {percent}% of answers correct. Great job!",
                    kind=InsightKind.POSITIVE,
                    actionable=False,
                )
            )
        elif snapshot.accuracy < 0.6:
            insights.append(
                PerformanceInsight(
                    title="Focus on Accuracy",
                    description=(
                        f"Your accuracy is {percent}%. "
                        "Consider reviewing cards more carefully."
                    ),
                    kind=InsightKind.IMPROVEMENT_NEEDED,
                    actionable=True,
                )
            )

        if snapshot.learning_velocity > 0.5:
            insights.append(
                PerformanceInsight(
                    title="Great Learning Pace",
                    description=(
                        f"You're mastering {snapshot.learning_velocity:.1f} "
                        "cards per day on average."
                    ),
                    kind=InsightKind.POSITIVE,
                    actionable=False,
                )
            )

        weakest = breakdown.weakest_topic()
        if weakest is not None and weakest[1].average_mastery < 0.4:
            name = weakest[0].display_name
            insights.append(
                PerformanceInsight(
                    title=f"Challenging Topic: {name}",
                    description=f"You might want to spend extra time on {name} vocabulary.",
                    kind=InsightKind.IMPROVEMENT_NEEDED,
                    actionable=True,
                )
            )

        return insights


def _index_cards(cards: list[CardSummary]) -> dict[str, CardSummary]:
    """Map card IDs to cards, rejecting duplicates."""
    card_map: dict[str, CardSummary] = {}
    for card in cards:
        if card.id in card_map:
            raise InvalidInputError(f"Duplicate card id in catalog: {card.id}")
        card_map[card.id] = card
    return card_map


def _index_records(records: list[ReviewRecord]) -> dict[str, ReviewRecord]:
    """Map card IDs to records, rejecting a second record for the same card."""
    record_map: dict[str, ReviewRecord] = {}
    for record in records:
        if record.card_id in record_map:
            raise InvalidInputError(f"Duplicate review record for card: {record.card_id}")
        record_map[record.card_id] = record
    return record_map


def _shuffle_in_chunks(
    items: list[CardSummary],
    rng: random.Random,
    size: int = SHUFFLE_CHUNK_SIZE,
) -> list[CardSummary]:
    result: list[CardSummary] = []
    for start in range(0, len(items), size):
        chunk = items[start : start + size]
        rng.shuffle(chunk)
        result.extend(chunk)
    return result


def _weakest(
    records: list[ReviewRecord],
    card_map: dict[str, CardSummary],
    key: Callable[[CardSummary], _Category],
) -> list[_Category]:
    """Category keys ordered by mean mastery, weakest first."""
    grouped: dict[_Category, list[float]] = {}
    for record in records:
        card = card_map.get(record.card_id)
        if card is None:
            continue
        grouped.setdefault(key(card), []).append(mastery_level(record))

    averages = {k: sum(v) / len(v) for k, v in grouped.items()}
    return sorted(averages, key=lambda k: averages[k])


def _recommended_new_cards(progress: LearningProgressSnapshot, due_count: int) -> int:
    if due_count > 30:
        return 0  # Focus on reviews first
    if due_count > 15:
        return 3
    if due_count > 5:
        return 5
    if progress.current_streak >= 7:
        return 10
    return 7
