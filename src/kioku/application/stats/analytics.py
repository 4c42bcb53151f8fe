"""
Analytics engine for summarising a learner's review records.

This is a pure computation module with no I/O.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta

from kioku.application.priority import mastery_level
from kioku.domain.cards.models import (
    CardSummary,
    JlptLevel,
    VocabularyTopic,
)
from kioku.domain.constants import DEFAULT_WINDOW_DAYS, MASTERED_THRESHOLD
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import ReviewRecord
from kioku.domain.stats.models import (
    CategoryBreakdown,
    CategoryPerformance,
    DailyStudyRecord,
    LearningPattern,
    PerformanceSnapshot,
    RecommendationPriority,
    StudyRecommendation,
    StudyRecommendationKind,
)

logger = logging.getLogger(__name__)


class AnalyticsEngine:
    """
    Derives performance metrics and learning patterns from review records.

    Stateless and side-effect free.
    """

    def analyze(
        self,
        records: list[ReviewRecord],
        now: datetime,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> PerformanceSnapshot:
        """
        Summarise the records reviewed within the last ``window_days``.

        Accuracy uses ``correct_streak`` as a stand-in for the number of
        correct answers, so it undercounts after any lapse.

        Args:
            records: All review records of one learner.
            now: Reference time for the window.
            window_days: Size of the look-back window, in days.

        Returns:
            A PerformanceSnapshot; a neutral one if no record falls in the window.

        Raises:
            InvalidInputError: If window_days is not positive.
        """
        if window_days <= 0:
            raise InvalidInputError(f"window_days must be positive, got {window_days}")

        cutoff = now - timedelta(days=window_days)
        recent = [
            r for r in records if r.last_reviewed_at is not None and r.last_reviewed_at > cutoff
        ]

        if not recent:
            return PerformanceSnapshot(window_days=window_days)

        total_reviews = sum(r.total_reviews for r in recent)
        correct_reviews = sum(r.correct_streak for r in recent)
        accuracy = correct_reviews / total_reviews if total_reviews > 0 else 0.0

        masteries = [mastery_level(r) for r in recent]
        mastered = sum(1 for m in masteries if m >= MASTERED_THRESHOLD)

        snapshot = PerformanceSnapshot(
            total_reviews=total_reviews,
            accuracy=accuracy,
            average_ease_factor=_mean(r.ease_factor for r in recent),
            average_mastery=_mean(masteries),
            average_response_time_ms=int(_mean(r.average_response_time_ms for r in recent)),
            learning_velocity=mastered / window_days,
            retention_rate=self._retention_rate(recent),
            patterns=self._detect_patterns(recent),
            window_days=window_days,
        )
        logger.debug(
            f"Analysed {len(recent)}/{len(records)} records: "
            f"accuracy={snapshot.accuracy:.2f} patterns={[p.value for p in snapshot.patterns]}"
        )
        return snapshot

    def analyze_by_category(
        self,
        records: list[ReviewRecord],
        cards: list[CardSummary],
    ) -> CategoryBreakdown:
        """
        Group records by the topic and the level of their catalog card.

        Records whose card is not in the catalog are ignored.
        """
        card_map = {card.id: card for card in cards}
        by_topic: dict[VocabularyTopic, list[ReviewRecord]] = defaultdict(list)
        by_level: dict[JlptLevel, list[ReviewRecord]] = defaultdict(list)

        for record in records:
            card = card_map.get(record.card_id)
            if card is None:
                continue
            by_topic[card.topic].append(record)
            by_level[card.level].append(record)

        return CategoryBreakdown(
            by_topic={k: self._category_performance(v) for k, v in by_topic.items()},
            by_level={k: self._category_performance(v) for k, v in by_level.items()},
        )

    def generate_study_recommendations(
        self,
        snapshot: PerformanceSnapshot,
        breakdown: CategoryBreakdown,
    ) -> list[StudyRecommendation]:
        """
        Turn a performance snapshot into prioritised study advice.

        Returns:
            Recommendations sorted by priority, highest first. Ties keep
            their generation order.
        """
        recommendations: list[StudyRecommendation] = []
        percent = int(snapshot.accuracy * 100)

        if snapshot.accuracy < 0.6:
            recommendations.append(
                StudyRecommendation(
                    kind=StudyRecommendationKind.REDUCE_SESSION_SIZE,
                    title="Reduce Study Session Size",
                    description=(
                        f"Your accuracy is {percent}%. Try studying fewer cards "
                        "per session to improve focus."
                    ),
                    priority=RecommendationPriority.HIGH,
                )
            )
        elif snapshot.accuracy > 0.9:
            recommendations.append(
                StudyRecommendation(
                    kind=StudyRecommendationKind.INCREASE_DIFFICULTY,
                    title="Challenge Yourself",
                    description=(
                        "Great accuracy! Consider adding more advanced cards "
                        "or increasing session size."
                    ),
                    priority=RecommendationPriority.MEDIUM,
                )
            )

        for pattern in snapshot.patterns:
            recommendations.append(_PATTERN_ADVICE[pattern])

        weakest = breakdown.weakest_topic()
        if weakest is not None:
            topic, performance = weakest
            if performance.average_mastery < 0.5:
                recommendations.append(
                    StudyRecommendation(
                        kind=StudyRecommendationKind.FOCUS_ON_TOPIC,
                        title=f"Focus on {topic.display_name}",
                        description=(
                            f"Your mastery in {topic.display_name} is "
                            f"{int(performance.average_mastery * 100)}%. "
                            "Consider dedicating more time to this topic."
                        ),
                        priority=RecommendationPriority.HIGH,
                    )
                )

        return sorted(recommendations, key=lambda r: r.priority, reverse=True)

    def track_daily_study(
        self,
        user_id: str,
        cards_studied: int,
        time_spent_minutes: int,
        accuracy: float,
        now: datetime,
    ) -> DailyStudyRecord:
        """Build the daily study log entry for ``now``'s calendar date."""
        if cards_studied < 0 or time_spent_minutes < 0:
            raise InvalidInputError("Study counters cannot be negative")
        if not 0.0 <= accuracy <= 1.0:
            raise InvalidInputError("Accuracy must be between 0.0 and 1.0")

        return DailyStudyRecord(
            user_id=user_id,
            date=now.date(),
            cards_studied=cards_studied,
            time_spent_minutes=time_spent_minutes,
            accuracy=accuracy,
            timestamp=now,
        )

    def _retention_rate(self, records: list[ReviewRecord]) -> float:
        """Share of multi-review cards whose current streak is alive."""
        repeated = [r for r in records if r.total_reviews > 1]
        if not repeated:
            return 0.0
        retained = sum(1 for r in repeated if r.correct_streak > 0)
        return retained / len(repeated)

    def _detect_patterns(self, records: list[ReviewRecord]) -> list[LearningPattern]:
        size = len(records)
        patterns: list[LearningPattern] = []

        improving = sum(1 for r in records if r.ease_factor > 2.5 and r.correct_streak >= 3)
        if improving > size * 0.3:
            patterns.append(LearningPattern.CONSISTENT_IMPROVEMENT)

        struggling = sum(1 for r in records if r.ease_factor < 2.0 and r.total_reviews > 5)
        if struggling > size * 0.2:
            patterns.append(LearningPattern.RETENTION_ISSUES)

        quick = sum(
            1
            for r in records
            if mastery_level(r) >= MASTERED_THRESHOLD and r.total_reviews <= 3
        )
        if quick > size * 0.4:
            patterns.append(LearningPattern.FAST_LEARNER)

        stuck = sum(1 for r in records if r.total_reviews > 10 and mastery_level(r) < 0.5)
        if stuck > size * 0.15:
            patterns.append(LearningPattern.NEEDS_MORE_PRACTICE)

        return patterns

    def _category_performance(self, records: list[ReviewRecord]) -> CategoryPerformance:
        if not records:
            return CategoryPerformance()

        masteries = [mastery_level(r) for r in records]
        return CategoryPerformance(
            total_cards=len(records),
            mastered_cards=sum(1 for m in masteries if m >= MASTERED_THRESHOLD),
            average_mastery=_mean(masteries),
            average_ease_factor=_mean(r.ease_factor for r in records),
            total_reviews=sum(r.total_reviews for r in records),
            average_response_time_ms=int(_mean(r.average_response_time_ms for r in records)),
        )


_PATTERN_ADVICE: dict[LearningPattern, StudyRecommendation] = {
    LearningPattern.RETENTION_ISSUES: StudyRecommendation(
        kind=StudyRecommendationKind.FOCUS_ON_REVIEW,
        title="Focus on Review",
        description=(
            "You're having trouble retaining information. Spend more time "
            "reviewing cards you've already seen."
        ),
        priority=RecommendationPriority.HIGH,
    ),
    LearningPattern.FAST_LEARNER: StudyRecommendation(
        kind=StudyRecommendationKind.ADD_NEW_CONTENT,
        title="Add New Content",
        description=(
            "You're learning quickly! Consider adding more new cards to your study routine."
        ),
        priority=RecommendationPriority.MEDIUM,
    ),
    LearningPattern.NEEDS_MORE_PRACTICE: StudyRecommendation(
        kind=StudyRecommendationKind.INCREASE_FREQUENCY,
        title="Study More Frequently",
        description=(
            "Some cards need more practice. Try shorter, more frequent study sessions."
        ),
        priority=RecommendationPriority.MEDIUM,
    ),
    LearningPattern.CONSISTENT_IMPROVEMENT: StudyRecommendation(
        kind=StudyRecommendationKind.MAINTAIN_ROUTINE,
        title="Keep Up the Great Work!",
        description=(
            "You're showing consistent improvement. Maintain your current study routine."
        ),
        priority=RecommendationPriority.LOW,
    ),
}


def _mean(values: Iterable[float]) -> float:
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)
