"""
Study Service: application layer orchestrator.

Coordinates loading learner profiles from the repository with the scheduler,
the recommendation engine and the analytics engine.
"""

import logging
import random
import threading
import weakref
from datetime import datetime

from kioku.application.recommendation import (
    LearningSummary,
    PersonalizedRecommendations,
    RecommendationEngine,
    SessionPlan,
)
from kioku.application.scheduler import Scheduler
from kioku.application.stats.analytics import AnalyticsEngine
from kioku.domain.constants import DEFAULT_WINDOW_DAYS
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import ReviewQuality, ReviewRecord
from kioku.domain.review.ports import ProfileRepository
from kioku.domain.stats.models import PerformanceSnapshot

logger = logging.getLogger(__name__)


class StudyService:
    """
    Application service for recording reviews and planning study sessions.

    Follows Dependency Inversion: depends on the ProfileRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        scheduler: Scheduler | None = None,
        engine: RecommendationEngine | None = None,
        analytics: AnalyticsEngine | None = None,
    ):
        """
        Args:
            repository: The repository (port) for loading and saving profiles.
            scheduler: Optional custom scheduler; uses default if not provided.
            engine: Optional custom recommendation engine.
            analytics: Optional custom analytics engine.
        """
        self._repo = repository
        self._scheduler = scheduler or Scheduler()
        self._analytics = analytics or AnalyticsEngine()
        self._engine = engine or RecommendationEngine(self._analytics)
        # Entries vanish once no review for that learner holds the lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def record_review(
        self,
        user_id: str,
        card_id: str,
        quality: int | ReviewQuality,
        response_time_ms: int,
        now: datetime,
    ) -> ReviewRecord:
        """
        Apply a review outcome and persist the updated record.

        Reviews for the same learner are applied one at a time, so two
        concurrent answers to the same card never overwrite each other.

        Raises:
            InvalidInputError: If the card is not in the learner's catalog or
                the outcome is invalid.
        """
        with self._lock_for(user_id):
            profile = self._repo.load(user_id)
            if not any(card.id == card_id for card in profile.cards):
                raise InvalidInputError(f"Unknown card for user {user_id}: {card_id}")

            existing = profile.record_for(card_id)
            if existing is None:
                updated = self._scheduler.first_review(
                    user_id, card_id, quality, response_time_ms, now
                )
            else:
                updated = self._scheduler.update(existing, quality, response_time_ms, now)

            profile.put_record(updated)
            self._repo.save(profile)

        logger.info(
            f"Recorded review for {user_id}/{card_id}: next due in {updated.interval_days} day(s)"
        )
        return updated

    def plan_session(
        self,
        user_id: str,
        now: datetime,
        max_cards: int = 20,
        rng: random.Random | None = None,
    ) -> SessionPlan:
        profile = self._repo.load(user_id)
        return self._engine.recommend(
            profile.cards, profile.records, profile.progress, now, max_cards, rng
        )

    def personalize(
        self,
        user_id: str,
        now: datetime,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> PersonalizedRecommendations:
        profile = self._repo.load(user_id)
        return self._engine.personalize(
            profile.cards,
            profile.records,
            profile.progress,
            now,
            preferences=profile.preferences,
            window_days=window_days,
        )

    def summarize(self, user_id: str, now: datetime) -> LearningSummary:
        profile = self._repo.load(user_id)
        return self._engine.summarize(profile.cards, profile.records, profile.progress, now)

    def snapshot(
        self,
        user_id: str,
        now: datetime,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> PerformanceSnapshot:
        profile = self._repo.load(user_id)
        return self._analytics.analyze(profile.records, now, window_days)

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock
