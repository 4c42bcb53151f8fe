from datetime import datetime, timedelta, timezone

import pytest

from kioku.domain.cards.models import CardSummary, JlptLevel, VocabularyTopic
from kioku.domain.review.models import ReviewRecord

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Factory for catalog entries with sensible defaults."""

    def _make(
        card_id: str,
        topic: VocabularyTopic = VocabularyTopic.FOOD,
        level: JlptLevel = JlptLevel.N5,
        difficulty: float = 1.0,
    ) -> CardSummary:
        return CardSummary(id=card_id, topic=topic, level=level, difficulty=difficulty)

    return _make


@pytest.fixture
def make_record():
    """
    Factory for review records.

    By default the record was reviewed a day ago and is due exactly now.
    """

    def _make(card_id: str = "c1", **overrides) -> ReviewRecord:
        fields = {
            "user_id": "u1",
            "card_id": card_id,
            "next_review_at": NOW,
            "last_reviewed_at": NOW - timedelta(days=1),
            "total_reviews": 1,
        }
        fields.update(overrides)
        return ReviewRecord(**fields)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Keeps a real ~/.config/kioku/config.toml out of the tests
    monkeypatch.setenv("HOME", str(home))
    return home
