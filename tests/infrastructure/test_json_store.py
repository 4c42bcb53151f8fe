import json

import pytest

from kioku.domain.cards.models import (
    JlptLevel,
    LearningProgressSnapshot,
    UserPreferences,
    VocabularyTopic,
)
from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import LearnerProfile
from kioku.infrastructure.json_store import JsonProfileStore


@pytest.fixture
def store(tmp_path):
    return JsonProfileStore(tmp_path / "profiles")


def test_missing_profile_loads_empty(store):
    profile = store.load("alice")
    assert profile == LearnerProfile(user_id="alice")


def test_saved_profile_loads_back(store, make_card, make_record):
    profile = LearnerProfile(
        user_id="u1",
        cards=[make_card("c1"), make_card("c2", topic=VocabularyTopic.TRAVEL, level=JlptLevel.N3)],
        records=[make_record("c1", repetition_count=2, interval_days=6, correct_streak=2)],
        progress=LearningProgressSnapshot(current_streak=4, level_progress={JlptLevel.N5: 0.25}),
        preferences=UserPreferences(preferred_topics=frozenset({VocabularyTopic.TRAVEL})),
    )

    store.save(profile)

    assert (store.root / "u1.json").exists()
    assert not (store.root / "u1.json.tmp").exists()
    assert store.load("u1") == profile


def test_profile_is_human_readable_json(store, make_card):
    store.save(LearnerProfile(user_id="u1", cards=[make_card("c1")]))

    data = json.loads((store.root / "u1.json").read_text())

    assert data["cards"][0] == {"id": "c1", "topic": "food", "level": "N5", "difficulty": 1.0}


def test_malformed_profile_is_rejected(store):
    store.root.mkdir(parents=True)
    (store.root / "u1.json").write_text('{"user_id": "u1", "cards": "nope"}')

    with pytest.raises(InvalidInputError, match="Malformed profile"):
        store.load("u1")


def test_out_of_domain_record_is_rejected(store, make_record):
    store.save(LearnerProfile(user_id="u1", records=[make_record("c1")]))
    path = store.root / "u1.json"
    data = json.loads(path.read_text())
    data["records"][0]["ease_factor"] = 9.0
    path.write_text(json.dumps(data))

    with pytest.raises(InvalidInputError):
        store.load("u1")


def test_profile_owned_by_someone_else_is_rejected(store):
    store.save(LearnerProfile(user_id="bob"))
    (store.root / "bob.json").rename(store.root / "alice.json")

    with pytest.raises(InvalidInputError, match="belongs to"):
        store.load("alice")


@pytest.mark.parametrize("user_id", ["", "../escape", "a/b", "spaced out"])
def test_unsafe_user_ids_are_rejected(store, user_id):
    with pytest.raises(InvalidInputError, match="Invalid user id"):
        store.load(user_id)


def test_timestamps_without_offset_are_rejected(store, make_card, make_record):
    store.save(LearnerProfile(user_id="u1", cards=[make_card("c1")], records=[make_record("c1")]))
    path = store.root / "u1.json"
    data = json.loads(path.read_text())
    data["records"][0]["next_review_at"] = "2026-01-01T00:00:00"
    path.write_text(json.dumps(data))

    with pytest.raises(InvalidInputError, match="without UTC offset"):
        store.load("u1")


def test_offset_timestamps_are_accepted(store, make_card, make_record):
    store.save(LearnerProfile(user_id="u1", cards=[make_card("c1")], records=[make_record("c1")]))
    path = store.root / "u1.json"
    data = json.loads(path.read_text())
    data["records"][0]["next_review_at"] = "2026-01-01T09:00:00+09:00"
    path.write_text(json.dumps(data))

    record = store.load("u1").record_for("c1")

    assert record.next_review_at.utcoffset() is not None
