import pytest

from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import LearnerProfile, ReviewQuality, ReviewRecord


# --- ReviewQuality ---


def test_quality_correctness_threshold():
    assert not ReviewQuality.INCORRECT_HARD.is_correct
    assert ReviewQuality.CORRECT_HARD.is_correct
    assert ReviewQuality.CORRECT_EASY.description.startswith("Correct response")


@pytest.mark.parametrize("raw", [-1, 6, 42])
def test_quality_parse_rejects_out_of_range(raw):
    with pytest.raises(InvalidInputError, match="between 0 and 5"):
        ReviewQuality.parse(raw)


def test_quality_parse_accepts_plain_ints():
    assert ReviewQuality.parse(4) is ReviewQuality.CORRECT_HESITANT


# --- ReviewRecord ---


def test_new_record_defaults(now):
    record = ReviewRecord.new("u1", "c1", now)
    assert record.next_review_at == now
    assert record.repetition_count == 0
    assert record.ease_factor == 2.5
    assert record.interval_days == 1
    assert record.last_reviewed_at is None
    assert record.total_reviews == 0
    assert record.difficulty_adjustment == 0.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"ease_factor": 1.29},
        {"ease_factor": 4.01},
        {"interval_days": 0},
        {"repetition_count": -1},
        {"correct_streak": -1},
        {"total_reviews": -1},
        {"average_response_time_ms": -5},
        {"difficulty_adjustment": 1.5},
        {"difficulty_adjustment": -1.01},
    ],
)
def test_record_rejects_out_of_domain_fields(make_record, overrides):
    with pytest.raises(InvalidInputError):
        make_record(**overrides)


def test_record_boundaries_are_inclusive(make_record):
    make_record(ease_factor=1.3, difficulty_adjustment=-1.0)
    make_record(ease_factor=4.0, difficulty_adjustment=1.0)


# --- LearnerProfile ---


def test_put_record_inserts_then_replaces(make_record):
    profile = LearnerProfile(user_id="u1")
    profile.put_record(make_record("c1"))
    profile.put_record(make_record("c2"))
    profile.put_record(make_record("c1", total_reviews=7))

    assert [r.card_id for r in profile.records] == ["c1", "c2"]
    assert profile.record_for("c1").total_reviews == 7
    assert profile.record_for("missing") is None
