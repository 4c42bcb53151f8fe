import pytest

from kioku.domain.cards.models import (
    CardSummary,
    JlptLevel,
    LearningProgressSnapshot,
    UserPreferences,
    VocabularyTopic,
)
from kioku.domain.errors import InvalidInputError


# --- JLPT levels ---


def test_levels_are_ordered_easiest_first():
    assert [level.tier for level in JlptLevel] == [0, 1, 2, 3, 4]
    assert JlptLevel.N5.is_easier_than(JlptLevel.N1)
    assert JlptLevel.N1.is_harder_than(JlptLevel.N3)
    assert not JlptLevel.N3.is_harder_than(JlptLevel.N3)


def test_topic_display_names_cover_every_topic():
    assert VocabularyTopic.COMMON_EXPRESSIONS.display_name == "Common Expressions"
    assert all(topic.display_name for topic in VocabularyTopic)


# --- Cards and progress ---


def test_card_rejects_empty_id():
    with pytest.raises(InvalidInputError):
        CardSummary(id="", topic=VocabularyTopic.FOOD, level=JlptLevel.N5)


def test_progress_for_unknown_level_is_zero():
    progress = LearningProgressSnapshot(level_progress={JlptLevel.N5: 0.4})
    assert progress.progress_for(JlptLevel.N5) == 0.4
    assert progress.progress_for(JlptLevel.N2) == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"current_streak": -1},
        {"flashcards_learned": -3},
        {"total_study_time_minutes": -10},
        {"level_progress": {JlptLevel.N4: 1.5}},
    ],
    ids=["streak", "counter", "study_time", "level_progress"],
)
def test_progress_rejects_out_of_range_values(kwargs):
    with pytest.raises(InvalidInputError):
        LearningProgressSnapshot(**kwargs)


# --- Preferences ---


def test_empty_preferences_accept_everything(make_card):
    prefs = UserPreferences()
    assert prefs.accepts(make_card("a", level=JlptLevel.N1))


def test_preferences_filter_by_topic_and_level(make_card):
    prefs = UserPreferences(
        preferred_topics=frozenset({VocabularyTopic.FOOD}),
        preferred_levels=frozenset({JlptLevel.N5, JlptLevel.N4}),
    )
    assert prefs.accepts(make_card("a", topic=VocabularyTopic.FOOD, level=JlptLevel.N4))
    assert not prefs.accepts(make_card("b", topic=VocabularyTopic.ANIME, level=JlptLevel.N5))
    assert not prefs.accepts(make_card("c", topic=VocabularyTopic.FOOD, level=JlptLevel.N2))
