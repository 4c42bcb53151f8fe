# Domain Cards Package
from .models import (
    CardSummary,
    DifficultyPreference,
    JlptLevel,
    LearningProgressSnapshot,
    UserPreferences,
    VocabularyTopic,
)

__all__ = [
    "CardSummary",
    "DifficultyPreference",
    "JlptLevel",
    "LearningProgressSnapshot",
    "UserPreferences",
    "VocabularyTopic",
]
