# Domain Stats Package
from .models import (
    CategoryBreakdown,
    CategoryPerformance,
    DailyStudyRecord,
    LearningPattern,
    PerformanceSnapshot,
    RecommendationPriority,
    StudyRecommendation,
    StudyRecommendationKind,
)

__all__ = [
    "CategoryBreakdown",
    "CategoryPerformance",
    "DailyStudyRecord",
    "LearningPattern",
    "PerformanceSnapshot",
    "RecommendationPriority",
    "StudyRecommendation",
    "StudyRecommendationKind",
]
