# Domain Review Package
from .models import LearnerProfile, ReviewQuality, ReviewRecord
from .ports import ProfileRepository

__all__ = ["ReviewQuality", "ReviewRecord", "LearnerProfile", "ProfileRepository"]
