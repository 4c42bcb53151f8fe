# Application Stats Package
from .analytics import AnalyticsEngine

__all__ = ["AnalyticsEngine"]
