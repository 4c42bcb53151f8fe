"""
Ports (interfaces) for learner profile storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import LearnerProfile


class ProfileRepository(ABC):
    """
    Port for loading and saving a learner's cards, records and progress.

    Implementations:
        - JsonProfileStore: One JSON document per learner on local disk.
    """

    @abstractmethod
    def load(self, user_id: str) -> LearnerProfile:
        """
        Fetch the profile for a learner.

        Args:
            user_id: The learner to load.

        Returns:
            The stored LearnerProfile, or an empty one if nothing is stored yet.
        """
        pass

    @abstractmethod
    def save(self, profile: LearnerProfile) -> None:
        """
        Persist a profile, replacing whatever was stored for ``profile.user_id``.
        """
        pass
