"""
JSON Profile Store: infrastructure adapter for local learner profiles.

Implements ProfileRepository with one JSON document per learner.
"""

import logging
import re
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from kioku.domain.errors import InvalidInputError
from kioku.domain.review.models import LearnerProfile
from kioku.domain.review.ports import ProfileRepository

logger = logging.getLogger(__name__)

_USER_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

_profile_adapter = TypeAdapter(LearnerProfile)


class JsonProfileStore(ProfileRepository):
    """
    Stores each learner's profile as ``<root>/<user_id>.json``.

    Writes go to a temporary sibling first and are moved into place, so a
    crash mid-write never leaves a truncated profile behind.
    """

    def __init__(self, root: Path):
        self.root = root

    def load(self, user_id: str) -> LearnerProfile:
        path = self._path_for(user_id)
        if not path.exists():
            logger.debug(f"No profile at {path}, starting empty")
            return LearnerProfile(user_id=user_id)

        try:
            profile = _profile_adapter.validate_json(path.read_bytes())
        except ValidationError as e:
            raise InvalidInputError(f"Malformed profile {path}: {e}") from e

        if profile.user_id != user_id:
            raise InvalidInputError(
                f"Profile {path} belongs to {profile.user_id!r}, expected {user_id!r}"
            )

        # Schedules are compared against an aware "now"
        for record in profile.records:
            for stamp in (record.next_review_at, record.last_reviewed_at):
                if stamp is not None and stamp.utcoffset() is None:
                    raise InvalidInputError(
                        f"Malformed profile {path}: timestamp without UTC offset "
                        f"on card {record.card_id}"
                    )
        return profile

    def save(self, profile: LearnerProfile) -> None:
        path = self._path_for(profile.user_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp = path.with_suffix(".json.tmp")
        tmp.write_bytes(_profile_adapter.dump_json(profile, indent=2))
        tmp.replace(path)
        logger.debug(f"Saved profile {profile.user_id} ({len(profile.records)} records)")

    def _path_for(self, user_id: str) -> Path:
        if not _USER_ID_RE.match(user_id):
            raise InvalidInputError(f"Invalid user id: {user_id!r}")
        return self.root / f"{user_id}.json"
