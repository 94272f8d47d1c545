import logging
from typing import Any, Dict, Optional

from app import db
from models import UserProfile
from utils.auth import UserContext
from utils.errors import ProfileAlreadyExists, ProfileNotFound

logger = logging.getLogger(__name__)


class ProfileService:
    """Stores one household profile per user, updated in place."""

    @staticmethod
    def find_profile(context: UserContext) -> Optional[UserProfile]:
        if context.is_anonymous:
            return None
        return UserProfile.query.filter_by(user_id=context.user_id).first()

    @staticmethod
    def get_profile(context: UserContext) -> UserProfile:
        profile = ProfileService.find_profile(context)
        if profile is None:
            raise ProfileNotFound(f"No profile stored for user {context.user_id}")
        return profile

    @staticmethod
    def create_profile(context: UserContext, data: Dict[str, Any]) -> UserProfile:
        if ProfileService.find_profile(context) is not None:
            raise ProfileAlreadyExists(f"Profile already exists for user {context.user_id}; use PUT to update it")

        profile = UserProfile(user_id=context.user_id, **data)
        db.session.add(profile)
        db.session.commit()
        logger.info(f"Created profile for user {context.user_id}")
        return profile

    @staticmethod
    def update_profile(context: UserContext, data: Dict[str, Any]) -> UserProfile:
        profile = ProfileService.get_profile(context)

        for field, value in data.items():
            setattr(profile, field, value)

        db.session.commit()
        logger.info(f"Updated profile for user {context.user_id}: {sorted(data)}")
        return profile

    @staticmethod
    def weighting_context(context: UserContext) -> Optional[Dict[str, Any]]:
        """Profile fields used for weighting, or None when the user has no profile."""
        profile = ProfileService.find_profile(context)
        if profile is None:
            logger.debug("No stored profile; scoring with default weights")
            return None
        return profile.weighting_snapshot()
