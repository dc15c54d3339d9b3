"""User profile provisioning and self-service edits."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.core.access.roles import Role, SellerStatus
from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.core.session import AuthSession
from marketplace.db.errors import store_errors
from marketplace.db.models import User

logger = logging.getLogger(__name__)


class ProfileService:
    """Keeps exactly one ``users`` row per authenticated account."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: UUID) -> Optional[User]:
        with store_errors(self.db, "load profile"):
            return self.db.get(User, user_id, populate_existing=True)

    def ensure_profile(self, session: AuthSession) -> User:
        """Load the profile for ``session``, creating it on first sign-in."""
        profile = self.get_profile(session.account_id)
        if profile is not None:
            return profile

        profile = User(
            id=session.account_id,
            email=session.email,
            full_name=session.metadata.get("full_name"),
            role=Role.USER.value,
            seller_status=SellerStatus.NONE.value,
        )
        try:
            self.db.add(profile)
            self.db.commit()
        except IntegrityError:
            # Provisioned concurrently by another request
            self.db.rollback()
            existing = self.get_profile(session.account_id)
            if existing is None:
                raise
            return existing

        logger.info("Provisioned profile for account %s", session.account_id)
        return profile

    def update_profile(self, user_id: UUID, full_name: Optional[str]) -> User:
        """Update the self-editable profile fields."""
        full_name = (full_name or "").strip()
        if len(full_name) > 255:
            raise ValidationError("Name is too long", fields={"full_name": "At most 255 characters"})

        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("User", user_id)

        with store_errors(self.db, "update profile"):
            profile.full_name = full_name or None
            profile.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(profile)
        return profile
