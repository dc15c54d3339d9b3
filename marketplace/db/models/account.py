import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Uuid
from sqlalchemy.orm import relationship

from marketplace.db.base import Base


class Account(Base):
    """Authentication identity. The domain profile lives in ``users``."""
    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)  # sign-up metadata
    is_active = Column(Boolean, default=True, nullable=False)
    email_confirmed_at = Column(DateTime, nullable=True)
    last_sign_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sessions = relationship("AuthSessionRecord", back_populates="account", cascade="all, delete-orphan")
    tokens = relationship("AuthToken", back_populates="account", cascade="all, delete-orphan")

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None
