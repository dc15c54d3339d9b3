import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship

from marketplace.db.base import Base


class User(Base):
    """User profile. ``id`` equals the authentication account id."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="user", index=True)
    seller_status = Column(String(20), nullable=False, default="none")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    seller_applications = relationship(
        "SellerApplication", back_populates="user", order_by="SellerApplication.created_at.desc()"
    )
    events = relationship("Event", back_populates="organizer", foreign_keys="Event.organizer_id")
    tickets = relationship("Ticket", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self) -> str:
        return f"<User {self.email} [{self.role}/{self.seller_status}]>"
