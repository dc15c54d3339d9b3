"""Event model.

Only events with ``status == "approved"`` are publicly listed and purchasable.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Time, Integer, Numeric, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from marketplace.db.base import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    location = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    image_url = Column(String(500), nullable=True)
    organizer_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Workflow state
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    # Relationships
    organizer = relationship("User", back_populates="events", foreign_keys=[organizer_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    tickets = relationship("Ticket", back_populates="event")

    def __repr__(self) -> str:
        return f"<Event {self.title} on {self.date} [{self.status}]>"
