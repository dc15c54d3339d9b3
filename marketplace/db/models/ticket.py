import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from marketplace.db.base import Base


class Ticket(Base):
    """A purchase of ``quantity`` tickets for one event. Immutable once created."""
    __tablename__ = "tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    purchase_date = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    event = relationship("Event", back_populates="tickets")
    user = relationship("User", back_populates="tickets")
