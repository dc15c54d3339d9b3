"""Review history model.

Records every workflow decision, giving admins an audit trail of who moved
which application or event out of ``pending``.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid

from marketplace.db.base import Base


class ReviewHistory(Base):
    __tablename__ = "review_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject = Column(String(32), nullable=False)  # seller_application, event
    entity_id = Column(Uuid, nullable=False, index=True)

    # Transition details
    from_state = Column(String(20), nullable=False)
    to_state = Column(String(20), nullable=False)
    decision = Column(String(20), nullable=False)

    # Actor
    actor_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<ReviewHistory {self.subject} {self.from_state} -> {self.to_state}>"
