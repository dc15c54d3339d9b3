"""Seller application model.

Applications move from ``pending`` to ``approved`` or ``rejected`` only
through an admin decision. A rejected applicant applies again with a new row.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from marketplace.db.base import Base


class SellerApplication(Base):
    __tablename__ = "seller_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    business_name = Column(String(255), nullable=False)
    business_type = Column(String(20), nullable=False)  # individual, company, nonprofit
    website = Column(String(500), nullable=True)
    experience = Column(Text, nullable=False)
    event_types = Column(Text, nullable=False)

    # Workflow state
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="seller_applications")

    def __repr__(self) -> str:
        return f"<SellerApplication {self.business_name} [{self.status}]>"
