"""
Registration model
"""

import enum
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, UniqueConstraint

from app.core.db import Base, new_id
from app.utils.timeutils import utcnow


class RegistrationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(String(32), primary_key=True, default=new_id)
    # Plain reference: events may be swept without touching their registrations
    event_id = Column(String(32), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(RegistrationStatus), nullable=False, default=RegistrationStatus.pending)
    registered_at = Column(DateTime(timezone=True), default=utcnow)

    # One registration per (event, user); the insert itself is the duplicate check
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_registration_event_user"),
    )
