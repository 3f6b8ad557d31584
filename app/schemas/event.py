"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from app.core.config import settings
from app.schemas.common import CamelModel
from app.schemas.registration import RegistrationResponse
from app.utils.timeutils import as_utc

class EventCreate(CamelModel):
    """Schema for creating an event"""
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: datetime
    location: str = Field(min_length=1)
    max_attendees: int = Field(default_factory=lambda: settings.DEFAULT_MAX_ATTENDEES, ge=1)

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

class EventUpdate(CamelModel):
    """Partial update; only the fields present in the request are applied"""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, min_length=1)
    max_attendees: Optional[int] = Field(default=None, ge=1)

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

class OrganizerSummary(CamelModel):
    id: str
    name: str
    email: str

class EventResponse(CamelModel):
    """Event with its live attendee count"""
    id: str
    title: str
    description: str
    date: datetime
    location: str
    max_attendees: int
    organizer_id: str
    organizer: Optional[OrganizerSummary] = None
    created_at: datetime
    attendee_count: int = 0

class EventDetail(EventResponse):
    """Single event as seen by the caller, with their own registration"""
    user_registration: Optional[RegistrationResponse] = None
