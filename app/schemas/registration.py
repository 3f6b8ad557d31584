"""
Registration-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import Field

from app.models import RegistrationStatus
from app.schemas.common import CamelModel

class RegistrationCreate(CamelModel):
    """Register the caller for an event"""
    event_id: str = Field(min_length=1)

class RegistrationStatusUpdate(CamelModel):
    status: RegistrationStatus

class RegistrationResponse(CamelModel):
    id: str
    event_id: str
    user_id: str
    status: RegistrationStatus
    registered_at: datetime

class RegistrantInfo(CamelModel):
    id: str
    name: str
    email: str

class RegistrationWithUser(RegistrationResponse):
    """Registration listed for an organizer, with the registrant attached"""
    user: Optional[RegistrantInfo] = None
