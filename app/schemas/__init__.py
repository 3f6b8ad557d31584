"""
Pydantic schemas package
"""

from .common import *
from .user import *
from .registration import *
from .event import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "CamelModel",
    "UserRegister",
    "UserLogin",
    "UserPublic",
    "TokenResponse",
    "RegistrationCreate",
    "RegistrationStatusUpdate",
    "RegistrationResponse",
    "RegistrantInfo",
    "RegistrationWithUser",
    "EventCreate",
    "EventUpdate",
    "OrganizerSummary",
    "EventResponse",
    "EventDetail",
]
