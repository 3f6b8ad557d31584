"""
Database models package
"""

from .user import User, UserRole
from .event import Event
from .registration import Registration, RegistrationStatus

__all__ = ["User", "UserRole", "Event", "Registration", "RegistrationStatus"]
