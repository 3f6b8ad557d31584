"""
User and credential schemas
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models import UserRole
from app.schemas.common import CamelModel

class UserRegister(BaseModel):
    """Sign-up request"""
    email: EmailStr
    # byte length is checked by the identity service
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: Optional[UserRole] = None

class UserLogin(BaseModel):
    """Login request"""
    email: str
    password: str

class UserPublic(CamelModel):
    """User as seen by clients (no credential hash)"""
    id: str
    email: str
    name: str
    role: UserRole

class TokenResponse(CamelModel):
    token: str
    user: UserPublic
