"""
Identity gate: sign-up, login and bearer token verification
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
import jwt

from app.core.config import settings
from app.core.errors import Unauthenticated, ValidationError
from app.models import UserRole
from app.services.repositories import Repository
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

# bcrypt refuses anything longer
MAX_PASSWORD_BYTES = 72


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: str, now: Optional[datetime] = None) -> str:
    issued_at = now or utcnow()
    payload = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.TOKEN_TTL_HOURS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id embedded in a valid token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Invalid token")
    return user_id


def public_user(user: Dict) -> Dict:
    return {"id": user["id"], "email": user["email"], "name": user["name"], "role": user["role"]}


class IdentityService:
    """Service for user accounts and credentials"""

    @staticmethod
    def sign_up(repo: Repository, email: str, password: str, name: str, role: Optional[str] = None) -> Dict:
        role = role or UserRole.student.value
        if role not in {r.value for r in UserRole}:
            raise ValidationError(f"Unknown role '{role}'")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        if repo.get_user_by_email(email):
            raise ValidationError("Email already exists")

        user = repo.create_user(email, get_password_hash(password), name, role)
        if user is None:
            raise ValidationError("Email already exists")

        logger.info(f"User {user['id']} signed up with role {role}")
        return public_user(user)

    @staticmethod
    def login(repo: Repository, email: str, password: str) -> Dict:
        user = repo.get_user_by_email(email)
        if not user or not verify_password(password, user["password_hash"]):
            logger.warning(f"Failed login for {email.lower()}")
            raise Unauthenticated("Invalid credentials")

        return {"token": create_access_token(user["id"]), "user": public_user(user)}

    @staticmethod
    def verify_identity(repo: Repository, token: Optional[str]) -> Dict:
        """Resolve a bearer token to the stored user"""
        if not token:
            raise Unauthenticated("No token provided")

        user = repo.get_user(decode_access_token(token))
        if not user:
            raise Unauthenticated("Invalid token")
        return user
