"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./campus_events.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Identity
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production-campus-events-secret")
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = 24
    BCRYPT_ROUNDS: int = 10

    # Events
    DEFAULT_MAX_ATTENDEES: int = 100

    # Expiry sweeper
    SWEEP_INTERVAL_SECONDS: int = 60 * 60
    EXPIRY_GRACE_HOURS: int = 24
    SWEEP_CASCADE_REGISTRATIONS: bool = True

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "https://campus-events-nine.vercel.app",
    ]

    # Rate limiting (sign-up and login)
    RATE_LIMIT_PER_MINUTE: int = 30
    # Only enable behind a reverse proxy that sets X-Forwarded-For / X-Real-IP
    TRUST_PROXY_HEADERS: bool = False

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_file = ".env"

settings = Settings()
