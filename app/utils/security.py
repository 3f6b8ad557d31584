"""
Security utilities and authentication
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Dict, List, Optional
import time

from app.core.config import settings
from app.services.identity_service import IdentityService
from app.services.repositories import Repository, get_repository

# Simple in-memory rate limiter
rate_limiter: Dict[str, List[float]] = {}

# Missing credentials are reported by the identity gate, not by FastAPI
security = HTTPBearer(auto_error=False)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    repo: Repository = Depends(get_repository)
) -> dict:
    """Resolve the bearer token to the calling user"""
    token = credentials.credentials if credentials else None
    return IdentityService.verify_identity(repo, token)

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Drop every client with no request inside the window
    for ip in [ip for ip, times in rate_limiter.items() if not times or times[-1] <= minute_ago]:
        del rate_limiter[ip]

    recent = [req_time for req_time in rate_limiter.get(client_ip, []) if req_time > minute_ago]
    if len(recent) >= limit:
        rate_limiter[client_ip] = recent
        return False

    recent.append(current_time)
    rate_limiter[client_ip] = recent
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Proxy headers are client-controlled unless a trusted proxy sets them
    if not settings.TRUST_PROXY_HEADERS:
        return request.client.host if request.client else "unknown"

    # The trusted proxy appends the peer it saw; earlier entries came from the client
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[-1].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"
