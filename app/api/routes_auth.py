"""
Authentication routes - sign-up, login and token verification
"""

from fastapi import APIRouter, Depends, Request

from app.schemas.user import UserRegister, UserLogin, UserPublic, TokenResponse
from app.services.identity_service import IdentityService
from app.services.repositories import Repository, get_repository
from app.utils.security import get_current_user, rate_limit_check, get_client_ip
from app.utils.responses import success_response, rate_limit_error

router = APIRouter()

@router.get("/verify")
async def verify(current_user: dict = Depends(get_current_user)):
    """Return the identity behind the bearer token"""
    return success_response(
        message="Token valid",
        data={"user": UserPublic(**current_user)}
    )

@router.post("/register")
async def register_user(
    request: Request,
    payload: UserRegister,
    repo: Repository = Depends(get_repository)
):
    """Create a user account"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_error()

    user = IdentityService.sign_up(
        repo,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role.value if payload.role else None
    )
    return success_response(
        message="User created successfully",
        data={"user": UserPublic(**user)},
        status_code=201
    )

@router.post("/login")
async def login(
    request: Request,
    payload: UserLogin,
    repo: Repository = Depends(get_repository)
):
    """Exchange email and password for a bearer token"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_error()

    result = IdentityService.login(repo, payload.email, payload.password)
    return success_response(
        message="Login successful",
        data=TokenResponse(**result)
    )
