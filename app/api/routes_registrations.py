"""
Registration routes
"""

from fastapi import APIRouter, Depends

from app.api.routes_events import registration_service
from app.schemas.registration import RegistrationCreate, RegistrationStatusUpdate
from app.services.repositories import Repository, get_repository
from app.utils.security import get_current_user
from app.utils.responses import success_response

router = APIRouter()

@router.post("")
async def register_for_event(
    payload: RegistrationCreate,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Register the caller for an event; starts out pending"""
    registration = await registration_service.register(repo, payload.event_id, current_user)
    return success_response(
        message="Registration submitted",
        data=registration,
        status_code=201
    )

@router.put("/{registration_id}/status")
async def set_registration_status(
    registration_id: str,
    payload: RegistrationStatusUpdate,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Approve or reject a registration (event owner or admin)"""
    registration = await registration_service.set_status(
        repo, registration_id, payload.status.value, current_user
    )
    return success_response(
        message=f"Registration {registration.status.value}",
        data=registration
    )
