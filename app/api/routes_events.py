"""
Event routes - every route requires a bearer token
"""

from fastapi import APIRouter, Depends

from app.api.ws import websocket_manager
from app.schemas.event import EventCreate, EventUpdate
from app.services.event_service import EventService
from app.services.registration_service import RegistrationService
from app.services.repositories import Repository, get_repository
from app.utils.security import get_current_user
from app.utils.responses import success_response

router = APIRouter()

event_service = EventService(websocket_manager)
registration_service = RegistrationService(websocket_manager)

@router.get("")
async def list_events(
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """List all events with their attendee counts"""
    events = event_service.list_events(repo)
    return success_response(
        message="Events retrieved successfully",
        data=events
    )

@router.get("/{event_id}")
async def get_event(
    event_id: str,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Get one event with the caller's own registration"""
    event = event_service.get_event(repo, event_id, current_user)
    return success_response(
        message="Event retrieved",
        data=event
    )

@router.post("")
async def create_event(
    payload: EventCreate,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Create a new event (organizers and admins)"""
    event = await event_service.create_event(repo, payload, current_user)
    return success_response(
        message="Event created successfully",
        data=event,
        status_code=201
    )

@router.put("/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Update the supplied fields of an event (owner or admin)"""
    event = await event_service.update_event(repo, event_id, payload, current_user)
    return success_response(
        message="Event updated successfully",
        data=event
    )

@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """Delete an event and its registrations (owner or admin)"""
    deleted_id = await event_service.delete_event(repo, event_id, current_user)
    return success_response(
        message="Event deleted successfully",
        data={"deletedEventId": deleted_id}
    )

@router.get("/{event_id}/registrations")
async def list_registrations(
    event_id: str,
    repo: Repository = Depends(get_repository),
    current_user: dict = Depends(get_current_user)
):
    """List registrations with registrant details (owner or admin)"""
    registrations = registration_service.list_registrations(repo, event_id, current_user)
    return success_response(
        message="Registrations retrieved successfully",
        data=registrations
    )
