"""
Event store operations with real-time broadcasting
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from app.api.ws import WebSocketManager, EVENT_CREATED, EVENT_UPDATED, EVENT_DELETED
from app.core.errors import NotFound, ValidationError
from app.schemas.event import EventCreate, EventDetail, EventResponse, EventUpdate, OrganizerSummary
from app.schemas.registration import RegistrationResponse
from app.services.policy import check_capability, require_role
from app.services.registration_service import attendee_count
from app.services.repositories import Repository
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def ensure_future_date(date: datetime, now: Optional[datetime] = None) -> None:
    if date <= (now or utcnow()):
        raise ValidationError("Event date must be in the future")


class EventService:
    """Service for creating, changing and reading events"""

    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager

    @staticmethod
    def _present(repo: Repository, event: Dict) -> EventResponse:
        organizer = repo.get_user(event["organizer_id"])
        return EventResponse(
            **event,
            organizer=OrganizerSummary(
                id=organizer["id"],
                name=organizer["name"],
                email=organizer["email"]
            ) if organizer else None,
            attendee_count=attendee_count(repo, event["id"])
        )

    def list_events(self, repo: Repository) -> List[EventResponse]:
        return [self._present(repo, event) for event in repo.list_events()]

    def get_event(self, repo: Repository, event_id: str, caller: dict) -> EventDetail:
        event = repo.get_event(event_id)
        if not event:
            raise NotFound("Event not found")

        own = repo.find_registration(event_id, caller["id"])
        return EventDetail(
            **self._present(repo, event).model_dump(),
            user_registration=RegistrationResponse(**own) if own else None
        )

    async def create_event(
        self,
        repo: Repository,
        data: EventCreate,
        caller: dict,
        now: Optional[datetime] = None
    ) -> EventResponse:
        require_role(caller)
        now = now or utcnow()
        ensure_future_date(data.date, now)

        event = repo.create_event(data.model_dump(), organizer_id=caller["id"], created_at=now)
        logger.info(f"Event {event['id']} created by {caller['id']}")

        result = self._present(repo, event)
        await self.websocket_manager.broadcast(EVENT_CREATED, result)
        return result

    async def update_event(
        self,
        repo: Repository,
        event_id: str,
        data: EventUpdate,
        caller: dict,
        now: Optional[datetime] = None
    ) -> EventResponse:
        event = repo.get_event(event_id)
        if not event:
            raise NotFound("Event not found")
        check_capability(caller, event["organizer_id"])

        fields = data.model_dump(exclude_unset=True)
        missing = sorted(key for key, value in fields.items() if value is None)
        if missing:
            raise ValidationError("Fields cannot be null", details=missing)
        if "date" in fields:
            ensure_future_date(fields["date"], now)

        updated = repo.update_event(event_id, fields)
        if updated is None:
            raise NotFound("Event not found")
        logger.info(f"Event {event_id} updated by {caller['id']}: {sorted(fields)}")

        result = self._present(repo, updated)
        await self.websocket_manager.broadcast(EVENT_UPDATED, result)
        return result

    async def delete_event(self, repo: Repository, event_id: str, caller: dict) -> str:
        """Delete the event and every registration for it"""
        event = repo.get_event(event_id)
        if not event:
            raise NotFound("Event not found")
        check_capability(caller, event["organizer_id"], message="Only the event organizer can delete this event")

        if not repo.delete_event(event_id, cascade=True):
            raise NotFound("Event not found")
        logger.info(f"Event {event_id} and its registrations deleted by {caller['id']}")

        await self.websocket_manager.broadcast(EVENT_DELETED, event_id)
        return event_id
