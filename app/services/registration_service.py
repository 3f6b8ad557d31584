"""
Registration ledger: one registration per (event, user), status changes and
live attendee counts.
"""

import logging
from datetime import datetime
from typing import List, Optional

from app.api.ws import WebSocketManager, REGISTRATION_UPDATE, REGISTRATION_STATUS_CHANGED
from app.core.errors import Conflict, NotFound, ValidationError
from app.models import RegistrationStatus
from app.schemas.registration import RegistrantInfo, RegistrationResponse, RegistrationWithUser
from app.services.policy import check_capability
from app.services.repositories import Repository
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def attendee_count(repo: Repository, event_id: str) -> int:
    """Approved registrations for the event; never cached"""
    return repo.count_approved(event_id)


class RegistrationService:
    """Service for registering students and moderating their registrations"""

    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager

    async def broadcast_attendee_count(self, repo: Repository, event_id: str) -> int:
        count = attendee_count(repo, event_id)
        await self.websocket_manager.broadcast(REGISTRATION_UPDATE, {
            "eventId": event_id,
            "attendeeCount": count
        })
        return count

    async def register(
        self,
        repo: Repository,
        event_id: str,
        caller: dict,
        now: Optional[datetime] = None
    ) -> RegistrationResponse:
        """Register the caller as ``pending``; capacity is not checked here"""
        if not repo.get_event(event_id):
            raise NotFound("Event not found")

        registration = repo.create_registration_if_absent(event_id, caller["id"], now or utcnow())
        if registration is None:
            raise Conflict("Already registered")

        logger.info(f"User {caller['id']} registered for event {event_id}")
        await self.broadcast_attendee_count(repo, event_id)
        return RegistrationResponse(**registration)

    def list_registrations(self, repo: Repository, event_id: str, caller: dict) -> List[RegistrationWithUser]:
        event = repo.get_event(event_id)
        if not event:
            raise NotFound("Event not found")
        check_capability(caller, event["organizer_id"])

        results = []
        for registration in repo.list_registrations(event_id):
            user = repo.get_user(registration["user_id"])
            registrant = RegistrantInfo(id=user["id"], name=user["name"], email=user["email"]) if user else None
            results.append(RegistrationWithUser(**registration, user=registrant))
        return results

    async def set_status(
        self,
        repo: Repository,
        registration_id: str,
        status: str,
        caller: dict
    ) -> RegistrationResponse:
        """Set a registration's status.

        Any status may be set from any other; approved and rejected are
        terminal only by convention.
        """
        registration = repo.get_registration(registration_id)
        if not registration:
            raise NotFound("Registration not found")

        event = repo.get_event(registration["event_id"])
        if not event:
            raise NotFound("Event not found")
        check_capability(caller, event["organizer_id"])

        try:
            status = RegistrationStatus(status).value
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'")

        updated = repo.set_registration_status(registration_id, status)
        if updated is None:
            raise NotFound("Registration not found")

        logger.info(f"Registration {registration_id} set to {status} by {caller['id']}")

        await self.broadcast_attendee_count(repo, event["id"])
        # Sent to everyone; clients pick out their own userId
        await self.websocket_manager.broadcast(REGISTRATION_STATUS_CHANGED, {
            "userId": updated["user_id"],
            "eventId": event["id"],
            "status": status
        })
        return RegistrationResponse(**updated)
