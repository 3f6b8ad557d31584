"""
Background removal of events whose date is more than a grace period in the past
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, ContextManager, List, Optional

from app.api.ws import WebSocketManager, EVENT_DELETED
from app.core.config import settings
from app.services.repositories import Repository, open_repository
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Deletes expired events at start-up and then on a fixed interval.

    Swept events take their registrations with them (unless
    ``cascade`` is off) and every deletion is broadcast as
    ``eventDeleted``, the same as an explicit delete.
    """

    def __init__(
        self,
        websocket_manager: WebSocketManager,
        repository_factory: Callable[[], ContextManager[Repository]] = open_repository,
        interval_seconds: Optional[float] = None,
        grace: Optional[timedelta] = None,
        cascade: Optional[bool] = None,
    ):
        self.websocket_manager = websocket_manager
        self.repository_factory = repository_factory
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.SWEEP_INTERVAL_SECONDS
        self.grace = grace if grace is not None else timedelta(hours=settings.EXPIRY_GRACE_HOURS)
        self.cascade = settings.SWEEP_CASCADE_REGISTRATIONS if cascade is None else cascade

    def sweep(self, repo: Repository, now: Optional[datetime] = None) -> List[str]:
        cutoff = (now or utcnow()) - self.grace
        return repo.delete_events_before(cutoff, cascade=self.cascade)

    async def run_once(self, now: Optional[datetime] = None) -> List[str]:
        """One sweep; failures are logged and reported as nothing deleted"""
        try:
            with self.repository_factory() as repo:
                deleted = self.sweep(repo, now)
        except Exception:
            logger.exception("Error deleting expired events")
            return []

        if deleted:
            logger.info(f"Deleted {len(deleted)} expired events")
        for event_id in deleted:
            await self.websocket_manager.broadcast(EVENT_DELETED, event_id)
        return deleted

    async def run_forever(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
