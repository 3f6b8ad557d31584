"""
WebSocket manager for real-time updates
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, List

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

EVENT_CREATED = "eventCreated"
EVENT_UPDATED = "eventUpdated"
EVENT_DELETED = "eventDeleted"
REGISTRATION_UPDATE = "registrationUpdate"
REGISTRATION_STATUS_CHANGED = "registrationStatusChanged"


class WebSocketManager:
    """Registry of connected clients; every client receives every update"""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    def subscribe(self, websocket: WebSocket):
        if websocket not in self.active_connections:
            self.active_connections.append(websocket)
        logger.info(f"Client subscribed. Total connections: {len(self.active_connections)}")

    def unsubscribe(self, websocket: WebSocket):
        try:
            self.active_connections.remove(websocket)
        except ValueError:
            return
        logger.info(f"Client unsubscribed. Remaining connections: {len(self.active_connections)}")

    @asynccontextmanager
    async def connection(self, websocket: WebSocket):
        """Accept the socket and keep it subscribed for the duration of the block"""
        await websocket.accept()
        self.subscribe(websocket)
        try:
            yield websocket
        finally:
            self.unsubscribe(websocket)

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        try:
            await websocket.send_text(json.dumps(jsonable_encoder(message)))
        except Exception as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast(self, update_type: str, data: Any):
        """Push ``{type, data, timestamp}`` to every subscriber.

        Delivery is best-effort: a client whose send fails is dropped and
        the remaining clients still get the message.
        """
        message = json.dumps(jsonable_encoder({
            "type": update_type,
            "data": data,
            "timestamp": utcnow(),
        }))

        # Copy so that unsubscribing mid-iteration is safe
        connections = self.active_connections.copy()

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_text(message)
            except Exception as e:
                logger.error(f"Error broadcasting {update_type} to websocket: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.unsubscribe(websocket)

    def get_connection_count(self) -> int:
        return len(self.active_connections)

# Global WebSocket manager instance
websocket_manager = WebSocketManager()

# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/updates")
async def websocket_endpoint(websocket: WebSocket):
    """Live update channel; clients re-fetch state after (re)connecting"""
    async with websocket_manager.connection(websocket):
        await websocket_manager.send_personal_message({
            "type": "connection",
            "message": "Connected to campus event updates",
            "connectionCount": websocket_manager.get_connection_count()
        }, websocket)

        while True:
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue

            if isinstance(client_message, dict) and client_message.get("type") == "ping":
                await websocket_manager.send_personal_message({
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }, websocket)

@router.get("/stats")
async def websocket_stats():
    """Get WebSocket connection statistics (for debugging)"""
    return {"totalConnections": websocket_manager.get_connection_count()}
