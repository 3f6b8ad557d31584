"""
Public API routes - no authentication required
"""

from fastapi import APIRouter

from app.api.ws import websocket_manager

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "liveConnections": websocket_manager.get_connection_count()}
