"""
Campus Events - FastAPI Backend
Main application entry point
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.core.db import engine, Base
from app.core.errors import CampusEventsError
from app.api import routes_auth, routes_events, routes_registrations, routes_public, ws
from app.services.expiry_sweeper import ExpirySweeper
from app.services.repositories import use_firestore
from app.utils.responses import domain_error_response

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

expiry_sweeper = ExpirySweeper(ws.websocket_manager)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    if not use_firestore():
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")

    # First sweep happens immediately, then every SWEEP_INTERVAL_SECONDS
    sweeper_task = asyncio.create_task(expiry_sweeper.run_forever())
    try:
        yield
    finally:
        sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper_task
        logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Campus Events",
    description="Campus event registration with live updates",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(CampusEventsError)
async def campus_events_error_handler(request: Request, exc: CampusEventsError):
    return domain_error_response(exc)

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(routes_events.router, prefix="/api/events", tags=["events"])
app.include_router(routes_registrations.router, prefix="/api/registrations", tags=["registrations"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=5000,
        reload=True
    )
