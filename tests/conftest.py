"""
Shared fixtures: in-memory database, fake live-update channels and users
"""

import asyncio
import json
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.ws import WebSocketManager
from app.core.config import settings
from app.core.db import Base
from app.services.repositories import SqlRepository

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeChannel:
    """Stands in for a connected WebSocket"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.messages = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("connection closed")
        self.messages.append(json.loads(text))

    def of_type(self, update_type: str):
        return [m["data"] for m in self.messages if m["type"] == update_type]


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repo(db_session):
    return SqlRepository(db_session)


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def manager():
    return WebSocketManager()


@pytest.fixture
def channel(manager):
    ch = FakeChannel()
    manager.subscribe(ch)
    return ch


@pytest.fixture
def organizer(repo):
    return repo.create_user("olivia@campus.edu", "x", "Olivia", "organizer")


@pytest.fixture
def other_organizer(repo):
    return repo.create_user("oscar@campus.edu", "x", "Oscar", "organizer")


@pytest.fixture
def admin(repo):
    return repo.create_user("ada@campus.edu", "x", "Ada", "admin")


@pytest.fixture
def students(repo):
    return [
        repo.create_user(f"{name.lower()}@campus.edu", "x", name, "student")
        for name in ("Amir", "Bea", "Chen")
    ]
