"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

Both repositories expose the same methods and hand back plain documents
(dicts carrying an ``id`` key) so the services never see ORM objects or
Firestore snapshots.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Union

from fastapi import Depends
from google.api_core.exceptions import AlreadyExists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import SessionLocal, get_db, new_id
from app.models import Event, Registration, RegistrationStatus, User, UserRole
from app.services.firebase_client import get_firestore_client
from app.utils.timeutils import as_utc


Document = Dict[str, Any]

EVENT_FIELDS = ("title", "description", "date", "location", "max_attendees")


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


# -------- SQLAlchemy --------

def _user_doc(user: User) -> Document:
    return {
        "id": user.id,
        "email": user.email,
        "password_hash": user.password_hash,
        "name": user.name,
        "role": user.role.value,
    }


def _event_doc(event: Event) -> Document:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "date": as_utc(event.date),
        "location": event.location,
        "max_attendees": event.max_attendees,
        "organizer_id": event.organizer_id,
        "created_at": as_utc(event.created_at),
    }


def _registration_doc(registration: Registration) -> Document:
    return {
        "id": registration.id,
        "event_id": registration.event_id,
        "user_id": registration.user_id,
        "status": registration.status.value,
        "registered_at": as_utc(registration.registered_at),
    }


class SqlRepository:
    def __init__(self, db: Session):
        self.db = db

    # users

    def get_user(self, user_id: str) -> Optional[Document]:
        user = self.db.query(User).filter(User.id == user_id).first()
        return _user_doc(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[Document]:
        user = self.db.query(User).filter(User.email == email.lower()).first()
        return _user_doc(user) if user else None

    def create_user(self, email: str, password_hash: str, name: str, role: str) -> Optional[Document]:
        """Insert a user; None when the (lower-cased) email is taken"""
        user = User(email=email.lower(), password_hash=password_hash, name=name, role=UserRole(role))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(user)
        return _user_doc(user)

    # events

    def list_events(self) -> List[Document]:
        return [_event_doc(e) for e in self.db.query(Event).order_by(Event.created_at).all()]

    def get_event(self, event_id: str) -> Optional[Document]:
        event = self.db.query(Event).filter(Event.id == event_id).first()
        return _event_doc(event) if event else None

    def create_event(self, fields: Document, organizer_id: str, created_at: datetime) -> Document:
        event = Event(organizer_id=organizer_id, created_at=created_at, **{k: fields[k] for k in EVENT_FIELDS})
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return _event_doc(event)

    def update_event(self, event_id: str, fields: Document) -> Optional[Document]:
        event = self.db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return None
        for key, value in fields.items():
            setattr(event, key, value)
        self.db.commit()
        self.db.refresh(event)
        return _event_doc(event)

    def delete_event(self, event_id: str, cascade: bool = False) -> bool:
        """Delete one event, and with ``cascade`` its registrations, in a single commit"""
        try:
            if cascade:
                self.db.query(Registration).filter(
                    Registration.event_id == event_id
                ).delete(synchronize_session=False)
            deleted = self.db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return deleted > 0

    def delete_events_before(self, cutoff: datetime, cascade: bool) -> List[str]:
        """Delete events dated strictly before ``cutoff``; returns their ids"""
        ids = [row.id for row in self.db.query(Event.id).filter(Event.date < cutoff).all()]
        if not ids:
            return []
        if cascade:
            self.db.query(Registration).filter(Registration.event_id.in_(ids)).delete(synchronize_session=False)
        self.db.query(Event).filter(Event.id.in_(ids)).delete(synchronize_session=False)
        self.db.commit()
        return ids

    # registrations

    def create_registration_if_absent(self, event_id: str, user_id: str, registered_at: datetime) -> Optional[Document]:
        """Atomic insert-if-absent on (event, user); None when one already exists"""
        registration = Registration(
            event_id=event_id,
            user_id=user_id,
            status=RegistrationStatus.pending,
            registered_at=registered_at,
        )
        self.db.add(registration)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(registration)
        return _registration_doc(registration)

    def get_registration(self, registration_id: str) -> Optional[Document]:
        registration = self.db.query(Registration).filter(Registration.id == registration_id).first()
        return _registration_doc(registration) if registration else None

    def find_registration(self, event_id: str, user_id: str) -> Optional[Document]:
        registration = self.db.query(Registration).filter(
            Registration.event_id == event_id,
            Registration.user_id == user_id
        ).first()
        return _registration_doc(registration) if registration else None

    def list_registrations(self, event_id: str) -> List[Document]:
        registrations = self.db.query(Registration).filter(
            Registration.event_id == event_id
        ).order_by(Registration.registered_at).all()
        return [_registration_doc(r) for r in registrations]

    def set_registration_status(self, registration_id: str, status: str) -> Optional[Document]:
        registration = self.db.query(Registration).filter(Registration.id == registration_id).first()
        if not registration:
            return None
        registration.status = RegistrationStatus(status)
        self.db.commit()
        self.db.refresh(registration)
        return _registration_doc(registration)

    def count_approved(self, event_id: str) -> int:
        return self.db.query(Registration).filter(
            Registration.event_id == event_id,
            Registration.status == RegistrationStatus.approved
        ).count()


# -------- Firestore --------
# Top-level collections "users", "events" and "registrations". A registration's
# document id is derived from (event, user) so that create() is the uniqueness check.

def _snapshot_doc(snapshot) -> Document:
    data = snapshot.to_dict()
    data["id"] = snapshot.id
    for key in ("date", "created_at", "registered_at"):
        if key in data:
            data[key] = as_utc(data[key])
    return data


# Firestore caps a write batch at 500 operations
FIRESTORE_BATCH_LIMIT = 500


def registration_key(event_id: str, user_id: str) -> str:
    return f"{event_id}_{user_id}"


class FirestoreRepository:
    def __init__(self, client):
        self.fs = client

    # users

    def get_user(self, user_id: str) -> Optional[Document]:
        snapshot = self.fs.collection("users").document(user_id).get()
        return _snapshot_doc(snapshot) if snapshot.exists else None

    def get_user_by_email(self, email: str) -> Optional[Document]:
        docs = self.fs.collection("users").where("email", "==", email.lower()).limit(1).get()
        return _snapshot_doc(docs[0]) if docs else None

    def create_user(self, email: str, password_hash: str, name: str, role: str) -> Optional[Document]:
        # Firestore has no unique index; sign-up is not on the contended path
        if self.get_user_by_email(email):
            return None
        user_id = new_id()
        data = {"email": email.lower(), "password_hash": password_hash, "name": name, "role": role}
        self.fs.collection("users").document(user_id).set(data)
        return {"id": user_id, **data}

    # events

    def list_events(self) -> List[Document]:
        return [_snapshot_doc(d) for d in self.fs.collection("events").order_by("created_at").get()]

    def get_event(self, event_id: str) -> Optional[Document]:
        snapshot = self.fs.collection("events").document(event_id).get()
        return _snapshot_doc(snapshot) if snapshot.exists else None

    def create_event(self, fields: Document, organizer_id: str, created_at: datetime) -> Document:
        event_id = new_id()
        data = {k: fields[k] for k in EVENT_FIELDS}
        data.update(organizer_id=organizer_id, created_at=created_at)
        self.fs.collection("events").document(event_id).set(data)
        return {"id": event_id, **data}

    def update_event(self, event_id: str, fields: Document) -> Optional[Document]:
        ref = self.fs.collection("events").document(event_id)
        snapshot = ref.get()
        if not snapshot.exists:
            return None
        if fields:
            ref.update(fields)
        return {**_snapshot_doc(snapshot), **fields}

    def delete_event(self, event_id: str, cascade: bool = False) -> bool:
        """Delete one event, and with ``cascade`` its registrations, through write batches.

        The event goes in the last batch so it outlives its registrations
        when a cascade needs more than one batch.
        """
        ref = self.fs.collection("events").document(event_id)
        if not ref.get().exists:
            return False
        refs = []
        if cascade:
            refs = [d.reference for d in self.fs.collection("registrations").where("event_id", "==", event_id).get()]
        refs.append(ref)
        for start in range(0, len(refs), FIRESTORE_BATCH_LIMIT):
            batch = self.fs.batch()
            for doc_ref in refs[start:start + FIRESTORE_BATCH_LIMIT]:
                batch.delete(doc_ref)
            batch.commit()
        return True

    def delete_events_before(self, cutoff: datetime, cascade: bool) -> List[str]:
        ids: List[str] = []
        for snapshot in self.fs.collection("events").where("date", "<", cutoff).get():
            if self.delete_event(snapshot.id, cascade=cascade):
                ids.append(snapshot.id)
        return ids

    # registrations

    def create_registration_if_absent(self, event_id: str, user_id: str, registered_at: datetime) -> Optional[Document]:
        registration_id = registration_key(event_id, user_id)
        data = {
            "event_id": event_id,
            "user_id": user_id,
            "status": RegistrationStatus.pending.value,
            "registered_at": registered_at,
        }
        try:
            self.fs.collection("registrations").document(registration_id).create(data)
        except AlreadyExists:
            return None
        return {"id": registration_id, **data}

    def get_registration(self, registration_id: str) -> Optional[Document]:
        snapshot = self.fs.collection("registrations").document(registration_id).get()
        return _snapshot_doc(snapshot) if snapshot.exists else None

    def find_registration(self, event_id: str, user_id: str) -> Optional[Document]:
        return self.get_registration(registration_key(event_id, user_id))

    def list_registrations(self, event_id: str) -> List[Document]:
        docs = self.fs.collection("registrations").where("event_id", "==", event_id).get()
        return sorted((_snapshot_doc(d) for d in docs), key=lambda r: r["registered_at"])

    def set_registration_status(self, registration_id: str, status: str) -> Optional[Document]:
        ref = self.fs.collection("registrations").document(registration_id)
        snapshot = ref.get()
        if not snapshot.exists:
            return None
        ref.update({"status": status})
        return {**_snapshot_doc(snapshot), "status": status}

    def count_approved(self, event_id: str) -> int:
        docs = self.fs.collection("registrations").where("event_id", "==", event_id).where(
            "status", "==", RegistrationStatus.approved.value
        ).get()
        return len(docs)


Repository = Union[SqlRepository, FirestoreRepository]


def get_repository(db: Session = Depends(get_db)) -> Repository:
    """FastAPI dependency returning the configured backend"""
    if use_firestore():
        return FirestoreRepository(get_firestore_client())
    return SqlRepository(db)


@contextmanager
def open_repository() -> Iterator[Repository]:
    """Repository outside of a request (background tasks)"""
    if use_firestore():
        yield FirestoreRepository(get_firestore_client())
        return
    db = SessionLocal()
    try:
        yield SqlRepository(db)
    finally:
        db.close()
