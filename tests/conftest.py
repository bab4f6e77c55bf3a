"""
Shared fixtures.

Every test runs against an in-process mongomock database and a controllable
clock, so date-driven rules (deadlines, derived status) are deterministic.
"""

from __future__ import annotations

import os

# Must be set before htverse.config is imported.
os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_DEMO_ACCOUNTS"] = "false"

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import mongomock
import pytest
from fastapi.testclient import TestClient

from htverse.identity import hash_password, issue_token
from htverse.lifecycle import HackathonLifecycleManager
from htverse.main import create_app
from htverse.models import HackathonCreate, User
from htverse.store import RecordStore
from htverse.users import UserService


# ============ Clock ============

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class MutableClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, when: datetime) -> None:
        self.now = when


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


# ============ Store / services ============

@pytest.fixture
def store(clock) -> RecordStore:
    db = mongomock.MongoClient()["htverse-test"]
    s = RecordStore(db, clock=clock)
    s.ensure_indexes()
    return s


@pytest.fixture
def manager(store, clock) -> HackathonLifecycleManager:
    return HackathonLifecycleManager(store, clock)


@pytest.fixture
def user_service(store) -> UserService:
    return UserService(store)


@pytest.fixture
def make_user(store):
    """Insert a user directly in the store and return the model."""
    counter = {"n": 0}

    def _make(role: str = "participant", password: str = "secret123", **fields: Any) -> User:
        counter["n"] += 1
        doc = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "passwordHash": hash_password(password, rounds=4),
            "role": role,
            "college": "Test College",
            "phone": "9876543210",
            "skills": [],
            "isVerified": False,
            "profilePicture": "",
        }
        doc.update(fields)
        return User.model_validate(store.insert_user(doc))

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user(role="admin", name="Admin")


@pytest.fixture
def organizer(make_user) -> User:
    return make_user(role="organizer", name="Olga Organizer")


@pytest.fixture
def participant(make_user) -> User:
    return make_user(role="participant", name="Pat Participant")


# ============ Hackathon payloads ============

def hackathon_payload(**overrides: Any) -> Dict[str, Any]:
    """Valid create payload relative to NOW: deadline +5d, start +10d, end +12d."""
    payload: Dict[str, Any] = {
        "title": "Spring Hack",
        "description": "Build something in 48 hours.",
        "registrationDeadline": (NOW + timedelta(days=5)).isoformat(),
        "startDate": (NOW + timedelta(days=10)).isoformat(),
        "endDate": (NOW + timedelta(days=12)).isoformat(),
        "maxTeamSize": 4,
        "prizePool": 5000,
        "categories": ["AI/ML", "Web Development"],
        "maxParticipants": 100,
        "rules": ["Be kind"],
        "judgesCriteria": [
            {"criterion": "Innovation", "weightage": 40},
            {"criterion": "Execution", "weightage": 60},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_hackathon(manager, organizer):
    """Create a hackathon through the lifecycle manager (organizer by default)."""

    def _create(owner: User = None, **overrides: Any):
        owner = owner or organizer
        payload = HackathonCreate.model_validate(hackathon_payload(**overrides))
        return manager.create(payload, owner.id, owner.role)

    return _create


# ============ HTTP ============

@pytest.fixture
def app(store, clock):
    return create_app(store=store, clock=clock, seed_demo_accounts=False)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user.id)}"}
