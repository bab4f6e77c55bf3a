# htverse/users.py
"""User accounts: registration, login, profile lookup, demo seeding."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from htverse.errors import EmailTaken, Unauthorized, ValidationError
from htverse.identity import hash_password, issue_token, verify_password
from htverse.models import LoginRequest, Role, User, UserCreate
from htverse.store import RecordStore

logger = logging.getLogger("htverse.users")

DEMO_ACCOUNTS = [
    {
        "name": "Admin User",
        "email": "admin@hackathon.com",
        "password": "admin123",
        "role": Role.ADMIN.value,
        "college": "Demo University",
        "phone": "1234567890",
        "skills": ["Management", "Organization"],
        "isVerified": True,
    },
    {
        "name": "John Doe",
        "email": "john@student.com",
        "password": "john123",
        "role": Role.PARTICIPANT.value,
        "college": "Demo College",
        "phone": "9876543210",
        "skills": ["Web Development", "JavaScript"],
        "isVerified": True,
    },
]


def _to_user(record: Dict[str, Any]) -> User:
    return User.model_validate(record)


class UserService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _create(self, payload: UserCreate, role: str = Role.PARTICIPANT.value, verified: bool = False) -> User:
        if self.store.find_user_by_email(payload.email) is not None:
            raise EmailTaken()
        record = self.store.insert_user(
            {
                "name": payload.name,
                "email": payload.email,
                "passwordHash": hash_password(payload.password),
                "role": role,
                "college": payload.college,
                "phone": payload.phone,
                "skills": payload.skills,
                "isVerified": verified,
                "profilePicture": "",
            }
        )
        return _to_user(record)

    def register(self, payload: UserCreate) -> Tuple[User, str]:
        """Self-registration always yields a participant account."""
        user = self._create(payload)
        logger.info(f"User registered id={user.id}")
        return user, issue_token(user.id)

    def login(self, payload: LoginRequest) -> Tuple[User, str]:
        if not payload.email or not payload.password:
            raise ValidationError("Please provide email and password")

        record = self.store.find_user_by_email(payload.email)
        if record is None or not verify_password(payload.password, record.get("passwordHash")):
            raise Unauthorized("Invalid credentials")

        user = _to_user(record)
        return user, issue_token(user.id)

    def get(self, user_id: str) -> Optional[User]:
        record = self.store.find_user(user_id)
        return _to_user(record) if record is not None else None

    def seed_demo_accounts(self) -> int:
        """Create the demo accounts that do not exist yet. Returns how many were created."""
        created = 0
        for account in DEMO_ACCOUNTS:
            if self.store.find_user_by_email(account["email"]) is not None:
                logger.info(f"Demo account {account['email']} already exists")
                continue
            payload = UserCreate.model_validate(account)
            self._create(payload, role=account["role"], verified=account["isVerified"])
            created += 1
            logger.info(f"Created demo account {account['email']} ({account['role']})")
        return created
