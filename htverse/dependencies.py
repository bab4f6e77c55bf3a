# htverse/dependencies.py
"""FastAPI dependencies: store, clock, services, caller identity."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from htverse.errors import Internal, Unauthorized
from htverse.identity import decode_token
from htverse.lifecycle import Clock, HackathonLifecycleManager
from htverse.models import User
from htverse.store import RecordStore
from htverse.users import UserService
from htverse.utils import utc_now

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise Internal("Document store is not connected")
    return store


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or utc_now


def get_manager(
    store: RecordStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> HackathonLifecycleManager:
    return HackathonLifecycleManager(store, clock)


def get_user_service(store: RecordStore = Depends(get_store)) -> UserService:
    return UserService(store)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserService = Depends(get_user_service),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    user = users.get(decode_token(credentials.credentials))
    if user is None:
        raise Unauthorized("No user found with this token")
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise Unauthorized()
    return user
