# htverse/identity.py
"""
Identity provider.

- bcrypt password hashing (cost BCRYPT_ROUNDS)
- HS256 bearer tokens via PyJWT carrying {"userId", "iat", "exp"}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from htverse.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRES_HOURS, jwt_secret
from htverse.errors import Unauthorized

logger = logging.getLogger("htverse.identity")


# ---------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------
def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Unreadable password hash encountered")
        return False


# ---------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------
def issue_token(
    user_id: str,
    now: Optional[datetime] = None,
    expires_hours: int = JWT_EXPIRES_HOURS,
) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "iat": issued,
        "exp": issued + timedelta(hours=expires_hours),
    }
    return jwt.encode(payload, jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Verify signature + expiry and return the user id carried by the token."""
    try:
        payload = jwt.decode(token, jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError as exc:
        logger.debug(f"Rejected bearer token: {exc}")
        raise Unauthorized()

    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        raise Unauthorized()
    return user_id
