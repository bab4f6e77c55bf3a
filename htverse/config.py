# htverse/config.py
"""
Central configuration for the hackathon platform API.

Design goals:
- Always load .env from the repository root in a deterministic way
- Real environment variables win over .env values
- Keep secrets out of logs (provide "safe" diagnostics)
"""

from __future__ import annotations

import logging
import os
from typing import List

from dotenv import load_dotenv

from htverse.utils import REPO_ROOT

logger = logging.getLogger("htverse.config")

load_dotenv(dotenv_path=REPO_ROOT / ".env", override=False)


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_list(key: str, default: List[str]) -> List[str]:
    raw = os.getenv(key)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# ---------------------------------------------------------------------
# 1) Runtime environment
# ---------------------------------------------------------------------
APP_ENV = os.getenv("APP_ENV", "development").strip().lower()
# Allowed: development | test | production
if APP_ENV not in {"development", "test", "production"}:
    raise RuntimeError(
        f"Invalid APP_ENV='{APP_ENV}'. Expected development|test|production."
    )

APP_DEBUG = _env_bool("APP_DEBUG", False)
APP_VERSION = "1.0.0"


# ---------------------------------------------------------------------
# 2) Document store (MongoDB)
# ---------------------------------------------------------------------
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/hackathon-platform").strip()
MONGODB_DB = os.getenv("MONGODB_DB", "hackathon-platform").strip()
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))


# ---------------------------------------------------------------------
# 3) Identity: bearer tokens + password hashing
#
# JWT_SECRET is mandatory in production. Outside production an
# ephemeral development secret is used and a warning is logged.
# ---------------------------------------------------------------------
_DEV_JWT_SECRET = "htverse-dev-secret-change-me"

JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "168"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))


# ---------------------------------------------------------------------
# 4) Behaviour switches
# ---------------------------------------------------------------------
SEED_DEMO_ACCOUNTS = _env_bool("SEED_DEMO_ACCOUNTS", True)
STATUS_CACHE_REFRESH = _env_bool("STATUS_CACHE_REFRESH", True)


# ---------------------------------------------------------------------
# 5) CORS
# ---------------------------------------------------------------------
CORS_ORIGINS = _env_list(
    "CORS_ORIGINS",
    [
        "https://htverse-platform.vercel.app",
        "http://localhost:3000",
        "http://localhost:5500",
        "http://127.0.0.1:5500",
    ],
)
CORS_ORIGIN_REGEX = os.getenv(
    "CORS_ORIGIN_REGEX",
    r"https?://(localhost|127\.0\.0\.1)(:\d+)?|https://[A-Za-z0-9-]+\.vercel\.app",
).strip()


# ---------------------------------------------------------------------
# 6) Validation helpers (used at startup)
# ---------------------------------------------------------------------
def jwt_secret() -> str:
    """Return the signing secret, falling back to the dev secret outside production."""
    if JWT_SECRET:
        return JWT_SECRET
    if APP_ENV == "production":
        raise RuntimeError("JWT_SECRET is empty (APP_ENV=production).")
    return _DEV_JWT_SECRET


def validate_config() -> None:
    """
    Validate settings before the app starts serving.
    - production: requires JWT_SECRET
    - all: bcrypt cost within the library's accepted range, positive expiry
    """
    if APP_ENV == "production" and not JWT_SECRET:
        raise RuntimeError("JWT_SECRET is empty (APP_ENV=production).")
    if not JWT_SECRET:
        logger.warning("JWT_SECRET not set, using the development secret")

    if not 4 <= BCRYPT_ROUNDS <= 31:
        raise RuntimeError(f"BCRYPT_ROUNDS={BCRYPT_ROUNDS} outside 4..31.")
    if JWT_EXPIRES_HOURS <= 0:
        raise RuntimeError("JWT_EXPIRES_HOURS must be positive.")
    if not MONGODB_URI:
        raise RuntimeError("MONGODB_URI is empty.")


def config_diag_safe() -> dict:
    """
    Safe diagnostics (no secrets).
    Used by the /api/diag/config endpoint.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "app_env": APP_ENV,
        "app_debug": APP_DEBUG,
        "version": APP_VERSION,
        "mongodb_db": MONGODB_DB,
        "mongodb_timeout_ms": MONGODB_TIMEOUT_MS,
        "has_mongodb_uri": bool(MONGODB_URI),
        "has_jwt_secret": bool(JWT_SECRET),
        "jwt_expires_hours": JWT_EXPIRES_HOURS,
        "bcrypt_rounds": BCRYPT_ROUNDS,
        "seed_demo_accounts": SEED_DEMO_ACCOUNTS,
        "status_cache_refresh": STATUS_CACHE_REFRESH,
        "cors_origins": CORS_ORIGINS,
    }
