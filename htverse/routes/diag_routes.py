# htverse/routes/diag_routes.py
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from htverse.config import APP_VERSION, config_diag_safe

logger = logging.getLogger("htverse")
router = APIRouter(tags=["diag"])

_STARTED = time.monotonic()


@router.get("/")
def root():
    return {
        "message": "Hackathon Platform API is running!",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "auth": "/api/auth",
            "hackathons": "/api/hackathons",
        },
    }


@router.get("/api/health")
def health():
    return {
        "status": "OK",
        "message": "Server is healthy",
        "uptime": round(time.monotonic() - _STARTED, 3),
    }


@router.get("/api/diag/config")
def diag_config():
    return config_diag_safe()
