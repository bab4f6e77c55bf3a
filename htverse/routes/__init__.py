# htverse/routes/__init__.py
"""Router registry.

Single source of truth for FastAPI route inclusion.

Guidelines:
- Keep this list deterministic and explicit.
- Each router must be mounted exactly once (no duplicates).
"""

from __future__ import annotations

from htverse.routes.admin_routes import router as admin_router
from htverse.routes.auth_routes import router as auth_router
from htverse.routes.diag_routes import router as diag_router
from htverse.routes.hackathon_routes import router as hackathon_router

# Deterministic inclusion order:
# 1) Diagnostics / banner
# 2) Identity
# 3) Business APIs (hackathons, admin)
routers = [
    diag_router,
    auth_router,
    hackathon_router,
    admin_router,
]

__all__ = ["routers"]
