# htverse/routes/admin_routes.py
"""Admin-only overview endpoints."""

from fastapi import APIRouter, Depends, Query

from htverse.dependencies import get_clock, get_current_user, get_manager
from htverse.lifecycle import Clock, HackathonLifecycleManager
from htverse.models import HackathonQuery, SortOrder, User
from htverse.policy import Operation, require_access
from htverse.presenters import present_many

router = APIRouter(prefix="/api/admin", tags=["admin"])


def require_admin(user: User = Depends(get_current_user)) -> User:
    require_access(Operation.ADMIN_VIEW, user.role, user.id)
    return user


@router.get("/dashboard")
def dashboard(
    _: User = Depends(require_admin),
    manager: HackathonLifecycleManager = Depends(get_manager),
):
    return {"success": True, "data": manager.dashboard()}


@router.get("/hackathons")
def all_hackathons(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(require_admin),
    manager: HackathonLifecycleManager = Depends(get_manager),
    clock: Clock = Depends(get_clock),
):
    """Every hackathon, inactive ones included, newest first."""
    query = HackathonQuery(sort=SortOrder.NEWEST, page=page, limit=limit, include_inactive=True)
    result = manager.list(query)
    data = present_many(result.items, manager.store, clock())
    return {
        "success": True,
        "count": len(data),
        "total": result.total,
        "page": result.page,
        "pages": result.pages,
        "data": data,
    }
