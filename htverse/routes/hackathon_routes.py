# htverse/routes/hackathon_routes.py
"""Hackathon CRUD + registration endpoints.

Reads are public. Writes need a bearer token; who may do what is decided
by the access policy gate inside the lifecycle manager.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from htverse.config import STATUS_CACHE_REFRESH
from htverse.dependencies import get_clock, get_current_user, get_manager
from htverse.lifecycle import Clock, HackathonLifecycleManager
from htverse.models import HackathonCreate, HackathonQuery, HackathonStatus, HackathonUpdate, SortOrder, User
from htverse.presenters import present, present_many

router = APIRouter(prefix="/api/hackathons", tags=["hackathons"])


def _schedule_refresh(background: BackgroundTasks, manager: HackathonLifecycleManager, stale) -> None:
    if STATUS_CACHE_REFRESH and stale:
        background.add_task(manager.refresh_statuses, stale)


@router.get("")
def list_hackathons(
    background: BackgroundTasks,
    category: Optional[str] = Query(None),
    status: Optional[HackathonStatus] = Query(None),
    sort: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    manager: HackathonLifecycleManager = Depends(get_manager),
    clock: Clock = Depends(get_clock),
):
    # Unknown sort keys fall back to newest first
    sort_order = SortOrder(sort) if sort in {s.value for s in SortOrder} else SortOrder.NEWEST
    query = HackathonQuery(category=category or None, status=status, sort=sort_order, page=page, limit=limit)

    result = manager.list(query)
    _schedule_refresh(background, manager, result.stale)

    data = present_many(result.items, manager.store, clock())
    return {
        "success": True,
        "message": "Hackathons fetched successfully",
        "count": len(data),
        "total": result.total,
        "page": result.page,
        "pages": result.pages,
        "data": data,
    }


@router.get("/{hackathon_id}")
def get_hackathon(
    hackathon_id: str,
    background: BackgroundTasks,
    manager: HackathonLifecycleManager = Depends(get_manager),
    clock: Clock = Depends(get_clock),
):
    hackathon, stale = manager.get(hackathon_id)
    _schedule_refresh(background, manager, stale)
    return {
        "success": True,
        "message": "Hackathon fetched successfully",
        "data": present(hackathon, manager.store, clock()),
    }


@router.post("", status_code=201)
def create_hackathon(
    payload: HackathonCreate,
    user: User = Depends(get_current_user),
    manager: HackathonLifecycleManager = Depends(get_manager),
    clock: Clock = Depends(get_clock),
):
    hackathon = manager.create(payload, user.id, user.role)
    return {
        "success": True,
        "message": "Hackathon created successfully",
        "data": present(hackathon, manager.store, clock()),
    }


@router.put("/{hackathon_id}")
def update_hackathon(
    hackathon_id: str,
    patch: HackathonUpdate,
    user: User = Depends(get_current_user),
    manager: HackathonLifecycleManager = Depends(get_manager),
    clock: Clock = Depends(get_clock),
):
    hackathon = manager.update(hackathon_id, patch, user.id, user.role)
    return {
        "success": True,
        "message": "Hackathon updated successfully",
        "data": present(hackathon, manager.store, clock()),
    }


@router.delete("/{hackathon_id}")
def delete_hackathon(
    hackathon_id: str,
    user: User = Depends(get_current_user),
    manager: HackathonLifecycleManager = Depends(get_manager),
):
    manager.delete(hackathon_id, user.id, user.role)
    return {"success": True, "message": "Hackathon deleted successfully", "data": None}


@router.post("/{hackathon_id}/register")
def register_for_hackathon(
    hackathon_id: str,
    user: User = Depends(get_current_user),
    manager: HackathonLifecycleManager = Depends(get_manager),
):
    result = manager.register(hackathon_id, user.id)
    return {
        "success": True,
        "message": "Successfully registered for hackathon",
        "data": result.model_dump(by_alias=True, mode="json"),
    }


@router.delete("/{hackathon_id}/register")
def unregister_from_hackathon(
    hackathon_id: str,
    user: User = Depends(get_current_user),
    manager: HackathonLifecycleManager = Depends(get_manager),
):
    result = manager.unregister(hackathon_id, user.id)
    return {
        "success": True,
        "message": "Successfully unregistered from hackathon",
        "data": result.model_dump(by_alias=True, mode="json"),
    }
