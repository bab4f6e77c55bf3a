# htverse/utils.py
"""
Utility helpers used across the package.

Goals:
- Resolve the repository root reliably (used to locate .env)
- Normalize datetimes: the API works with aware UTC values, MongoDB
  stores naive UTC values
- Small list helpers shared by models and the store
"""

from __future__ import annotations

import pathlib
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional


# ----------------------------------------------------------------------
# 1) Repo root resolution
# ----------------------------------------------------------------------
def _find_repo_root(start: pathlib.Path) -> pathlib.Path:
    """
    Walk up from `start` to find a folder that looks like the project root.

    Markers we accept:
    - `.env` (preferred)
    - `pyproject.toml`
    - `README.md`

    Fallback: the parent of the package directory.
    """
    markers = {".env", "pyproject.toml", "README.md"}
    for p in [start, *start.parents]:
        if any((p / m).exists() for m in markers):
            return p

    parents = list(start.parents)
    return parents[1] if len(parents) > 1 else start.parent


REPO_ROOT = _find_repo_root(pathlib.Path(__file__).resolve())


# ----------------------------------------------------------------------
# 2) Datetime helpers
# ----------------------------------------------------------------------
def utc_now() -> datetime:
    """Default clock: aware UTC now."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Return an aware UTC datetime.

    Naive values are interpreted as UTC (that is what pymongo returns
    when the client is not tz-aware).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Aware/naive datetime -> naive UTC (BSON dates carry no zone)."""
    if value is None:
        return None
    aware = ensure_utc(value)
    return aware.replace(tzinfo=None)


# ----------------------------------------------------------------------
# 3) List helpers
# ----------------------------------------------------------------------
def dedup_keep_order(items: Iterable[Any]) -> List[Any]:
    seen = set()
    out: List[Any] = []
    for it in items:
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out


def clean_str_list(items: Optional[Iterable[Any]]) -> List[str]:
    """Strip strings, drop empties and non-strings, dedup while keeping order."""
    if not items:
        return []
    stripped = [i.strip() for i in items if isinstance(i, str)]
    return dedup_keep_order(s for s in stripped if s)


__all__ = [
    "REPO_ROOT",
    "utc_now",
    "ensure_utc",
    "to_storage",
    "dedup_keep_order",
    "clean_str_list",
]
