# htverse/presenters.py
"""Hackathon -> JSON payload, with organizer / participants expanded."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List

from htverse.models import Hackathon, UserSummary
from htverse.store import RecordStore


def _summary(record: Dict[str, Any], with_college: bool) -> Dict[str, Any]:
    summary = UserSummary.model_validate(record)
    exclude = None if with_college else {"college"}
    return summary.model_dump(by_alias=True, exclude=exclude)


def present_many(hackathons: Iterable[Hackathon], store: RecordStore, now: datetime) -> List[Dict[str, Any]]:
    """
    Serialize hackathons in one pass, resolving every referenced user with
    a single batch lookup. Ids of users that no longer exist stay bare ids.
    """
    items = list(hackathons)
    user_ids = set()
    for h in items:
        user_ids.add(h.organizer)
        user_ids.update(h.participants)
    users = store.find_users(user_ids)

    out: List[Dict[str, Any]] = []
    for h in items:
        data = h.model_dump(by_alias=True, mode="json")
        data["isRegistrationOpen"] = h.is_registration_open(now)
        if h.organizer in users:
            data["organizer"] = _summary(users[h.organizer], with_college=False)
        data["participants"] = [
            _summary(users[p], with_college=True) if p in users else p
            for p in h.participants
        ]
        out.append(data)
    return out


def present(hackathon: Hackathon, store: RecordStore, now: datetime) -> Dict[str, Any]:
    return present_many([hackathon], store, now)[0]
