# htverse/store/records.py
"""Document store for users and hackathons.

Responsibilities:
- Translate between stored documents (ObjectId, naive UTC dates) and
  plain records (string ids, aware UTC dates) consumed by the models
- Filter / sort / paginate hackathon queries
- Atomic single-document updates for the participants array

Collections use the camelCase field names of the public API.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from htverse.errors import EmailTaken
from htverse.metrics import STORE_LATENCY
from htverse.models import HackathonQuery, HackathonStatus, SortOrder
from htverse.utils import ensure_utc, to_storage, utc_now

logger = logging.getLogger("htverse.store")

_DATE_FIELDS = ("startDate", "endDate", "registrationDeadline", "createdAt", "updatedAt")

_SORTS: Dict[str, List[Tuple[str, int]]] = {
    SortOrder.NEWEST.value: [("createdAt", DESCENDING)],
    SortOrder.OLDEST.value: [("createdAt", ASCENDING)],
    SortOrder.PRIZE.value: [("prizePool", DESCENDING)],
    SortOrder.DEADLINE.value: [("registrationDeadline", ASCENDING)],
}


# ─────────────────────────────────────────────────────────────
# Conversion helpers
# ─────────────────────────────────────────────────────────────
def parse_id(value: Any) -> Optional[ObjectId]:
    """String -> ObjectId, or None when the value cannot be an id."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _to_record(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    if "organizer" in out and out["organizer"] is not None:
        out["organizer"] = str(out["organizer"])
    if "participants" in out:
        out["participants"] = [str(p) for p in out.get("participants") or []]
    for key in _DATE_FIELDS:
        if isinstance(out.get(key), datetime):
            out[key] = ensure_utc(out[key])
    return out


def _to_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(fields)
    out.pop("id", None)
    for key in _DATE_FIELDS:
        if isinstance(out.get(key), datetime):
            out[key] = to_storage(out[key])
    return out


def _status_clause(status: str, now: datetime) -> Dict[str, Any]:
    """
    Match on the *derived* status so a stale stored value never hides a record.
    Cancelled is the only status that is read from the document itself.
    """
    cancelled = HackathonStatus.CANCELLED.value
    if status == cancelled:
        return {"status": cancelled}

    t = to_storage(now)
    live = {"status": {"$ne": cancelled}}
    if status == HackathonStatus.UPCOMING.value:
        return {**live, "startDate": {"$gt": t}}
    if status == HackathonStatus.ONGOING.value:
        return {**live, "startDate": {"$lte": t}, "endDate": {"$gte": t}}
    return {**live, "endDate": {"$lt": t}}


class RecordStore:
    """
    Thin wrapper around the `users` and `hackathons` collections.

    `db` is a pymongo `Database` (mongomock's in tests); only
    single-document atomicity is relied upon.
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now) -> None:
        self.db = db
        self.clock = clock
        self.users = db["users"]
        self.hackathons = db["hackathons"]

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def ensure_indexes(self) -> None:
        self.users.create_index([("email", ASCENDING)], unique=True)

        self.hackathons.create_index([("status", ASCENDING)])
        self.hackathons.create_index([("categories", ASCENDING)])
        self.hackathons.create_index([("registrationDeadline", ASCENDING)])
        self.hackathons.create_index([("createdAt", DESCENDING)])
        self.hackathons.create_index([("prizePool", DESCENDING)])
        self.hackathons.create_index([("isActive", ASCENDING)])
        self.hackathons.create_index([("organizer", ASCENDING)])
        self.hackathons.create_index([("participants", ASCENDING)])
        self.hackathons.create_index([("status", ASCENDING), ("isActive", ASCENDING)])
        self.hackathons.create_index([("categories", ASCENDING), ("status", ASCENDING)])

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def insert_user(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = self.clock()
        doc = _to_document({**fields, "createdAt": now, "updatedAt": now})
        with STORE_LATENCY.labels(operation="insert_user").time():
            try:
                result = self.users.insert_one(doc)
            except DuplicateKeyError:
                raise EmailTaken()
        doc["_id"] = result.inserted_id
        return _to_record(doc)

    def find_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        oid = parse_id(user_id)
        if oid is None:
            return None
        with STORE_LATENCY.labels(operation="find_user").time():
            return _to_record(self.users.find_one({"_id": oid}))

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with STORE_LATENCY.labels(operation="find_user").time():
            return _to_record(self.users.find_one({"email": (email or "").strip().lower()}))

    def find_users(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Batch lookup keyed by string id; unknown ids are simply absent."""
        oids = [oid for oid in (parse_id(u) for u in user_ids) if oid is not None]
        if not oids:
            return {}
        projection = {"name": 1, "email": 1, "college": 1, "skills": 1}
        with STORE_LATENCY.labels(operation="find_users").time():
            docs = list(self.users.find({"_id": {"$in": oids}}, projection))
        return {r["id"]: r for r in (_to_record(d) for d in docs)}

    def count_users(self) -> int:
        return self.users.count_documents({})

    # ------------------------------------------------------------------
    # Hackathons: CRUD
    # ------------------------------------------------------------------
    def insert_hackathon(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = self.clock()
        doc = _to_document({**fields, "createdAt": now, "updatedAt": now})
        doc["organizer"] = parse_id(doc["organizer"])
        doc["participants"] = [parse_id(p) for p in doc.get("participants") or []]
        with STORE_LATENCY.labels(operation="insert_hackathon").time():
            result = self.hackathons.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_record(doc)

    def find_hackathon(self, hackathon_id: str) -> Optional[Dict[str, Any]]:
        oid = parse_id(hackathon_id)
        if oid is None:
            return None
        with STORE_LATENCY.labels(operation="find_hackathon").time():
            return _to_record(self.hackathons.find_one({"_id": oid}))

    def update_hackathon(self, hackathon_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply `fields`. When `maxParticipants` is among them, the write only
        happens if the participants array still fits the new capacity.

        Returns the updated record, or None when nothing matched.
        """
        oid = parse_id(hackathon_id)
        if oid is None:
            return None
        flt: Dict[str, Any] = {"_id": oid}
        max_participants = fields.get("maxParticipants")
        if max_participants is not None:
            # element N absent <=> len(participants) <= N
            flt[f"participants.{max_participants}"] = {"$exists": False}
        changes = _to_document({**fields, "updatedAt": self.clock()})
        with STORE_LATENCY.labels(operation="update_hackathon").time():
            doc = self.hackathons.find_one_and_update(
                flt,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return _to_record(doc)

    def delete_hackathon(self, hackathon_id: str) -> bool:
        oid = parse_id(hackathon_id)
        if oid is None:
            return False
        with STORE_LATENCY.labels(operation="delete_hackathon").time():
            return self.hackathons.delete_one({"_id": oid}).deleted_count == 1

    def set_status(self, hackathon_id: str, status: str) -> bool:
        """
        Write back a derived status. Never overwrites a cancellation that
        landed after the read.
        """
        oid = parse_id(hackathon_id)
        if oid is None:
            return False
        cancelled = HackathonStatus.CANCELLED.value
        with STORE_LATENCY.labels(operation="set_status").time():
            result = self.hackathons.update_one(
                {"_id": oid, "status": {"$ne": cancelled}},
                {"$set": {"status": status}},
            )
        return result.modified_count == 1

    # ------------------------------------------------------------------
    # Hackathons: queries
    # ------------------------------------------------------------------
    def build_filter(self, query: HackathonQuery, now: datetime) -> Dict[str, Any]:
        flt: Dict[str, Any] = {}
        if query.category:
            flt["categories"] = {"$in": [query.category]}
        if query.status is not None:
            flt.update(_status_clause(HackathonStatus(query.status).value, now))
        elif not query.include_inactive:
            flt["isActive"] = True
        return flt

    def search_hackathons(self, query: HackathonQuery, now: datetime) -> Tuple[List[Dict[str, Any]], int]:
        """Return (page of records, total matching)."""
        flt = self.build_filter(query, now)
        sort = _SORTS.get(SortOrder(query.sort).value, _SORTS[SortOrder.NEWEST.value])
        # _id tiebreak keeps pagination stable when sort keys collide
        sort = sort + [("_id", sort[0][1])]
        skip = (query.page - 1) * query.limit

        with STORE_LATENCY.labels(operation="search_hackathons").time():
            cursor = self.hackathons.find(flt).sort(sort).skip(skip).limit(query.limit)
            docs = [_to_record(d) for d in cursor]
            total = self.hackathons.count_documents(flt)
        return docs, total

    def count_hackathons(self, active_only: bool = False) -> int:
        return self.hackathons.count_documents({"isActive": True} if active_only else {})

    def total_registrations(self) -> int:
        total = 0
        for doc in self.hackathons.find({}, {"participants": 1}):
            total += len(doc.get("participants") or [])
        return total

    # ------------------------------------------------------------------
    # Hackathons: participants (atomic conditional updates)
    # ------------------------------------------------------------------
    def add_participant(
        self,
        hackathon_id: str,
        user_id: str,
        *,
        max_participants: int,
        now: datetime,
    ) -> Optional[Dict[str, Any]]:
        """
        Append `user_id` only if, at write time, the user is not yet listed,
        the array is shorter than `max_participants`, the hackathon is
        active and the deadline has not passed.

        Returns the updated record, or None when any condition failed.
        """
        oid, uid = parse_id(hackathon_id), parse_id(user_id)
        if oid is None or uid is None or max_participants < 1:
            return None
        t = to_storage(now)
        flt = {
            "_id": oid,
            "participants": {"$ne": uid},
            # element N-1 absent <=> len(participants) < N
            f"participants.{max_participants - 1}": {"$exists": False},
            "maxParticipants": max_participants,
            "isActive": True,
            "registrationDeadline": {"$gte": t},
        }
        with STORE_LATENCY.labels(operation="add_participant").time():
            doc = self.hackathons.find_one_and_update(
                flt,
                {"$push": {"participants": uid}, "$set": {"updatedAt": t}},
                return_document=ReturnDocument.AFTER,
            )
        return _to_record(doc)

    def remove_participant(self, hackathon_id: str, user_id: str, *, now: datetime) -> Optional[Dict[str, Any]]:
        """Pull `user_id` only if it is listed and the hackathon has not started."""
        oid, uid = parse_id(hackathon_id), parse_id(user_id)
        if oid is None or uid is None:
            return None
        t = to_storage(now)
        with STORE_LATENCY.labels(operation="remove_participant").time():
            doc = self.hackathons.find_one_and_update(
                {"_id": oid, "participants": uid, "startDate": {"$gt": t}},
                {"$pull": {"participants": uid}, "$set": {"updatedAt": t}},
                return_document=ReturnDocument.AFTER,
            )
        return _to_record(doc)
