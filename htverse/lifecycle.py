# htverse/lifecycle.py
"""Hackathon lifecycle manager.

Owns the hackathon state rules:
- creation-time date invariants
- derived status (upcoming -> ongoing -> completed, cancelled is sticky)
- registration / unregistration checks, evaluated in a fixed order so the
  first violated rule decides the error

Time always comes from the injected clock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as SchemaError

from htverse.errors import (
    AlreadyRegistered,
    AlreadyStarted,
    CapacityBelowRegistrations,
    CapacityExceeded,
    Conflict,
    DeadlineInPast,
    DeadlinePassed,
    Inactive,
    InvalidDateRange,
    InvalidDeadlineOrdering,
    NotFound,
    NotRegistered,
    ValidationError,
)
from htverse.metrics import REGISTRATIONS, STATUS_REFRESHES
from htverse.models import (
    Hackathon,
    HackathonCreate,
    HackathonFields,
    HackathonPage,
    HackathonQuery,
    HackathonStatus,
    HackathonUpdate,
    RegistrationResult,
    UnregistrationResult,
)
from htverse.policy import Operation, require_access
from htverse.store import RecordStore
from htverse.utils import utc_now

logger = logging.getLogger("htverse.lifecycle")

Clock = Callable[[], datetime]

_NOT_FOUND = "Hackathon not found"


def derive_status(
    current: str,
    start_date: datetime,
    end_date: datetime,
    now: datetime,
) -> str:
    """
    Status as a function of time. A cancelled hackathon stays cancelled.

        now <  start         -> upcoming
        start <= now <= end  -> ongoing
        now >  end           -> completed
    """
    if current == HackathonStatus.CANCELLED.value:
        return current
    if now < start_date:
        return HackathonStatus.UPCOMING.value
    if now <= end_date:
        return HackathonStatus.ONGOING.value
    return HackathonStatus.COMPLETED.value


def check_dates(fields: HackathonFields) -> None:
    """Ordering invariants that must hold for every stored hackathon."""
    if fields.start_date >= fields.end_date:
        raise InvalidDateRange()
    if fields.registration_deadline >= fields.start_date:
        raise InvalidDeadlineOrdering()


def _schema_error(exc: SchemaError) -> ValidationError:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return ValidationError("Validation failed", data={"details": details})


class HackathonLifecycleManager:
    def __init__(self, store: RecordStore, clock: Clock = utc_now) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _load(self, hackathon_id: str) -> Hackathon:
        record = self.store.find_hackathon(hackathon_id)
        if record is None:
            raise NotFound(_NOT_FOUND)
        return Hackathon.model_validate(record)

    def _with_derived_status(self, hackathon: Hackathon, now: datetime) -> Tuple[Hackathon, bool]:
        """Return (hackathon carrying its derived status, stored value was stale)."""
        derived = derive_status(hackathon.status, hackathon.start_date, hackathon.end_date, now)
        if derived == hackathon.status:
            return hackathon, False
        return hackathon.model_copy(update={"status": derived}), True

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create(self, payload: HackathonCreate, caller_id: str, caller_role: str) -> Hackathon:
        require_access(Operation.CREATE, caller_role, caller_id)

        check_dates(payload)
        if payload.registration_deadline <= self.clock():
            raise DeadlineInPast()

        fields = payload.model_dump(by_alias=True)
        fields.update(
            organizer=caller_id,
            participants=[],
            status=HackathonStatus.UPCOMING.value,
        )
        record = self.store.insert_hackathon(fields)
        hackathon = Hackathon.model_validate(record)
        logger.info(f"Hackathon created id={hackathon.id} organizer={caller_id}")
        return hackathon

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def list(self, query: HackathonQuery) -> HackathonPage:
        now = self.clock()
        records, total = self.store.search_hackathons(query, now)

        items: List[Hackathon] = []
        stale: List[Tuple[str, str]] = []
        for record in records:
            hackathon, changed = self._with_derived_status(Hackathon.model_validate(record), now)
            items.append(hackathon)
            if changed:
                stale.append((hackathon.id, hackathon.status))

        return HackathonPage(items=items, total=total, page=query.page, limit=query.limit, stale=stale)

    def get(self, hackathon_id: str) -> Tuple[Hackathon, List[Tuple[str, str]]]:
        """Return the hackathon and the (id, status) write-back it needs, if any."""
        hackathon, changed = self._with_derived_status(self._load(hackathon_id), self.clock())
        return hackathon, ([(hackathon.id, hackathon.status)] if changed else [])

    def refresh_statuses(self, stale: List[Tuple[str, str]]) -> None:
        """
        Best-effort write-back of derived statuses. Runs after the response
        has been sent; failures are logged and counted only.
        """
        for hackathon_id, status in stale:
            try:
                self.store.set_status(hackathon_id, status)
                STATUS_REFRESHES.labels(outcome="success").inc()
            except Exception as exc:
                STATUS_REFRESHES.labels(outcome="failure").inc()
                logger.error(f"Error updating hackathon status id={hackathon_id}: {exc}")

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------
    def update(self, hackathon_id: str, patch: HackathonUpdate, caller_id: str, caller_role: str) -> Hackathon:
        current = self._load(hackathon_id)
        require_access(Operation.UPDATE, caller_role, caller_id, current.organizer)

        changes: Dict[str, Any] = patch.model_dump(exclude_unset=True)
        requested_status = changes.pop("status", None)

        merged = {**current.editable_fields(), **changes}
        try:
            fields = HackathonFields.model_validate(merged)
        except SchemaError as exc:
            raise _schema_error(exc)
        check_dates(fields)

        update_doc: Dict[str, Any] = fields.model_dump(by_alias=True)
        cancelled = HackathonStatus.CANCELLED.value
        if current.status == cancelled:
            if requested_status is not None and requested_status != cancelled:
                raise ValidationError("A cancelled hackathon cannot be reopened")
        elif requested_status == cancelled:
            update_doc["status"] = cancelled
            logger.info(f"Hackathon cancelled id={hackathon_id} by={caller_id}")
        # Other status values are derived from the dates and are ignored.

        self._check_capacity(fields, current)
        record = self.store.update_hackathon(hackathon_id, update_doc)
        if record is None:
            # Missing, or a registration landed after the capacity check.
            self._check_capacity(fields, self._load(hackathon_id))
            record = self.store.update_hackathon(hackathon_id, update_doc)
            if record is None:
                raise Conflict("Hackathon was modified concurrently, please retry")
        hackathon, _ = self._with_derived_status(Hackathon.model_validate(record), self.clock())
        return hackathon

    @staticmethod
    def _check_capacity(fields: HackathonFields, hackathon: Hackathon) -> None:
        if fields.max_participants < len(hackathon.participants):
            raise CapacityBelowRegistrations(
                data={
                    "currentParticipants": len(hackathon.participants),
                    "maxParticipants": fields.max_participants,
                }
            )

    def delete(self, hackathon_id: str, caller_id: str, caller_role: str) -> None:
        current = self._load(hackathon_id)
        require_access(Operation.DELETE, caller_role, caller_id, current.organizer)
        if not self.store.delete_hackathon(hackathon_id):
            raise NotFound(_NOT_FOUND)
        logger.info(f"Hackathon deleted id={hackathon_id} by={caller_id}")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def _check_can_register(self, hackathon: Hackathon, user_id: str, now: datetime) -> None:
        # Order matters: the first violated rule is the one reported.
        if len(hackathon.participants) >= hackathon.max_participants:
            raise CapacityExceeded(
                data={
                    "currentParticipants": len(hackathon.participants),
                    "maxParticipants": hackathon.max_participants,
                }
            )
        if now > hackathon.registration_deadline:
            raise DeadlinePassed(
                data={
                    "deadline": hackathon.registration_deadline.isoformat(),
                    "currentTime": now.isoformat(),
                }
            )
        if not hackathon.is_active:
            raise Inactive()
        if user_id in hackathon.participants:
            raise AlreadyRegistered()

    def register(self, hackathon_id: str, caller_id: str) -> RegistrationResult:
        require_access(Operation.REGISTER, caller_id=caller_id)
        try:
            result = self._register(hackathon_id, caller_id)
        except Exception as exc:
            REGISTRATIONS.labels(action="register", outcome=getattr(exc, "code", "error")).inc()
            raise
        REGISTRATIONS.labels(action="register", outcome="success").inc()
        return result

    def _register(self, hackathon_id: str, caller_id: str) -> RegistrationResult:
        now = self.clock()
        hackathon = self._load(hackathon_id)
        self._check_can_register(hackathon, caller_id, now)

        record = self.store.add_participant(
            hackathon_id,
            caller_id,
            max_participants=hackathon.max_participants,
            now=now,
        )
        if record is None:
            # Lost a race with a concurrent writer: report what the document says now,
            # or try once more if it still accepts the caller (capacity may have been edited).
            latest = self._load(hackathon_id)
            self._check_can_register(latest, caller_id, now)
            record = self.store.add_participant(
                hackathon_id,
                caller_id,
                max_participants=latest.max_participants,
                now=now,
            )
            if record is None:
                raise CapacityExceeded()

        updated = Hackathon.model_validate(record)
        logger.info(f"User {caller_id} registered for hackathon {updated.id} ({updated.registration_count}/{updated.max_participants})")
        return RegistrationResult(
            hackathon_id=updated.id,
            hackathon_title=updated.title,
            registration_count=updated.registration_count,
            spots_remaining=updated.spots_remaining,
            registration_deadline=updated.registration_deadline,
        )

    def unregister(self, hackathon_id: str, caller_id: str) -> UnregistrationResult:
        require_access(Operation.UNREGISTER, caller_id=caller_id)
        try:
            result = self._unregister(hackathon_id, caller_id)
        except Exception as exc:
            REGISTRATIONS.labels(action="unregister", outcome=getattr(exc, "code", "error")).inc()
            raise
        REGISTRATIONS.labels(action="unregister", outcome="success").inc()
        return result

    def _check_can_unregister(self, hackathon: Hackathon, user_id: str, now: datetime) -> None:
        if user_id not in hackathon.participants:
            raise NotRegistered()
        if now >= hackathon.start_date:
            raise AlreadyStarted(
                data={
                    "hackathonStarted": hackathon.start_date.isoformat(),
                    "currentTime": now.isoformat(),
                }
            )

    def _unregister(self, hackathon_id: str, caller_id: str) -> UnregistrationResult:
        now = self.clock()
        hackathon = self._load(hackathon_id)
        self._check_can_unregister(hackathon, caller_id, now)

        record = self.store.remove_participant(hackathon_id, caller_id, now=now)
        if record is None:
            latest = self._load(hackathon_id)
            self._check_can_unregister(latest, caller_id, now)
            raise NotRegistered()

        updated = Hackathon.model_validate(record)
        logger.info(f"User {caller_id} unregistered from hackathon {updated.id}")
        return UnregistrationResult(
            hackathon_id=updated.id,
            hackathon_title=updated.title,
            remaining_participants=updated.registration_count,
        )

    # ------------------------------------------------------------------
    # Admin overview
    # ------------------------------------------------------------------
    def dashboard(self) -> Dict[str, int]:
        return {
            "totalUsers": self.store.count_users(),
            "totalHackathons": self.store.count_hackathons(),
            "activeHackathons": self.store.count_hackathons(active_only=True),
            "totalRegistrations": self.store.total_registrations(),
        }
