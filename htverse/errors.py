# htverse/errors.py
"""Application error taxonomy.

Services raise these; `main.py` turns them into
`{"success": false, "message": ..., "error": <code>}` responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class. Subclasses pin the HTTP status and a stable error code."""

    status_code = 500
    code = "internal_server_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class Internal(AppError):
    pass


# ─────────────────────────────────────────────────────────────
# 400
# ─────────────────────────────────────────────────────────────
class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class InvalidDateRange(ValidationError):
    code = "invalid_date_range"
    default_message = "End date must be after start date"


class InvalidDeadlineOrdering(ValidationError):
    code = "invalid_deadline_ordering"
    default_message = "Registration deadline must be before start date"


class DeadlineInPast(ValidationError):
    code = "deadline_in_past"
    default_message = "Registration deadline must be in the future"


class CapacityBelowRegistrations(ValidationError):
    code = "capacity_below_registrations"
    default_message = "Max participants cannot be lower than the current number of registrations"


# ─────────────────────────────────────────────────────────────
# 401 / 403 / 404
# ─────────────────────────────────────────────────────────────
class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"
    default_message = "Not authorized to access this route"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized to perform this action"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


# ─────────────────────────────────────────────────────────────
# 409: registration state conflicts
# ─────────────────────────────────────────────────────────────
class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Request conflicts with the current state"


class CapacityExceeded(Conflict):
    code = "capacity_exceeded"
    default_message = "Hackathon is full. Registration capacity exceeded."


class DeadlinePassed(Conflict):
    code = "deadline_passed"
    default_message = "Registration deadline has passed"


class Inactive(Conflict):
    code = "inactive"
    default_message = "This hackathon is not active"


class AlreadyRegistered(Conflict):
    code = "already_registered"
    default_message = "You are already registered for this hackathon"


class NotRegistered(Conflict):
    code = "not_registered"
    default_message = "You are not registered for this hackathon"


class AlreadyStarted(Conflict):
    code = "already_started"
    default_message = "Cannot unregister after hackathon has started"


class EmailTaken(Conflict):
    code = "email_taken"
    default_message = "User already exists with this email"
