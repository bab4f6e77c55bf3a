# htverse/policy.py
"""Access policy gate.

Single place that decides who may do what:

    check_access(operation, caller_role, caller_id, owner_id) -> AccessDecision

- READ: public
- CREATE: admin or organizer
- UPDATE / DELETE: resource owner or admin
- REGISTER / UNREGISTER: any authenticated caller
- ADMIN_VIEW: admin
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from htverse.errors import Forbidden, Unauthorized
from htverse.models import Role


class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REGISTER = "register"
    UNREGISTER = "unregister"
    ADMIN_VIEW = "admin_view"


CREATOR_ROLES = frozenset({Role.ADMIN.value, Role.ORGANIZER.value})

_AUTHENTICATED_OPS = frozenset(op for op in Operation if op is not Operation.READ)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(True)
UNAUTHENTICATED = AccessDecision(False, "Not authorized to access this route")


def _role_value(role) -> Optional[str]:
    return role.value if isinstance(role, Role) else role


def check_access(
    operation: Operation,
    caller_role: Optional[str] = None,
    caller_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> AccessDecision:
    """Pure decision function; never touches the store."""
    role = _role_value(caller_role)

    if operation is Operation.READ:
        return ALLOW

    if operation in _AUTHENTICATED_OPS and not caller_id:
        return UNAUTHENTICATED

    if operation is Operation.CREATE:
        if role in CREATOR_ROLES:
            return ALLOW
        return AccessDecision(False, "Not authorized to create hackathon. Admin or organizer role required.")

    if operation in (Operation.UPDATE, Operation.DELETE):
        if role == Role.ADMIN.value or (owner_id is not None and str(owner_id) == str(caller_id)):
            return ALLOW
        return AccessDecision(False, f"Not authorized to {operation.value} this hackathon")

    if operation in (Operation.REGISTER, Operation.UNREGISTER):
        return ALLOW

    if operation is Operation.ADMIN_VIEW:
        if role == Role.ADMIN.value:
            return ALLOW
        return AccessDecision(False, "Admin access required")

    return AccessDecision(False, f"Unknown operation: {operation}")


def require_access(
    operation: Operation,
    caller_role: Optional[str] = None,
    caller_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> None:
    """Raise Unauthorized (no identity) or Forbidden (denied)."""
    decision = check_access(operation, caller_role, caller_id, owner_id)
    if decision:
        return
    if decision is UNAUTHENTICATED:
        raise Unauthorized(decision.reason)
    raise Forbidden(decision.reason)
