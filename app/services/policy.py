"""
Capability checks shared by every owner-gated operation
"""

from typing import Iterable, Optional

from app.core.errors import Forbidden
from app.models import UserRole

MANAGER_ROLES = (UserRole.organizer.value, UserRole.admin.value)


def require_role(caller: dict, roles: Iterable[str] = MANAGER_ROLES) -> None:
    if caller["role"] not in tuple(roles):
        raise Forbidden("Access denied")


def check_capability(
    caller: dict,
    owner_id: Optional[str] = None,
    roles: Iterable[str] = MANAGER_ROLES,
    message: str = "Not authorized",
) -> None:
    """Admins pass unconditionally; anyone else needs a listed role and,
    when ``owner_id`` is given, to be that owner."""
    if caller["role"] == UserRole.admin.value:
        return
    require_role(caller, roles)
    if owner_id is not None and caller["id"] != owner_id:
        raise Forbidden(message)
