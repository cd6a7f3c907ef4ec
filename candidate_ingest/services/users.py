from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from candidate_ingest.models.interview import UserAccount, UserRole

"""Account role metadata and role checks."""

__all__ = [
    "PermissionDenied",
    "UserNotFound",
    "register_role",
    "require_role",
]

logger = logging.getLogger(__name__)

VALID_ROLES = {r.value for r in UserRole}


class PermissionDenied(Exception):
    pass


class UserNotFound(Exception):
    pass


def register_role(users: Any, uid: str, email: str | None, role: str | None) -> str:
    """Create or update the role record for ``uid``.

    Returns "registered" for a new account, "updated" for an existing one.
    """
    if not uid:
        raise ValueError("uid is required")
    role = role or UserRole.CANDIDATE.value
    if role not in VALID_ROLES:
        raise ValueError(f"unknown role: {role}")
    existed = users.upsert(uid, email, role)
    logger.info("user %s %s with role=%s", uid, "updated" if existed else "registered", role)
    return "updated" if existed else "registered"


def require_role(users: Any, uid: str | None, allowed: Iterable[str]) -> UserAccount:
    if not uid:
        raise PermissionDenied("no authenticated user")
    user = users.find(uid)
    if user is None:
        raise UserNotFound(f"user role not found: {uid}")
    if user.role not in set(allowed):
        raise PermissionDenied(f"insufficient permissions: role={user.role}")
    return user
