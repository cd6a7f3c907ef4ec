from __future__ import annotations

__all__ = [
    "StoreError",
    "NotFoundError",
]


class StoreError(Exception):
    """Record store failure (connection, SQL, constraint)."""


class NotFoundError(Exception):
    """Referenced candidate/interview/user does not exist."""
