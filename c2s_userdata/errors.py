"""
c2s_userdata.errors — Error Taxonomy
=====================================

Every failure the service reports to a caller is a :class:`UserDataError`
subclass carrying the HTTP status it maps to.  The API installs a single
exception handler that renders any of them as ``{"error": message}``.
"""

from __future__ import annotations


class UserDataError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 400

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(UserDataError):
    """Malformed or unauthorized request, rejected before any store access."""


class RecordNotFoundError(UserDataError):
    """No record matches the derived token."""

    def __init__(self, message: str = "No user data matches the given playerId and playerToken") -> None:
        super().__init__(message)


class StoreError(UserDataError):
    """The record store failed.  The store's own message is passed through."""


class RoleReconciliationError(UserDataError):
    """Discord role lookup or replacement failed after a successful store write."""


class NotificationError(UserDataError):
    """A direct message could not be delivered.  Logged, never surfaced."""
