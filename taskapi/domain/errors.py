"""Error kinds raised by services and repositories.

The transport layer is the only place that maps these to HTTP status codes.
"""
from __future__ import annotations


class TaskApiError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskApiError):
    """Payload fails shape/content constraints (length, enum, required field)."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(TaskApiError):
    """Referenced user, task or subtask does not exist for the resolved owner."""


class ConflictError(TaskApiError):
    """Unique constraint clash, e.g. an email that is already registered."""


class StoreError(TaskApiError):
    """The underlying persistence operation failed."""


class AuthenticationError(TaskApiError):
    """Missing, unknown or expired credential."""
