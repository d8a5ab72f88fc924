"""Typed errors raised by the generation request service and its gateways.

Every error carries an HTTP status code and an optional ``details`` map so
the FastAPI exception handlers in `main.py` can render them without string
matching on messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GenerationRequestError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(GenerationRequestError):
    """A required field is missing or has an unsupported value."""

    status_code = 400


class CreditLimitExceededError(GenerationRequestError):
    """The session has already used all of its free generation credits."""

    status_code = 400

    def __init__(self, current_usage: int, limit: int) -> None:
        super().__init__(
            f"Credit limit reached. You have used all {limit} free credits.",
            {"currentUsage": current_usage, "limit": limit},
        )
        self.current_usage = current_usage
        self.limit = limit


class NotFoundError(GenerationRequestError):
    status_code = 404


class InvalidStateTransitionError(GenerationRequestError):
    """A lifecycle change was attempted out of order."""

    status_code = 409

    def __init__(self, message: str, current_status: str) -> None:
        super().__init__(message, {"currentStatus": current_status})
        self.current_status = current_status


class StorageUnavailableError(GenerationRequestError):
    """The persistence backend failed; the cause is logged, never surfaced."""

    status_code = 503


class DuplicateIdError(StorageUnavailableError):
    pass


class ExternalTriggerError(GenerationRequestError):
    """The image processor could not be asked to start a request."""

    status_code = 502
