"""Domain errors raised by the scheduling and discovery core.

The core raises these and never logs, retries or swallows them. The HTTP
layer maps each one to a response in ``api/errors.py``.
"""

from __future__ import annotations

from typing import Any, Optional


class PharmagardeError(Exception):
    """Base class for every domain error."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}


class ValidationError(PharmagardeError):
    """Malformed input: inverted windows, scores out of range, bad coordinates."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class NotFoundError(PharmagardeError):
    """Unknown id, or a record the caller is not allowed to know about."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: str) -> None:
        super().__init__(f"{entity} '{identifier}' not found")
        self.entity = entity
        self.identifier = identifier

    def details(self) -> dict[str, Any]:
        return {"entity": self.entity}


class OverlapError(PharmagardeError):
    """A duty period would overlap another period of the same pharmacy."""

    code = "DUTY_OVERLAP"

    def __init__(self, pharmacy_id: str, conflicting_period_id: Optional[str] = None) -> None:
        super().__init__(f"Duty period overlaps an existing period for pharmacy '{pharmacy_id}'")
        self.pharmacy_id = pharmacy_id
        self.conflicting_period_id = conflicting_period_id

    def details(self) -> dict[str, Any]:
        if self.conflicting_period_id is None:
            return {}
        return {"conflicting_period_id": self.conflicting_period_id}


class ConcurrencyConflict(PharmagardeError):
    """The schedule changed between the overlap check and the write."""

    code = "CONCURRENT_MODIFICATION"
    retryable = True

    def __init__(self, pharmacy_id: str) -> None:
        super().__init__(f"Duty schedule for pharmacy '{pharmacy_id}' was modified concurrently")
        self.pharmacy_id = pharmacy_id

    def details(self) -> dict[str, Any]:
        return {"retryable": True}


class ConflictError(PharmagardeError):
    """A uniqueness rule outside duty scheduling was violated."""

    code = "CONFLICT"


class PermissionDeniedError(PharmagardeError):
    """The resolved identity may not act on the target record."""

    code = "FORBIDDEN"
