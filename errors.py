"""
Engine exceptions.

Routes map these to HTTP status codes; see routes/helpers.py.
"""

from typing import Optional


class ReviewError(Exception):
    """Base for all review engine errors."""


class NotFound(ReviewError):
    """A finding or entry id is not present."""

    def __init__(self, kind: str, id: str):
        super().__init__(f"{kind} not found: {id}")
        self.kind = kind
        self.id = id


class InvalidFinding(ReviewError):
    """A finding in a result payload cannot be modeled."""

    def __init__(self, reason: str, index: Optional[int] = None):
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Invalid finding{where}: {reason}")
        self.reason = reason
        self.index = index


class InvalidResult(ReviewError):
    """A result payload as a whole is inconsistent."""


class InvalidEntry(ReviewError):
    """A history entry has optional fields inconsistent with its action type."""


class PermissionDenied(ReviewError):
    """The caller may not act on another owner's records."""


class BackendError(ReviewError):
    """The validate/translate backend failed. Recoverable; shown to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CallCancelled(ReviewError):
    """A backend call finished after it was cancelled or superseded."""
