"""
Error taxonomy shared by the view counter, the record store and the stats cache.

HTTP status mapping happens only in the exception handlers registered by
``realty_api.serving.api.main``.
"""

from typing import Optional


class RealtyError(Exception):
    """Base error for the service."""

    message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(RealtyError):
    """Raised when caller input is rejected before reaching the store."""

    message = "Invalid input"


class StoreUnavailable(RealtyError):
    """Raised when the record store cannot be reached or the driver fails.

    Safe for the caller to retry; nothing is retried internally.
    """

    message = "Record store unavailable"


class ComputeFailure(RealtyError):
    """Raised when a stats cache compute function fails and no fresh payload exists."""

    message = "Failed to compute aggregate"


class ConflictIgnored:
    """Result of an insert that hit the uniqueness constraint.

    Not an error: the view was already recorded for that day.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "CONFLICT_IGNORED"

    def __bool__(self) -> bool:
        return False


CONFLICT_IGNORED = ConflictIgnored()
