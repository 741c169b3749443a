"""Nest Refresher Specific Exceptions

Extends the framework exception hierarchy with the error kinds raised while
refreshing nests: invalid geometry, failed spatial queries, failed writes and
cancelled bulk runs.
"""

from src.exceptions import (
    NestConnectionError,
    NestProcessingError,
    NestValidationError,
)


class GeometryInvalidError(NestValidationError):
    """Nest polygon is missing, unparsable, empty, self-intersecting or cannot be serialized.

    Recoverable: the filter policy turns it into a discard classification.
    """
    pass


class QueryFailureError(NestConnectionError):
    """Spawnpoint or nest storage query failed at the backend/transport level."""
    pass


class PersistenceError(NestProcessingError):
    """A nest update could not be written. Always aborts the bulk refresh."""
    pass


class NestNotFoundError(NestProcessingError):
    """No nest exists with the requested identifier."""

    def __init__(self, nest_id: int):
        super().__init__(f"Nest {nest_id} not found", {"nest_id": nest_id})
        self.nest_id = nest_id


class RefreshCancelledError(NestProcessingError):
    """Bulk refresh stopped because its cancellation event was set."""

    def __init__(self, message: str = "Nest refresh cancelled", processed_count: int = 0):
        super().__init__(message, {"processed_count": processed_count})
        self.processed_count = processed_count
