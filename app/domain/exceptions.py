"""
Domain exceptions.

Every error that can reach a caller derives from PlantTrackerError and carries
the HTTP status it maps to. The error handling middleware is the only place
that turns them into responses.
"""
from typing import Optional


class PlantTrackerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error or self.message
        super().__init__(self.message)


class ValidationError(PlantTrackerError):
    """Required input missing or malformed. No side effects were performed."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(PlantTrackerError):
    """Resource does not exist or is not owned by the caller."""

    status_code = 404
    default_message = "Resource not found"


class StorageError(PlantTrackerError):
    """Object store operation failed."""

    status_code = 500
    default_message = "Object storage error"


class StorageUnavailableError(StorageError):
    """Object store unreachable, timed out, or rejected the credentials."""


class StorageInvalidInputError(StorageError):
    """Object store refused the payload before any request was made."""


class PersistenceError(PlantTrackerError):
    """Relational operation failed; any open transaction was rolled back."""

    status_code = 500
    default_message = "Database error"


class MetadataParseError(Exception):
    """Internal: image metadata could not be read. Always recovered."""


class PartialAssemblyError(Exception):
    """Internal: one aggregate sub-document was malformed. Always recovered."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
