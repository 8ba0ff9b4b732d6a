class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an event, check-in or excuse request does not exist."""


class InvalidStateError(DomainError):
    """Raised when an operation is not allowed from the record's current state."""


class ConflictError(DomainError):
    """Raised when a concurrent write raced on the same unique key. Safe to retry."""


class StorageUnavailableError(Exception):
    """Raised when the database cannot be reached. Not a business error."""
