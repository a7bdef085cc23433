from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the machine-readable name returned to API clients as ``errorKind``.
    """

    default_kind = "DomainError"

    def __init__(self, message: str, *, kind: str | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    default_kind = "ValidationError"


class NotFoundError(DomainError):
    """Raised when an identity, record or embedding does not exist."""

    default_kind = "NotFound"


class ConflictError(DomainError):
    """Raised when a unique key (e.g. the business employee id) is already taken."""

    default_kind = "Conflict"


class TransactionError(DomainError):
    """Raised when the datastore fails mid-transaction; the transaction was rolled back."""

    default_kind = "TransactionError"


class DatastoreUnavailable(DomainError):
    """Raised on connection failures and lock timeouts. Safe to retry."""

    default_kind = "DatastoreUnavailable"
    retryable = True
