"""Domain-specific exceptions for the savings ledger core services."""


class LedgerError(Exception):
    """Base class for every error raised by the savings ledger core."""


class ValidationError(LedgerError, ValueError):
    """Raised when provided data does not meet validation or business rules."""


class NotFoundError(LedgerError, LookupError):
    """Raised when a goal or budget record cannot be located."""


class AuthorizationError(LedgerError, PermissionError):
    """Raised when a record exists but belongs to another user."""


class ConflictError(LedgerError):
    """Raised when a versioned update loses a race against another writer."""


class PersistenceError(LedgerError, IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""
