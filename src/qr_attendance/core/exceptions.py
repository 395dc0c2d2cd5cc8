class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when a bearer token is missing or cannot be verified."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced class, student or session does not exist."""


class ConflictError(DomainError):
    """Raised when a write would duplicate an existing record."""


class SessionCreationError(DomainError):
    """Raised when the session/QR pair could not be written completely.

    ``session_id`` is the id of the pair; ``compensated`` tells whether the
    already written session was removed again.
    """

    def __init__(self, message: str, *, session_id: str, compensated: bool):
        super().__init__(message)
        self.session_id = session_id
        self.compensated = compensated


class StoreError(Exception):
    """Raised by repositories when the backing store fails."""


class StorageError(Exception):
    """Raised by object storage uploaders."""


class EmailError(Exception):
    """Raised by e-mail senders."""
