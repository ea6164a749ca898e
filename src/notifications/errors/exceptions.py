"""Custom exception classes for the notifications store."""

from sqlalchemy.exc import SQLAlchemyError

# Backing-store failures are surfaced to callers exactly as SQLAlchemy raises them.
StorageError = SQLAlchemyError


class NotificationsError(Exception):
    """Base exception for the notifications store."""

    def __init__(self, code: str, message: str, details=None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(NotificationsError):
    """Input rejected before any write was attempted."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(NotificationsError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            details={"resource": resource, "id": resource_id},
        )


class ConflictError(NotificationsError):
    """A concurrent writer claimed the same dedup scope first."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details)
