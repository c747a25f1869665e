"""Custom exceptions for the scheduled email engine."""


class EngineError(Exception):
    """Base exception for the scheduled email engine."""

    error_code = "engine_error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(EngineError):
    """Schedule or instance not found."""

    error_code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class ValidationError(EngineError):
    """Malformed schedule definition; never persisted."""

    error_code = "validation_error"

    def __init__(self, message: str = "Validation failed"):
        """Initialize ValidationError with 422 status code."""
        super().__init__(message, 422)


class InvalidStateError(EngineError):
    """Lifecycle action not permitted from the instance's current status."""

    error_code = "invalid_state"

    def __init__(self, message: str = "Invalid state transition"):
        """Initialize InvalidStateError with 409 status code."""
        super().__init__(message, 409)


class TransientStorageError(EngineError):
    """Store momentarily busy or locked; the call is safe to retry."""

    error_code = "storage_busy"

    def __init__(self, message: str = "Storage temporarily unavailable"):
        """Initialize TransientStorageError with 503 status code."""
        super().__init__(message, 503)
