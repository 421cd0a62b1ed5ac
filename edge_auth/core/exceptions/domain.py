from edge_auth.core.exceptions.base import CustomException

# =============================================================================
# Generic Domain Exceptions (raised by Services, caught at the HTTP edge)
# =============================================================================


class ValidationError(CustomException):
    """Request payload failed validation."""

    def __init__(self, message: str = "Validation failed", exception: Exception | None = None):
        super().__init__(message, exception)


class ProcessingError(CustomException):
    """Error during business logic processing."""

    def __init__(self, message: str = "Processing failed", exception: Exception | None = None):
        super().__init__(message, exception)


class DuplicateResourceError(CustomException):
    """Attempted to create a resource that already exists."""

    def __init__(
        self, message: str = "Resource already exists", exception: Exception | None = None
    ):
        super().__init__(message, exception)
