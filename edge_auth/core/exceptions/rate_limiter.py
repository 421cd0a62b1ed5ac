from edge_auth.core.exceptions.base import CustomException


class RateLimiterException(CustomException):
    """
    Base exception for Rate Limiter
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class RateLimitConfigurationError(RateLimiterException):
    """
    Invalid rate limit configuration
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class RateLimitStoreError(RateLimiterException):
    """
    The window store could not record a request
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)
