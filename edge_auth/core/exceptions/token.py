from edge_auth.core.exceptions.base import CustomException


class TokenException(CustomException):
    """
    Base exception for token operations
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class TokenSigningError(TokenException):
    """
    A token could not be signed (missing or invalid key)
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class TokenDecodeError(TokenException):
    """
    A token failed signature, expiry or type checks
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)
