from edge_auth.core.exceptions.base import CustomException


class ProxyException(CustomException):
    """
    Base exception for the gateway proxy
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class UpstreamTransportError(ProxyException):
    """
    The backend could not be reached (connection refused, DNS failure, timeout).

    Distinct from an application-level error response, which is relayed as-is.
    """

    def __init__(self, message, backend: str, exception: Exception | None = None):
        super().__init__(message, exception)
        self.backend = backend
