from fastapi import Request

from edge_auth.core.config import settings


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request headers or remote address

    Forwarding headers are only read when settings.trust_proxy_headers is set,
    otherwise any client could pick its own rate limit key.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address as a string
    """
    if settings.trust_proxy_headers:
        if "X-Forwarded-For" in request.headers:
            return request.headers["X-Forwarded-For"].split(",")[0].strip()

        if "X-Real-IP" in request.headers:
            return request.headers["X-Real-IP"].strip()

    return request.client.host if request.client else "unknown"
