from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from edge_auth.core.types import RateLimitInfoDict


def rate_limit_headers(info: RateLimitInfoDict, is_denied: bool = False) -> dict[str, str]:
    """
    Standard RateLimit headers for a limiter decision.

    RateLimit-Reset is the number of seconds until the window ends.
    Retry-After is only set on denied requests.
    """
    headers = {
        "RateLimit-Policy": f"{info['limit']};w={info['window']}",
        "RateLimit-Limit": str(info["limit"]),
        "RateLimit-Remaining": str(info["remaining"]),
        "RateLimit-Reset": str(info["retry_after"]),
    }

    if is_denied:
        headers["Retry-After"] = str(info["retry_after"])

    return headers


class RateLimitHeaderMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add rate limit headers to admitted responses.

    The gateway's rate limit stage stores its decision in
    request.state.rate_limit_info; this middleware copies it onto whatever
    response the backend produced. Requests that never went through a
    limiter are left untouched.

    Example:
        ```python
        from edge_auth.middleware.rate_limit import RateLimitHeaderMiddleware

        app.add_middleware(RateLimitHeaderMiddleware)
        ```
    """

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)

        info = getattr(request.state, "rate_limit_info", None)
        if info is not None:
            for name, value in rate_limit_headers(info).items():
                response.headers.setdefault(name, value)

        return response
