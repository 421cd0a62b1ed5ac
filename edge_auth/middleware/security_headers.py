from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from edge_auth.core.config import Environment, settings

DEFAULT_SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; "
        "base-uri 'self'; "
        "font-src 'self' https: data:; "
        "form-action 'self'; "
        "frame-ancestors 'self'; "
        "img-src 'self' data:; "
        "object-src 'none'; "
        "script-src 'self' 'unsafe-inline'; "  # Swagger UI
        "script-src-attr 'none'; "
        "style-src 'self' https: 'unsafe-inline'"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    # The legacy XSS auditor causes more problems than it solves
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to every response.

    Headers already present on the response win, so a header chosen by a
    proxied backend is relayed instead of overwritten. Server fingerprinting
    headers are removed.

    Reference: https://cheatsheetseries.owasp.org/cheatsheets/HTTP_Headers_Cheat_Sheet.html
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)

        for name, value in DEFAULT_SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)

        # HSTS - Only in deployed environments served over HTTPS
        if settings.current_environment in {Environment.STG, Environment.PRD}:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
            )

        for name in ("Server", "X-Powered-By"):
            if name in response.headers:
                del response.headers[name]

        return response
