from typing import Callable, Sequence

import httpx
from fastapi import Request, Response
from loguru import logger
from starlette.datastructures import Headers

from edge_auth.core.constants import HOP_BY_HOP_HEADERS
from edge_auth.core.exceptions.proxy import UpstreamTransportError
from edge_auth.core.logger import request_id_var
from edge_auth.schemas import ProxyRoute

# Pre-request hook: may only add, replace or remove outbound headers
RequestHeaderHook = Callable[[ProxyRoute, httpx.Headers], None]

# Post-response observer: sees status and body, its return value is ignored
ResponseObserver = Callable[[ProxyRoute, int, bytes], None]

# Recomputed for the outbound request
_REQUEST_EXCLUDED_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}

# httpx has already decoded the body, so the upstream framing no longer applies
_RESPONSE_EXCLUDED_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def log_upstream_status(route: ProxyRoute, status_code: int, body: bytes) -> None:
    logger.info(f"Response received from {route.name}: {status_code}")


def propagate_request_id(route: ProxyRoute, headers: httpx.Headers) -> None:
    request_id = request_id_var.get()
    if request_id is not None:
        headers["X-Request-ID"] = request_id


class ProxyForwarder:
    """
    Relays a request to a route's backend and returns the backend's response.

    Each request is sent exactly once; there are no retries and no circuit
    breaker. Transport failures surface as UpstreamTransportError, while error
    responses from the backend are relayed like any other response.

    Example:
        ```python
        async with httpx.AsyncClient() as client:
            forwarder = ProxyForwarder(client, response_observers=[log_upstream_status])
            response = await forwarder.forward(request, route)
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        request_hooks: Sequence[RequestHeaderHook] = (),
        response_observers: Sequence[ResponseObserver] = (),
    ):
        self.client = client
        self.request_hooks = tuple(request_hooks)
        self.response_observers = tuple(response_observers)

    def build_headers(self, route: ProxyRoute, headers: Headers) -> httpx.Headers:
        """
        Copy inbound headers for the outbound request.

        Hop-by-hop headers, Host and Content-Length are dropped; the route's
        overrides and then the request hooks are applied on top.
        """
        outbound = httpx.Headers()
        for name, value in headers.items():
            if name.lower() not in _REQUEST_EXCLUDED_HEADERS:
                outbound.add(name, value)

        for name, value in route.header_overrides.items():
            outbound[name] = value

        for hook in self.request_hooks:
            hook(route, outbound)

        return outbound

    def build_response(self, upstream: httpx.Response) -> Response:
        """Relay the upstream status, headers and body."""
        response = Response(content=upstream.content, status_code=upstream.status_code)
        for name, value in upstream.headers.multi_items():
            if name.lower() not in _RESPONSE_EXCLUDED_HEADERS:
                response.headers.append(name, value)

        return response

    async def forward(self, request: Request, route: ProxyRoute) -> Response:
        """
        Forward request to the backend of route.

        Args:
            request: The inbound request
            route: Route whose rewrite rule and backend apply

        Returns:
            Response: The backend's response, status and body unchanged

        Raises:
            UpstreamTransportError: If the backend cannot be reached or times out.
        """
        url = route.upstream_url(request.url.path, request.url.query)
        body = await request.body()
        headers = self.build_headers(route, request.headers)

        try:
            upstream = await self.client.request(
                request.method,
                url,
                headers=headers,
                content=body,
            )
        except httpx.TransportError as e:
            raise UpstreamTransportError(
                str(e) or type(e).__name__,
                backend=route.name,
                exception=e,
            )

        for observer in self.response_observers:
            observer(route, upstream.status_code, upstream.content)

        return self.build_response(upstream)
