from abc import ABC, abstractmethod
from typing import Sequence

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger

from edge_auth.core import responses
from edge_auth.core.exceptions.proxy import UpstreamTransportError
from edge_auth.core.utils import get_client_ip
from edge_auth.gateway.proxy import ProxyForwarder
from edge_auth.middleware.rate_limit import rate_limit_headers
from edge_auth.schemas import ProxyRoute
from edge_auth.services.cache import RateLimiter


class PipelineStage(ABC):
    """
    One step in front of the proxy.

    A stage either lets the request continue by returning None, or ends
    it by returning a response. Stages never forward.
    """

    @abstractmethod
    async def process(self, request: Request) -> Response | None: ...


class RequestLoggingStage(PipelineStage):
    async def process(self, request: Request) -> Response | None:
        logger.info(f"Received {request.method} request to {request.url.path}")
        return None


class RateLimitStage(PipelineStage):
    """
    Admission control keyed by client IP.

    The decision is kept in request.state.rate_limit_info so the header
    middleware can expose the remaining quota on admitted responses.
    """

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    async def process(self, request: Request) -> Response | None:
        client_ip = get_client_ip(request)
        is_allowed, info = await self.limiter.admit(client_ip)

        request.state.rate_limit_info = info

        if is_allowed:
            return None

        logger.warning(f"Sensitive endpoint rate limit exceeded for IP: {client_ip}")

        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=responses.TooManyRequestsResponse().model_dump(),
            headers=rate_limit_headers(info, is_denied=True),
        )


class GatewayPipeline:
    """
    Ordered stages followed by the proxy forwarder for a single route.

    The forwarder only runs after every stage returned None, so a denied
    request never reaches the backend. Anything raised along the way ends
    in a JSON 500 response instead of escaping to the server.

    Example:
        ```python
        pipeline = build_pipeline(route, forwarder, limiter)
        response = await pipeline.handle(request)
        ```
    """

    def __init__(
        self,
        route: ProxyRoute,
        forwarder: ProxyForwarder,
        stages: Sequence[PipelineStage] = (),
    ):
        self.route = route
        self.forwarder = forwarder
        self.stages = tuple(stages)

    async def _forward(self, request: Request) -> Response:
        try:
            return await self.forwarder.forward(request, self.route)
        except UpstreamTransportError as e:
            logger.error(f"Proxy error: {e.message}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=responses.ProxyErrorResponse(error=e.message).model_dump(),
            )

    async def handle(self, request: Request) -> Response:
        try:
            for stage in self.stages:
                response = await stage.process(request)
                if response is not None:
                    return response

            return await self._forward(request)
        except Exception:
            logger.exception(f"Unhandled error while proxying to {self.route.name}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=responses.InternalServerErrorResponse().model_dump(),
            )


def build_pipeline(
    route: ProxyRoute,
    forwarder: ProxyForwarder,
    limiter: RateLimiter | None = None,
) -> GatewayPipeline:
    """
    Assemble the stages for a route.

    Sensitive routes get the rate limit stage; every route logs the request.
    """
    stages: list[PipelineStage] = [RequestLoggingStage()]

    if route.sensitive and limiter is not None:
        stages.append(RateLimitStage(limiter))

    return GatewayPipeline(route, forwarder, stages)
