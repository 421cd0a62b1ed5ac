from fastapi import APIRouter, Request, Response

from edge_auth.core.config import ServiceName, Settings, settings
from edge_auth.schemas import HealthCheckResponse, ProxyRoute

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def build_routes(config: Settings = settings) -> list[ProxyRoute]:
    """
    Route table of the gateway.

    Public /v1 paths map onto the backend's /api paths, e.g.
    /v1/auth/register -> {identity_service_url}/api/auth/register.
    """
    return [
        ProxyRoute(
            name="identity-service",
            prefix="/v1/auth",
            backend_url=config.identity_service_url,
            rewrite_from="/v1",
            rewrite_to="/api",
            header_overrides={"Content-Type": "application/json"},
            sensitive=True,
        ),
    ]


def _proxy_endpoint(route: ProxyRoute):
    async def proxy(request: Request) -> Response:
        return await request.app.state.pipelines[route.name].handle(request)

    proxy.__name__ = f"proxy_{route.name.replace('-', '_')}"
    return proxy


def build_gateway_router(routes: list[ProxyRoute]) -> APIRouter:
    """
    Health check plus one catch-all endpoint per route prefix.

    Pipelines are resolved from app.state at request time since they hold
    clients that only exist while the application is running.
    """
    router = APIRouter()

    @router.get(
        "/health",
        response_model=HealthCheckResponse,
        tags=["Health"],
        summary="Health Check",
    )
    async def health_check():
        return {"status": "healthy", "service": ServiceName.GATEWAY.value}

    for route in routes:
        endpoint = _proxy_endpoint(route)
        router.add_api_route(
            route.prefix,
            endpoint,
            methods=PROXY_METHODS,
            tags=["Proxy"],
            include_in_schema=False,
        )
        router.add_api_route(
            f"{route.prefix}/{{path:path}}",
            endpoint,
            methods=PROXY_METHODS,
            tags=["Proxy"],
            include_in_schema=False,
        )

    return router
