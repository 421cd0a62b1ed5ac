import httpx
from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from edge_auth.core.config import Environment, settings
from edge_auth.core.logger import configure_uvicorn_logging, setup_logger, shutdown_logger
from edge_auth.gateway.pipeline import GatewayPipeline, build_pipeline
from edge_auth.gateway.proxy import ProxyForwarder, log_upstream_status, propagate_request_id
from edge_auth.gateway.routes import build_gateway_router, build_routes
from edge_auth.middleware.logging import LoggingMiddleware
from edge_auth.middleware.rate_limit import RateLimitHeaderMiddleware
from edge_auth.middleware.security_headers import SecurityHeadersMiddleware
from edge_auth.schemas import ProxyRoute
from edge_auth.services.cache import (
    MemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
    close_redis_pool,
)

ROUTES = build_routes()


def build_rate_limit_store() -> RateLimitStore:
    """Redis when REDIS_URL is configured, otherwise a per-process store."""
    if settings.redis_url:
        return RedisRateLimitStore()

    logger.warning(
        "REDIS_URL is not set, rate limits are tracked per process and reset on restart"
    )
    return MemoryRateLimitStore()


def build_forwarder(client: httpx.AsyncClient) -> ProxyForwarder:
    return ProxyForwarder(
        client,
        request_hooks=[propagate_request_id],
        response_observers=[log_upstream_status],
    )


def create_pipelines(
    routes: list[ProxyRoute],
    forwarder: ProxyForwarder,
    store: RateLimitStore,
) -> dict[str, GatewayPipeline]:
    limiter = RateLimiter(
        store=store,
        limit=settings.rate_limit_sensitive,
        window=settings.rate_limit_sensitive_window,
        enabled=settings.rate_limit_enabled,
    )

    return {route.name: build_pipeline(route, forwarder, limiter) for route in routes}


async def _check_dependencies(store: RateLimitStore):
    """Check essential dependencies before starting the app"""

    is_healthy = await store.health_check()

    if not is_healthy:
        logger.error("Rate limit store health check failed. Exiting application.")
        raise RuntimeError("Rate limit store is not healthy.")

    logger.success(f"{store.__class__.__name__} is healthy.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gateway lifespan manager"""

    setup_logger()
    configure_uvicorn_logging()

    logger.info("Initializing resources...")
    store = build_rate_limit_store()
    await _check_dependencies(store)

    # httpx applies a 5 second default, the timeout has to be passed explicitly
    client = httpx.AsyncClient(timeout=httpx.Timeout(settings.proxy_timeout_seconds))
    app.state.pipelines = create_pipelines(ROUTES, build_forwarder(client), store)

    for route in ROUTES:
        logger.info(f"Proxying {route.prefix} to {route.backend_url}")
    logger.success(f"API Gateway is running on port {settings.gateway_port}")

    yield  # Application runs here

    logger.info("Cleaning up resources...")
    await client.aclose()
    await store.close()
    await close_redis_pool()
    logger.success("Resources cleaned up.")
    shutdown_logger()


ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}

app = FastAPI(
    title=f"{settings.app_title} Gateway",
    version=settings.app_version,
    description=settings.app_description,
    openapi_url=("/openapi.json" if settings.current_environment in ALLOWED_ENVIRONMENTS else None),
    docs_url="/docs" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    redoc_url="/redoc" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    lifespan=lifespan,
    generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
)

# Outermost last: CORS -> security headers -> logging -> rate limit headers
app.add_middleware(RateLimitHeaderMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(build_gateway_router(ROUTES))
