from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from jose.constants import ALGORITHMS
from loguru import logger

from edge_auth.api.routes import api_router
from edge_auth.core.config import Environment, settings
from edge_auth.core.db import create_tables, engine
from edge_auth.core.logger import configure_uvicorn_logging, setup_logger, shutdown_logger
from edge_auth.middleware.logging import LoggingMiddleware
from edge_auth.middleware.security_headers import SecurityHeadersMiddleware
from edge_auth.services.token_issuer import token_issuer


async def _check_dependencies():
    """Check essential dependencies before starting the app"""

    if not token_issuer.secret_key:
        logger.error("SECRET_KEY is not set. Exiting application.")
        raise RuntimeError("SECRET_KEY is required to sign tokens.")

    if token_issuer.algorithm not in ALGORITHMS.HMAC:
        logger.error(
            f"JWT_ALGORITHM {token_issuer.algorithm} is not supported. Exiting application."
        )
        raise RuntimeError("JWT_ALGORITHM must be one of HS256, HS384, HS512.")

    await create_tables()
    logger.success("Database is ready.")


async def _shutdown_dependencies():
    """Shutdown essential dependencies gracefully"""

    await engine.dispose()
    logger.success("Database connections closed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Identity service lifespan manager"""

    setup_logger()
    configure_uvicorn_logging()

    logger.info("Initializing resources...")
    await _check_dependencies()
    logger.success(f"Identity service is running on port {settings.backend_port}")

    yield  # Application runs here

    logger.info("Cleaning up resources...")
    await _shutdown_dependencies()
    logger.success("Resources cleaned up.")
    shutdown_logger()


ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}

app = FastAPI(
    title=f"{settings.app_title} Identity",
    version=settings.app_version,
    description=settings.app_description,
    openapi_url=("/openapi.json" if settings.current_environment in ALLOWED_ENVIRONMENTS else None),
    docs_url="/docs" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    redoc_url="/redoc" if settings.current_environment in ALLOWED_ENVIRONMENTS else None,
    lifespan=lifespan,
    generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
)

# Set logging middleware
app.add_middleware(LoggingMiddleware)

app.add_middleware(SecurityHeadersMiddleware)

# Set CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)
