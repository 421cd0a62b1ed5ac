import logging
import tomllib
from datetime import timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

PROJECT_DIR = Path(__file__).parent.parent.parent
PROJECT_TOML_PATH = PROJECT_DIR / "pyproject.toml"

with open(PROJECT_TOML_PATH, "rb") as f:
    PYPROJECT_CONTENT = tomllib.load(f)["project"]


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


class ServiceName(StrEnum):
    GATEWAY = "gateway"
    IDENTITY = "identity"


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PYPROJECT_CONTENT["name"]
    app_title: str = convert_app_name(PYPROJECT_CONTENT["name"])
    app_version: str = PYPROJECT_CONTENT["version"]
    app_description: str = PYPROJECT_CONTENT["description"]

    # Which ASGI application `main.py` serves
    service: ServiceName = ServiceName.GATEWAY

    # Identity service bind address
    backend_host: str = "0.0.0.0"
    backend_port: int = 3001

    # Gateway bind port
    gateway_port: int = 5000

    cors_origins: str = "*"

    # Honour X-Forwarded-For / X-Real-IP, enable only behind a trusted load balancer
    trust_proxy_headers: bool = False

    # Number of workers for uvicorn
    workers_count: int = 1

    # Enable uvicorn reloading
    reload_uvicorn: bool = False

    # Current working environment
    current_environment: Environment = Environment.DEV
    log_level: int = logging.INFO
    debug: bool = False

    # Identity service as seen from the gateway
    identity_service_url: str = "http://localhost:3001"

    # Seconds before an upstream call is abandoned, None disables the timeout
    proxy_timeout_seconds: float | None = None

    # Variables for the database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "identity"
    postgres_db_schema: str = "identity"

    # Shared rate limit store, the in-process store is used when unset
    redis_url: str | None = None
    redis_max_pool_connections: int = 20
    redis_socket_connect_timeout: int = 5  # Socket connect timeout in seconds
    redis_socket_timeout: int = 5  # Socket timeout in seconds

    # Rate limiting settings for sensitive prefixes (requests per window)
    rate_limit_enabled: bool = True
    rate_limit_sensitive: int = 10
    rate_limit_sensitive_window: int = int(timedelta(minutes=15).total_seconds())

    # Token security settings
    secret_key: str | None = None
    access_token_expire_seconds: int = int(timedelta(minutes=60).total_seconds())
    refresh_token_expire_seconds: int = int(timedelta(days=7).total_seconds())
    jwt_algorithm: str = "HS256"

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS origins from a comma-separated string.
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @computed_field
    @property
    def db_url(self) -> URL:
        """
        Assemble database URL from settings.
        """
        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.postgres_host,
            port=self.postgres_port,
            user=self.postgres_user,
            password=self.postgres_password,
            path=f"/{self.postgres_db}",
        )


settings = Settings()  # type: ignore
