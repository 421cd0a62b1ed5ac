from gunicorn.app.base import BaseApplication
from gunicorn.util import import_app

from edge_auth.core.config import ServiceName, Settings

APP_URIS = {
    ServiceName.GATEWAY: "edge_auth.gateway.main:app",
    ServiceName.IDENTITY: "edge_auth.main:app",
}


def service_bind(config: Settings) -> tuple[str, str, int]:
    """
    ASGI application and bind address of the configured service.

    Returns:
        tuple[str, str, int]: (app_uri, host, port)
    """
    port = config.gateway_port if config.service == ServiceName.GATEWAY else config.backend_port

    return APP_URIS[config.service], config.backend_host, port


class GunicornApplication(BaseApplication):
    """Gunicorn application serving one of the ASGI apps with uvicorn workers."""

    def __init__(self, app_uri: str, options: dict | None = None):
        self.app_uri = app_uri
        self.options = options or {}
        super().__init__()

    def load_config(self):
        for key, value in self.options.items():
            if key in self.cfg.settings and value is not None:
                self.cfg.set(key.lower(), value)

    def load(self):
        return import_app(self.app_uri)

    @classmethod
    def for_service(cls, config: Settings) -> "GunicornApplication":
        app_uri, host, port = service_bind(config)

        return cls(
            app_uri,
            {
                "bind": f"{host}:{port}",
                "workers": config.workers_count,
                "worker_class": "uvicorn.workers.UvicornWorker",
            },
        )
