import os
import sys

import anyio
import uvicorn
from anyio.to_thread import current_default_thread_limiter
from loguru import logger

from edge_auth.core.config import settings
from edge_auth.web import service_bind


async def monitor_thread_limiter(interval: float = 1.0):
    limiter = current_default_thread_limiter()
    threads_in_use = limiter.borrowed_tokens
    while True:
        if threads_in_use != limiter.borrowed_tokens:
            logger.debug(f"Threads in use: {limiter.borrowed_tokens}")
            threads_in_use = limiter.borrowed_tokens
        await anyio.sleep(interval)


def main():
    is_linux = sys.platform.startswith("linux")
    app_uri, host, port = service_bind(settings)

    if settings.debug:
        os.environ["PYTHONASYNCIODEBUG"] = "1"
        config = uvicorn.Config(
            app=app_uri,
            host=host,
            port=port,
            reload=settings.reload_uvicorn,
            workers=settings.workers_count,
            loop="uvloop" if is_linux else "auto",
        )
        server = uvicorn.Server(config)

        async def main_monitor():
            async with anyio.create_task_group() as tg:
                tg.start_soon(monitor_thread_limiter)
                await server.serve()

        anyio.run(main_monitor)
    else:
        if is_linux:
            from edge_auth.web import GunicornApplication

            GunicornApplication.for_service(settings).run()
        else:
            uvicorn.run(
                app=app_uri,
                host=host,
                port=port,
                reload=settings.reload_uvicorn,
                workers=settings.workers_count,
            )


if __name__ == "__main__":
    main()
