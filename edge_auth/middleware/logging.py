import time
import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from edge_auth.core.logger import request_id_var
from edge_auth.core.utils import get_client_ip


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a request ID and traces its outcome.

    An inbound X-Request-ID is reused so the gateway and the identity
    service log the same ID for one call.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate request ID for tracing
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        # Add request ID to request state and to every log record of this request
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()

        client_ip = get_client_ip(request)

        logger.trace(
            f"[{request_id}] {request.method} {request.url.path} - "
            f"Client: {client_ip} - User-Agent: {request.headers.get('user-agent', 'unknown')}",
        )

        try:
            response: Response = await call_next(request)

            process_time = time.time() - start_time
            logger.trace(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - Time: {process_time:.3f}s",
            )

            # Add request ID to response headers
            response.headers["X-Request-ID"] = request_id

            return response

        except Exception as e:
            process_time = time.time() - start_time

            logger.error(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Error: {str(e)} - Time: {process_time:.3f}s",
                request_query_params=request.query_params,
                request_path_params=request.path_params,
            )
            raise e

        finally:
            request_id_var.reset(token)
