import logging
import os
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from edge_auth.core.config import Environment, settings

if TYPE_CHECKING:
    from loguru import Record

# ============================================
# CONTEXT VARIABLES FOR REQUEST TRACKING
# ============================================
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


# ============================================
# LOG DIRECTORY AND FILE PATHS
# ============================================
LOG_DIR = Path("logs")

# Single unified log file for all workers
LOG_FILE = LOG_DIR / "app.log"


# ============================================
# LOG LEVEL MAPPING
# ============================================

LOG_LEVELS = {
    50: "CRITICAL",
    40: "ERROR",
    30: "WARNING",
    20: "INFO",
    10: "DEBUG",
    0: "NOTSET",
}


# ============================================
# CUSTOM FILTER FOR CORRELATION AND PROCESS ID
# ============================================


def correlation_filter(record: "Record") -> bool:
    """
    Add correlation ID and process ID to log records.
    This allows tracking requests across the gateway and the identity
    service and differentiating between different worker processes.

    Args:
        record (Record): Log record from Loguru.

    Returns:
        bool: Always True, no record is dropped.
    """
    record["extra"]["request_id"] = request_id_var.get() or str(uuid.uuid4())[:8]
    record["extra"]["process_id"] = os.getpid()
    record["extra"]["service"] = settings.service.value

    return True


# ============================================
# INTERCEPT HANDLER FOR STANDARD LOGGING
# ============================================


class InterceptHandler(logging.Handler):
    """
    Intercepts standard logging and redirects to Loguru.
    Used to replace Uvicorn's and httpx's default loggers with our Loguru configuration.
    """

    def emit(self, record: logging.LogRecord):
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller from where the logging call originated
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# ============================================
# MAIN LOGGER SETUP FUNCTION
# ============================================


def setup_logger():
    """
    Configure Loguru logger for a multi-worker FastAPI application.

    Features:
    - Thread and process safe with enqueue=True
    - Single unified log file with process IDs for worker differentiation
    - 3 months retention, 10MB rotation
    - Compression for old logs (gzip)
    - Different outputs for console vs file

    This should be called once during application startup,
    preferably in the FastAPI lifespan startup event.
    """
    # Remove default handler to avoid duplicate logs
    logger.remove()

    log_level = LOG_LEVELS[settings.log_level]

    # ============================================
    # CONSOLE OUTPUT: Simplified, colored format
    # ============================================
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<blue>{extra[service]}</blue> | "
        "<magenta>PID:{extra[process_id]}</magenta> | "
        "<yellow>ReqID:{extra[request_id]}</yellow> | "
        "<cyan>{name}:{function}:{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        format=console_format,
        level=logging.DEBUG if settings.current_environment == Environment.DEV else logging.INFO,
        colorize=True,
        enqueue=True,
        filter=correlation_filter,
    )

    # ============================================
    # FILE OUTPUT: Detailed format with full context
    # ============================================
    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss!UTC} | "
        "{level: <8} | "
        "{extra[service]} | "
        "PID:{extra[process_id]} | "
        "ReqID:{extra[request_id]} | "
        "{name}:{function}:{line} | "
        "{message}"
    )

    LOG_DIR.mkdir(exist_ok=True)

    logger.add(
        LOG_FILE,
        format=file_format,
        level=log_level,
        rotation="10 MB",
        retention="3 months",
        compression="gz",
        enqueue=True,  # Process-safe queue for multi-worker safety
        serialize=False,
        filter=correlation_filter,
        backtrace=True,
        diagnose=settings.current_environment != Environment.PRD,
    )

    logger.info(
        f"Logger initialized | "
        f"Service: {settings.service.value} | "
        f"Environment: {settings.current_environment.value} | "
        f"Level: {log_level}"
    )


# ============================================
# UVICORN LOGGER CONFIGURATION
# ============================================


def configure_uvicorn_logging():
    """
    Replace Uvicorn's default logging with Loguru.

    Call this during FastAPI app startup, after setup_logger().
    """
    # Intercept all loggers and set to lowest level
    # Loguru will handle the actual filtering
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.root.manager.loggerDict.keys():
        if name.startswith("uvicorn") or name.startswith("httpx"):
            logging.getLogger(name).handlers = [InterceptHandler()]
            logging.getLogger(name).propagate = False

    logger.debug("Uvicorn logging configured to use Loguru")


# ============================================
# SHUTDOWN HANDLER
# ============================================


def shutdown_logger():
    """
    Flush all pending logs.
    Call this in FastAPI shutdown event.
    """
    logger.info("Shutting down logger...")

    # Let Loguru finish processing queued logs
    logger.complete()
