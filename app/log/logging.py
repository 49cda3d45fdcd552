"""Logging configuration for the matching service.

One Loguru logger is built here and shared by every module:
  • stdout sink with coloured formatting (kubectl logs / local dev)
  • Datadog sink when DD_API_KEY is set
  • standard-library ``logging`` (uvicorn, httpx, openai, redis) is
    intercepted and re-emitted through Loguru
"""

from __future__ import annotations

import inspect
import logging
import os
import sys
from logging import StreamHandler

import uvicorn
from datadog_api_client.v2 import ApiClient, Configuration
from datadog_api_client.v2.api.logs_api import LogsApi
from datadog_api_client.v2.model.content_encoding import ContentEncoding
from datadog_api_client.v2.model.http_log import HTTPLog
from datadog_api_client.v2.model.http_log_item import HTTPLogItem
from loguru import logger as loguru_logger

# Third-party loggers that are noisy at DEBUG level
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "psycopg.pool")


class LogConfig:
    """Logging-related environment variables, read once at import time."""

    def __init__(self) -> None:
        self.environment: str = os.getenv("ENVIRONMENT", "development").lower()
        self.service: str = os.getenv("SERVICE_NAME", "matching_service")
        self.hostname: str = os.getenv("HOSTNAME", "unknown")
        self.loglevel: str = os.getenv(
            "LOG_LEVEL", "DEBUG" if self.environment == "development" else "INFO"
        )
        self.loglevel_dd: str = os.getenv("LOGLEVEL_DATADOG", "WARNING")


logconfig = LogConfig()


class InterceptHandler(logging.Handler):
    """Re-emits standard-library log records through Loguru."""

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = inspect.currentframe(), 0
        while frame:
            filename = frame.f_code.co_filename
            is_logging_internal = filename == logging.__file__
            is_importlib_bootstrap = "importlib" in filename and "_bootstrap" in filename
            if depth > 0 and not (is_logging_internal or is_importlib_bootstrap):
                break
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


class DatadogHandler(StreamHandler):
    """Ships log records to Datadog Logs over HTTPS."""

    def __init__(self) -> None:  # noqa: D401
        super().__init__()
        # DD_SITE / DD_API_KEY are read from the environment by the client
        self.api_client = ApiClient(Configuration())
        self.api_instance = LogsApi(self.api_client)

    def emit(self, record: "logging.LogRecord") -> None:  # noqa: D401
        extras: dict[str, str] = {}
        for key, value in (getattr(record, "extra", None) or {}).items():
            try:
                extras[key] = str(value)
            except Exception:  # noqa: BLE001
                continue

        item = HTTPLogItem(
            status=record.levelname,
            ddsource="loguru",
            ddtags=f"level:{record.levelname},env:{logconfig.environment}",
            message=self.format(record),
            service=logconfig.service,
            timestamp=str(record.created),
            hostname=logconfig.hostname,
            **extras,
        )
        self.api_instance.submit_log(
            content_encoding=ContentEncoding.DEFLATE, body=HTTPLog([item])
        )


def init_logging():  # noqa: D401
    """Configure Loguru once and return the shared logger."""

    if getattr(init_logging, "_configured", False):
        return loguru_logger

    try:
        loguru_logger.remove()

        loguru_logger.add(
            sys.stdout,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS Z}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level> | <level>{extra}</level>",
            level=logconfig.loglevel,
        )

        if os.getenv("DD_API_KEY"):
            loguru_logger.add(DatadogHandler(), level=logconfig.loglevel_dd)
        else:
            loguru_logger.debug("DD_API_KEY not set, logs stay local")

        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        # Keep uvicorn from installing its own dictConfig on startup
        uvicorn.config.LOGGING_CONFIG = None
        loguru_logger.enable("uvicorn")

        init_logging._configured = True  # type: ignore[attr-defined]
        return loguru_logger

    except Exception as exc:  # noqa: BLE001
        print(f"[LOGGING] Failed to initialise Loguru, falling back. Error: {exc}")
        loguru_logger.remove()
        loguru_logger.add(sys.stdout, format="{time} | {level} | {message}", level="DEBUG")
        return loguru_logger


logger = init_logging()
