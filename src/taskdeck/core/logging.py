"""Structured logging configuration with request context support."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import Processor


def configure_logging(*, level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog and route stdlib logging through the same renderer.

    Level and format fall back to the LOG_LEVEL and LOG_FORMAT environment
    variables. LOG_FORMAT accepts "console" (default) or "json".
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = (log_format or os.getenv("LOG_FORMAT", "console")).lower()
    log_level = getattr(logging, level_name, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Processor
    if fmt == "json":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    # uvicorn installs its own handlers; let records propagate to ours instead
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger bound to the given module name."""
    return structlog.get_logger(name)


def add_request_context(**kwargs: Any) -> None:
    """Bind key/value pairs to the logging context of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def reset_request_context(*keys: str) -> None:
    """Remove specific keys from the current logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_request_context() -> None:
    """Drop all request-scoped logging context."""
    structlog.contextvars.clear_contextvars()
