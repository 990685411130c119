"""Utility helpers for URLs and running the app under uvicorn."""

from __future__ import annotations

import os
from typing import Any

from fastapi import Request

from taskdeck.core.logging import configure_logging


def build_location_url(request: Request, path: str) -> str:
    """Build an absolute URL for a resource path on the current host."""
    return f"{str(request.base_url).rstrip('/')}{path}"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def run_app(
    app: Any | str,
    *,
    host: str | None = None,
    port: int | None = None,
    workers: int | None = None,
    reload: bool | None = None,
    log_level: str | None = None,
    **uvicorn_kwargs: Any,
) -> None:
    """Run a FastAPI app with uvicorn, falling back to HOST/PORT/WORKERS/RELOAD/LOG_LEVEL env vars.

    Reload and multiple workers need the app as an import string ("module:app").
    """
    import uvicorn

    host = host or os.getenv("HOST", "127.0.0.1")
    port = port or int(os.getenv("PORT", "8000"))
    workers = workers or int(os.getenv("WORKERS", "1"))
    reload = reload if reload is not None else _env_flag("RELOAD")
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    if (reload or workers > 1) and not isinstance(app, str):
        raise ValueError("reload and multiple workers require the app as an import string, e.g. 'module:app'")

    configure_logging(level=log_level)

    uvicorn.run(
        app,
        host=host,
        port=port,
        workers=workers if not reload else None,
        reload=reload,
        log_level=log_level.lower(),
        log_config=None,
        **uvicorn_kwargs,
    )
