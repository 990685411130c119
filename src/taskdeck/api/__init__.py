"""FastAPI routers, builders and related presentation logic."""

from taskdeck.core.api import Router
from taskdeck.core.api.middleware import add_error_handlers, add_logging_middleware, validation_error_handler
from taskdeck.core.api.routers import HealthRouter, HealthState, HealthStatus, SystemInfo, SystemRouter
from taskdeck.core.api.service_builder import ServiceInfo
from taskdeck.core.api.utilities import build_location_url, run_app
from taskdeck.core.logging import (
    add_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    reset_request_context,
)
from taskdeck.modules.task import TaskRouter

from .service_builder import ServiceBuilder

__all__ = [
    # Base classes
    "Router",
    # Routers
    "HealthRouter",
    "HealthStatus",
    "HealthState",
    "SystemRouter",
    "SystemInfo",
    "TaskRouter",
    # Middleware
    "add_error_handlers",
    "add_logging_middleware",
    "validation_error_handler",
    # Logging
    "configure_logging",
    "get_logger",
    "add_request_context",
    "clear_request_context",
    "reset_request_context",
    # Builders
    "ServiceBuilder",
    "ServiceInfo",
    # Utilities
    "build_location_url",
    "run_app",
]
