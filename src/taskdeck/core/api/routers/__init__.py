"""Core routers for health and system endpoints."""

from .health import CheckResult, HealthCheck, HealthRouter, HealthState, HealthStatus
from .system import SystemInfo, SystemRouter

__all__ = [
    "HealthRouter",
    "HealthStatus",
    "HealthState",
    "HealthCheck",
    "CheckResult",
    "SystemRouter",
    "SystemInfo",
]
