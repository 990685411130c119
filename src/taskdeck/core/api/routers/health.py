"""Health check router."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import StrEnum

from fastapi import Response, status
from pydantic import BaseModel, Field

from taskdeck.core.logging import get_logger

from ..router import Router

logger = get_logger(__name__)


class HealthState(StrEnum):
    """Health state enumeration for health checks."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


HealthCheck = Callable[[], Awaitable[tuple[HealthState, str | None]]]


class CheckResult(BaseModel):
    """Result of an individual health check."""

    state: HealthState = Field(description="Health state of this check")
    message: str | None = Field(default=None, description="Optional message or error detail")


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: HealthState = Field(description="Overall service health indicator")
    checks: dict[str, CheckResult] | None = Field(
        default=None, description="Individual health check results (if checks are configured)"
    )


class HealthRouter(Router):
    """Health check router; responds 503 when any check is unhealthy."""

    def __init__(
        self,
        prefix: str,
        tags: list[str],
        checks: dict[str, HealthCheck] | None = None,
        **kwargs: object,
    ) -> None:
        """Initialize health router with optional named checks."""
        self.checks = checks or {}
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    def _register_routes(self) -> None:
        """Register health check endpoint."""
        checks = self.checks

        @self.router.get(
            "",
            summary="Health check",
            response_model=HealthStatus,
            response_model_exclude_none=True,
        )
        async def health_check(response: Response) -> HealthStatus:
            if not checks:
                return HealthStatus(status=HealthState.HEALTHY)

            check_results: dict[str, CheckResult] = {}
            overall_state = HealthState.HEALTHY

            for name, check_fn in checks.items():
                try:
                    state, message = await check_fn()
                except Exception as e:
                    logger.warning("health.check_failed", check=name, error=str(e))
                    state, message = HealthState.UNHEALTHY, f"Check failed: {e}"

                check_results[name] = CheckResult(state=state, message=message)
                if state == HealthState.UNHEALTHY:
                    overall_state = HealthState.UNHEALTHY
                elif state == HealthState.DEGRADED and overall_state == HealthState.HEALTHY:
                    overall_state = HealthState.DEGRADED

            if overall_state == HealthState.UNHEALTHY:
                response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

            return HealthStatus(status=overall_state, checks=check_results)
