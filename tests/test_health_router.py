"""Tests for health check router."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskdeck.core.api.routers.health import HealthRouter, HealthState


@pytest.fixture
def app_no_checks() -> FastAPI:
    """FastAPI app with health router but no checks."""
    app = FastAPI()
    app.include_router(HealthRouter.create(prefix="/api/health", tags=["health"]))
    return app


@pytest.fixture
def app_with_checks() -> FastAPI:
    """FastAPI app with health router and custom checks."""

    async def check_healthy() -> tuple[HealthState, str | None]:
        return (HealthState.HEALTHY, None)

    async def check_degraded() -> tuple[HealthState, str | None]:
        return (HealthState.DEGRADED, "Slow disk")

    async def check_exception() -> tuple[HealthState, str | None]:
        raise RuntimeError("Check exploded")

    app = FastAPI()
    health_router = HealthRouter.create(
        prefix="/api/health",
        tags=["health"],
        checks={
            "healthy_check": check_healthy,
            "degraded_check": check_degraded,
            "exception_check": check_exception,
        },
    )
    app.include_router(health_router)
    return app


def test_health_check_no_checks(app_no_checks: FastAPI) -> None:
    """Test health check endpoint with no custom checks returns healthy."""
    response = TestClient(app_no_checks).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_health_check_aggregates_worst_state(app_with_checks: FastAPI) -> None:
    """Test that a raising check makes the service unhealthy with 503."""
    response = TestClient(app_with_checks).get("/api/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"

    checks = data["checks"]
    assert checks["healthy_check"] == {"state": "healthy"}
    assert checks["degraded_check"] == {"state": "degraded", "message": "Slow disk"}
    assert checks["exception_check"]["state"] == "unhealthy"
    assert "Check exploded" in checks["exception_check"]["message"]


def test_health_check_degraded_is_still_200() -> None:
    """Test that a degraded check is reported without failing the probe."""

    async def check_degraded() -> tuple[HealthState, str | None]:
        return (HealthState.DEGRADED, None)

    app = FastAPI()
    app.include_router(HealthRouter.create(prefix="/api/health", tags=["health"], checks={"d": check_degraded}))

    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
