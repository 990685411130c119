"""Base service builder for FastAPI applications without module dependencies."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, Dict, List, Self

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, ConfigDict

from taskdeck.core.logging import configure_logging, get_logger

from .middleware import add_error_handlers, add_logging_middleware
from .routers import HealthRouter, SystemRouter
from .routers.health import HealthCheck
from .routers.system import InterpreterProbe

logger = get_logger(__name__)


class ServiceInfo(BaseModel):
    """Service metadata for FastAPI application."""

    display_name: str
    version: str = "1.0.0"
    summary: str | None = None
    description: str | None = None
    contact: dict[str, str] | None = None
    license_info: dict[str, str] | None = None

    model_config = ConfigDict(extra="forbid")


class BaseServiceBuilder:
    """Base service builder providing core FastAPI functionality without module dependencies."""

    def __init__(
        self,
        *,
        info: ServiceInfo,
        include_error_handlers: bool = True,
        include_logging: bool = False,
    ) -> None:
        """Initialize base service builder with core options."""
        if info.description is None and info.summary is not None:
            # Preserve summary as description for FastAPI metadata if description missing
            self.info = info.model_copy(update={"description": info.summary})
        else:
            self.info = info
        self._title = self.info.display_name
        self._app_description = self.info.summary or self.info.description or ""
        self._version = self.info.version
        self._include_error_handlers = include_error_handlers
        self._include_logging = include_logging
        self._health_options: tuple[str, List[str], dict[str, HealthCheck]] | None = None
        self._system_options: tuple[str, List[str], InterpreterProbe | None] | None = None
        self._custom_routers: List[APIRouter] = []
        self._dependency_overrides: Dict[Callable[..., object], Callable[..., object]] = {}
        self._startup_hooks: List[Callable[[FastAPI], Awaitable[None]]] = []
        self._shutdown_hooks: List[Callable[[FastAPI], Awaitable[None]]] = []

    # --------------------------------------------------------------------- Fluent configuration

    def with_logging(self, enabled: bool = True) -> Self:
        """Enable structured logging with request tracing."""
        self._include_logging = enabled
        return self

    def with_health(
        self,
        *,
        prefix: str = "/api/health",
        tags: List[str] | None = None,
        checks: dict[str, HealthCheck] | None = None,
    ) -> Self:
        """Add health check endpoint with optional custom checks."""
        self._health_options = (prefix, list(tags) if tags is not None else ["health"], dict(checks or {}))
        return self

    def with_system(
        self,
        *,
        prefix: str = "/api/system",
        tags: List[str] | None = None,
        interpreter_probe: InterpreterProbe | None = None,
    ) -> Self:
        """Add system info endpoint."""
        self._system_options = (prefix, list(tags) if tags is not None else ["system"], interpreter_probe)
        return self

    def include_router(self, router: APIRouter) -> Self:
        """Include a custom router."""
        self._custom_routers.append(router)
        return self

    def override_dependency(self, dependency: Callable[..., object], override: Callable[..., object]) -> Self:
        """Override a dependency for testing or customization."""
        self._dependency_overrides[dependency] = override
        return self

    def on_startup(self, hook: Callable[[FastAPI], Awaitable[None]]) -> Self:
        """Register a startup hook; runs after module startup."""
        self._startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: Callable[[FastAPI], Awaitable[None]]) -> Self:
        """Register a shutdown hook; runs before module shutdown."""
        self._shutdown_hooks.append(hook)
        return self

    # --------------------------------------------------------------------- Build mechanics

    def build(self) -> FastAPI:
        """Build and configure the FastAPI application."""
        self._validate_configuration()
        self._validate_module_configuration()  # Extension point for subclasses

        lifespan = self._build_lifespan()
        app = FastAPI(
            title=self._title,
            description=self._app_description,
            version=self._version,
            lifespan=lifespan,
        )

        if self._include_error_handlers:
            add_error_handlers(app)

        if self._include_logging:
            add_logging_middleware(app)

        if self._health_options:
            prefix, tags, checks = self._health_options
            health_router = HealthRouter.create(prefix=prefix, tags=tags, checks=checks)
            app.include_router(health_router)

        if self._system_options:
            prefix, tags, probe = self._system_options
            system_router = SystemRouter.create(prefix=prefix, tags=tags, interpreter_probe=probe)
            app.include_router(system_router)

        # Extension point for module-specific routers
        self._register_module_routers(app)

        for router in self._custom_routers:
            app.include_router(router)

        for dependency, override in self._dependency_overrides.items():
            app.dependency_overrides[dependency] = override

        self._install_info_endpoint(app, info=self.info)

        return app

    # --------------------------------------------------------------------- Extension points

    def _validate_module_configuration(self) -> None:
        """Extension point for module-specific validation (override in subclasses)."""
        pass

    def _register_module_routers(self, app: FastAPI) -> None:
        """Extension point for registering module-specific routers (override in subclasses)."""
        pass

    async def _start_modules(self, app: FastAPI) -> None:
        """Extension point for module startup, runs before user startup hooks."""
        pass

    async def _stop_modules(self, app: FastAPI) -> None:
        """Extension point for module shutdown, runs after user shutdown hooks."""
        pass

    # --------------------------------------------------------------------- Core helpers

    def _validate_configuration(self) -> None:
        """Validate core configuration."""
        # Health check names become JSON keys and log fields
        if self._health_options:
            _, _, checks = self._health_options
            for name in checks.keys():
                if not name.replace("_", "").replace("-", "").isalnum():
                    raise ValueError(
                        f"Health check name '{name}' contains invalid characters. "
                        "Only alphanumeric characters, underscores, and hyphens are allowed."
                    )

    def _build_lifespan(self) -> Callable[[FastAPI], AsyncContextManager[None]]:
        """Build lifespan context manager for app startup/shutdown."""
        include_logging = self._include_logging
        startup_hooks = list(self._startup_hooks)
        shutdown_hooks = list(self._shutdown_hooks)
        info = self.info

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            if include_logging:
                configure_logging()

            try:
                await self._start_modules(app)
                try:
                    for hook in startup_hooks:
                        await hook(app)
                    logger.info("service.started", name=info.display_name, version=info.version)
                    yield
                finally:
                    for hook in shutdown_hooks:
                        await hook(app)
            finally:
                # Also runs when module startup fails part way
                await self._stop_modules(app)
                logger.info("service.stopped", name=info.display_name)

        return lifespan

    @staticmethod
    def _install_info_endpoint(app: FastAPI, *, info: ServiceInfo) -> None:
        """Install service info endpoint."""
        info_type = type(info)

        @app.get("/api/info", include_in_schema=False, response_model=info_type)
        async def get_info() -> ServiceInfo:
            return info

    # --------------------------------------------------------------------- Convenience

    @classmethod
    def create(cls, *, info: ServiceInfo, **kwargs: Any) -> FastAPI:
        """Create and build a FastAPI application in one call."""
        return cls(info=info, **kwargs).build()
