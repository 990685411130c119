"""Service builder with task module and browser UI integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import Any, List, Self

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from taskdeck.core import Database
from taskdeck.core.api.dependencies import get_task_manager, set_task_manager
from taskdeck.core.api.routers.health import HealthCheck, HealthState
from taskdeck.core.api.service_builder import BaseServiceBuilder
from taskdeck.core.logging import get_logger
from taskdeck.modules.task import (
    CommandExecutor,
    JsonFileTaskBackend,
    SqlTaskBackend,
    TaskBackend,
    TaskManager,
    TaskRouter,
    TaskStore,
)

logger = get_logger(__name__)

DEFAULT_DATA_FILE = Path("data") / "tasks.json"


@dataclass(slots=True)
class _TaskOptions:
    """Internal task options for ServiceBuilder."""

    prefix: str = "/api/tasks"
    tags: List[str] = field(default_factory=lambda: ["Tasks"])
    data_file: Path | None = None
    database_url: str | None = None
    backend: TaskBackend | None = None
    executor: CommandExecutor | None = None


@dataclass(slots=True)
class _UIOptions:
    """Internal browser UI options for ServiceBuilder."""

    static_prefix: str = "/static"


class ServiceBuilder(BaseServiceBuilder):
    """Service builder with integrated task management and browser UI."""

    def __init__(self, **kwargs: Any) -> None:
        """Initialize service builder with module-specific state."""
        super().__init__(**kwargs)
        self._task_options: _TaskOptions | None = None
        self._ui_options: _UIOptions | None = None
        self._storage_check = False
        self._database: Database | None = None

    # --------------------------------------------------------------------- Module-specific fluent methods

    def with_tasks(
        self,
        *,
        prefix: str = "/api/tasks",
        tags: List[str] | None = None,
        data_file: str | Path | None = None,
        database_url: str | None = None,
        backend: TaskBackend | None = None,
        executor: CommandExecutor | None = None,
    ) -> Self:
        """Enable task endpoints.

        Persistence is chosen by the first option given: an explicit backend,
        a SQL database URL, or a JSON data file (default data/tasks.json).
        """
        if sum(option is not None for option in (data_file, database_url, backend)) > 1:
            raise ValueError("Pass only one of data_file, database_url or backend to with_tasks().")

        self._task_options = _TaskOptions(
            prefix=prefix,
            tags=list(tags) if tags else ["Tasks"],
            data_file=Path(data_file) if data_file is not None else None,
            database_url=database_url,
            backend=backend,
            executor=executor,
        )
        return self

    def with_health(
        self,
        *,
        prefix: str = "/api/health",
        tags: List[str] | None = None,
        checks: dict[str, HealthCheck] | None = None,
        include_storage_check: bool = True,
    ) -> Self:
        """Add health check endpoint, including a task storage check by default."""
        health_checks = dict(checks or {})
        if include_storage_check:
            health_checks["storage"] = self._create_storage_health_check()
        return super().with_health(prefix=prefix, tags=tags, checks=health_checks)

    def with_system(
        self,
        *,
        prefix: str = "/api/system",
        tags: List[str] | None = None,
        interpreter_probe: Any = None,
    ) -> Self:
        """Add system info endpoint reporting the task interpreters found on PATH."""
        return super().with_system(
            prefix=prefix,
            tags=tags,
            interpreter_probe=interpreter_probe or self._probe_interpreters,
        )

    def with_ui(self, *, static_prefix: str = "/static") -> Self:
        """Serve the browser UI at / with its assets under static_prefix."""
        self._ui_options = _UIOptions(static_prefix=static_prefix)
        return self

    # --------------------------------------------------------------------- Extension point implementations

    def _validate_module_configuration(self) -> None:
        """Validate module-specific configuration."""
        if self._ui_options and not self._task_options:
            raise ValueError("The browser UI requires the task API. Call `with_tasks()` before `with_ui()`.")

        if self._ui_options and self._task_options and self._task_options.prefix != "/api/tasks":
            raise ValueError("The browser UI expects the task API at /api/tasks.")

    def _register_module_routers(self, app: FastAPI) -> None:
        """Register task router and browser UI."""
        if self._task_options:
            task_router = TaskRouter.create(
                prefix=self._task_options.prefix,
                tags=self._task_options.tags,
                manager_factory=get_task_manager,
            )
            app.include_router(task_router)

        if self._ui_options:
            self._install_ui(app, static_prefix=self._ui_options.static_prefix)

    async def _start_modules(self, app: FastAPI) -> None:
        """Create the task backend, load the store and publish the task manager."""
        options = self._task_options
        if options is None:
            return

        backend = await self._create_backend(options)
        store = TaskStore(backend)
        # Load failures (unreadable or malformed data) abort startup
        await store.load()

        manager = TaskManager(store, options.executor or CommandExecutor())
        set_task_manager(manager)
        app.state.task_manager = manager

    async def _stop_modules(self, app: FastAPI) -> None:
        """Release the task manager and dispose any database this builder created."""
        if self._task_options is None:
            return

        set_task_manager(None)
        app.state.task_manager = None
        if self._database is not None:
            await self._database.dispose()
            self._database = None

    # --------------------------------------------------------------------- Helpers

    async def _create_backend(self, options: _TaskOptions) -> TaskBackend:
        if options.backend is not None:
            return options.backend

        if options.database_url is not None:
            database = Database(options.database_url)
            await database.init()
            self._database = database
            logger.info("storage.backend", backend="sql", url=options.database_url)
            return SqlTaskBackend(database)

        data_file = options.data_file or DEFAULT_DATA_FILE
        logger.info("storage.backend", backend="json", path=str(data_file))
        return JsonFileTaskBackend(data_file)

    @staticmethod
    def _create_storage_health_check() -> HealthCheck:
        """Create task storage health check."""

        async def check_storage() -> tuple[HealthState, str | None]:
            try:
                manager = get_task_manager()
            except RuntimeError as e:
                return (HealthState.UNHEALTHY, str(e))
            try:
                await manager.store.backend.check()
                return (HealthState.HEALTHY, None)
            except Exception as e:
                return (HealthState.UNHEALTHY, f"Task storage unavailable: {e}")

        return check_storage

    @staticmethod
    def _probe_interpreters() -> dict[str, str | None]:
        try:
            return get_task_manager().executor.interpreters()
        except RuntimeError:
            return CommandExecutor().interpreters()

    @staticmethod
    def _install_ui(app: FastAPI, *, static_prefix: str) -> None:
        """Install the browser UI page and its static assets."""
        static_dir = files("taskdeck.web").joinpath("static")
        index_template = static_dir.joinpath("index.html").read_text(encoding="utf-8")
        index_html = index_template.replace("{{ static_prefix }}", static_prefix)

        app.mount(static_prefix, StaticFiles(directory=str(static_dir)), name="static")

        @app.get("/", include_in_schema=False, response_class=HTMLResponse)
        async def index() -> str:
            return index_html
