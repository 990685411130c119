"""System information router."""

from __future__ import annotations

import platform
import shutil
import sys
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..router import Router

InterpreterProbe = Callable[[], dict[str, str | None]]


class SystemInfo(BaseModel):
    """System information response."""

    current_time: datetime = Field(description="Current server time in UTC")
    timezone: str = Field(description="Server timezone")
    python_version: str = Field(description="Python version")
    platform: str = Field(description="Operating system platform")
    hostname: str = Field(description="Server hostname")
    interpreters: dict[str, str | None] = Field(
        default_factory=dict,
        description="Resolved path of each command interpreter, null when not found on PATH",
    )


def _default_probe() -> dict[str, str | None]:
    return {"python": sys.executable or shutil.which("python")}


class SystemRouter(Router):
    """System information router."""

    def __init__(
        self,
        prefix: str,
        tags: list[str],
        interpreter_probe: InterpreterProbe | None = None,
        **kwargs: object,
    ) -> None:
        """Initialize system router with an optional interpreter probe."""
        self.interpreter_probe = interpreter_probe or _default_probe
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    def _register_routes(self) -> None:
        """Register system info endpoint."""
        probe = self.interpreter_probe

        @self.router.get(
            "",
            summary="System information",
            response_model=SystemInfo,
        )
        async def get_system_info() -> SystemInfo:
            return SystemInfo(
                current_time=datetime.now(timezone.utc),
                timezone=str(datetime.now().astimezone().tzinfo),
                python_version=f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
                platform=platform.platform(),
                hostname=platform.node(),
                interpreters=probe(),
            )
