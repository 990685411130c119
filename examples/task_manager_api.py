"""FastAPI service demonstrating the task manager with seeded example tasks."""

from __future__ import annotations

import sys

from fastapi import FastAPI

from taskdeck.api import ServiceBuilder, ServiceInfo
from taskdeck.core.api.dependencies import get_task_manager
from taskdeck.modules.task import MemoryTaskBackend, TaskIn


async def seed_example_tasks(app: FastAPI) -> None:
    """Seed a few example tasks when the store is empty."""
    manager = get_task_manager()
    if await manager.find_all():
        return

    await manager.create(
        TaskIn(
            name="Say hello",
            description="Echo a greeting through the system shell",
            command='echo "Hello from taskdeck!"',
            command_type="batch",
        )
    )
    await manager.create(
        TaskIn(
            name="Python version",
            description="Run the interpreter with an argument",
            command="--version",
            command_type="python",
        )
    )
    await manager.create(
        TaskIn(
            name="List temp directory",
            command="dir %TEMP%" if sys.platform.startswith("win") else "ls -la /tmp",
            command_type="application",
        )
    )
    await manager.create(
        TaskIn(
            name="Failing command",
            description="Exits nonzero to demonstrate error capture",
            command="echo 'something went wrong' 1>&2 && exit 3",
            command_type="batch",
        )
    )


info = ServiceInfo(
    display_name="Task Manager Example",
    summary="Example service with in-memory storage and seeded tasks",
    version="1.0.0",
)

app = (
    ServiceBuilder(info=info)
    .with_health()
    .with_system()
    .with_tasks(backend=MemoryTaskBackend())
    .with_ui()
    .on_startup(seed_example_tasks)
    .build()
)

if __name__ == "__main__":
    from taskdeck.api import run_app

    run_app(app)
