"""Default taskdeck application configured from environment variables.

TASKDECK_DATA_FILE          JSON task file (default data/tasks.json)
TASKDECK_DATABASE_URL       use the SQL backend instead, e.g. sqlite+aiosqlite:///data/tasks.db
TASKDECK_EXECUTION_TIMEOUT  seconds before a running command is killed (default: no timeout)
TASKDECK_MAX_OUTPUT_BYTES   per-stream capture limit (default 1 MiB)
TASKDECK_PYTHON             interpreter for python tasks (default: the running interpreter)
TASKDECK_POWERSHELL         executable for powershell tasks
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from fastapi import FastAPI

from taskdeck import __version__
from taskdeck.api import ServiceBuilder, ServiceInfo
from taskdeck.modules.task import CommandExecutor
from taskdeck.modules.task.executor import DEFAULT_MAX_OUTPUT_BYTES


def executor_from_env(env: Mapping[str, str]) -> CommandExecutor:
    """Build a command executor from TASKDECK_* environment variables."""
    timeout = env.get("TASKDECK_EXECUTION_TIMEOUT")
    max_output = env.get("TASKDECK_MAX_OUTPUT_BYTES")
    return CommandExecutor(
        python_executable=env.get("TASKDECK_PYTHON") or None,
        powershell_executable=env.get("TASKDECK_POWERSHELL") or None,
        max_output_bytes=int(max_output) if max_output else DEFAULT_MAX_OUTPUT_BYTES,
        timeout=float(timeout) if timeout else None,
    )


def create_app(env: Mapping[str, str] | None = None) -> FastAPI:
    """Build the full service: task API, browser UI, health and system endpoints."""
    env = os.environ if env is None else env
    database_url = env.get("TASKDECK_DATABASE_URL") or None
    data_file = None if database_url else env.get("TASKDECK_DATA_FILE", "data/tasks.json")

    info = ServiceInfo(
        display_name="taskdeck",
        version=__version__,
        summary="Define automation commands and run them on demand",
    )

    return (
        ServiceBuilder(info=info)
        .with_logging()
        .with_health()
        .with_system()
        .with_tasks(data_file=data_file, database_url=database_url, executor=executor_from_env(env))
        .with_ui()
        .build()
    )


app = create_app()
