"""Persistence backends for the task store.

A backend persists the whole task collection at once: ``save`` receives the
complete list after every mutation and ``load`` returns it at startup.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Sequence
from datetime import timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError

from taskdeck.core import Database
from taskdeck.core.exceptions import StorageError
from taskdeck.core.logging import get_logger

from .models import TaskRow
from .schemas import Task, TaskStatus

logger = get_logger(__name__)

_task_list_adapter: TypeAdapter[list[Task]] = TypeAdapter(list[Task])


@runtime_checkable
class TaskBackend(Protocol):
    """Protocol for whole-collection task persistence."""

    async def load(self) -> list[Task]:
        """Return the persisted collection, empty when nothing was saved yet."""
        ...

    async def save(self, tasks: Sequence[Task]) -> None:
        """Replace the persisted collection with the given tasks."""
        ...

    async def check(self) -> None:
        """Raise if the backend cannot currently persist data."""
        ...


class MemoryTaskBackend:
    """Backend keeping the last saved collection in memory."""

    def __init__(self, tasks: Sequence[Task] | None = None) -> None:
        self._tasks = [task.model_copy(deep=True) for task in tasks or []]
        self.save_count = 0

    async def load(self) -> list[Task]:
        return [task.model_copy(deep=True) for task in self._tasks]

    async def save(self, tasks: Sequence[Task]) -> None:
        self._tasks = [task.model_copy(deep=True) for task in tasks]
        self.save_count += 1

    async def check(self) -> None:
        return None


class JsonFileTaskBackend:
    """Backend storing the collection as a single JSON array file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the backend and create the containing directory if absent."""
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.path.parent}: {e}") from e

    async def load(self) -> list[Task]:
        return await asyncio.to_thread(self._read)

    async def save(self, tasks: Sequence[Task]) -> None:
        payload = _task_list_adapter.dump_json(list(tasks), by_alias=True, indent=2)
        await asyncio.to_thread(self._write, payload)

    async def check(self) -> None:
        if not os.access(self.path.parent, os.W_OK):
            raise StorageError(f"Data directory {self.path.parent} is not writable")

    def _read(self) -> list[Task]:
        if not self.path.exists():
            logger.info("storage.file_missing", path=str(self.path))
            return []

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read task file {self.path}: {e}") from e

        if not raw.strip():
            return []

        try:
            return _task_list_adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Task file {self.path} is malformed: {e.error_count()} error(s)") from e

    def _write(self, payload: bytes) -> None:
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write task file {self.path}: {e}") from e


class SqlTaskBackend:
    """Backend storing tasks as rows in a SQL table via async SQLAlchemy."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def load(self) -> list[Task]:
        try:
            async with self.database.session() as session:
                result = await session.execute(select(TaskRow).order_by(TaskRow.position))
                return [self._to_task(row) for row in result.scalars()]
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot load tasks from database: {e}") from e

    async def save(self, tasks: Sequence[Task]) -> None:
        try:
            async with self.database.session() as session:
                async with session.begin():
                    await session.execute(delete(TaskRow))
                    session.add_all([self._to_row(task, position) for position, task in enumerate(tasks)])
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot save tasks to database: {e}") from e

    async def check(self) -> None:
        async with self.database.session() as session:
            await session.execute(text("SELECT 1"))

    @staticmethod
    def _to_row(task: Task, position: int) -> TaskRow:
        return TaskRow(
            id=task.id,
            position=position,
            name=task.name,
            description=task.description,
            command=task.command,
            command_type=task.command_type,
            created_at=task.created_at,
            is_running=task.is_running,
            last_executed_at=task.last_executed_at,
            last_status=task.last_status.value if task.last_status else None,
        )

    @staticmethod
    def _to_task(row: TaskRow) -> Task:
        # SQLite drops tzinfo on round-trip; stored values are always UTC
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        last_executed_at = row.last_executed_at
        if last_executed_at is not None and last_executed_at.tzinfo is None:
            last_executed_at = last_executed_at.replace(tzinfo=timezone.utc)

        return Task(
            id=row.id,
            name=row.name,
            description=row.description,
            command=row.command,
            command_type=row.command_type,
            created_at=created_at,
            is_running=row.is_running,
            last_executed_at=last_executed_at,
            last_status=TaskStatus(row.last_status) if row.last_status else None,
        )
