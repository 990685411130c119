"""In-memory task collection backed by a whole-collection persistence backend."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from taskdeck.core.exceptions import StorageError
from taskdeck.core.logging import get_logger

from .backends import TaskBackend
from .schemas import Task, TaskIn, TaskStatus, TaskUpdate

logger = get_logger(__name__)

# Fields where an empty string means "not supplied" on update
_REQUIRED_FIELDS = frozenset({"name", "command", "command_type"})


class TaskStore:
    """Ordered mapping of task id to task record.

    Every mutating call flushes the complete collection through the backend.
    A failed flush raises StorageError; the in-memory change is kept so the
    next successful flush persists it. Flushes are serialized so snapshots
    reach the backend one at a time and in mutation order.
    """

    def __init__(self, backend: TaskBackend) -> None:
        """Initialize an empty store; call load() to read persisted tasks."""
        self.backend = backend
        self._tasks: dict[str, Task] = {}
        self._flush_lock = asyncio.Lock()

    async def load(self) -> None:
        """Replace the in-memory collection with the backend's contents."""
        tasks = await self.backend.load()
        self._tasks = {task.id: task for task in tasks}

        # A process that died mid-run leaves stale running flags behind
        stale = [task.id for task in self._tasks.values() if task.is_running]
        for task_id in stale:
            self._tasks[task_id].is_running = False
        if stale:
            logger.warning("store.cleared_stale_running", task_ids=stale)
            await self._flush()

        logger.info("store.loaded", count=len(self._tasks))

    async def find_all(self) -> list[Task]:
        """Return all tasks in insertion order."""
        return list(self._tasks.values())

    async def find_by_id(self, task_id: str) -> Task | None:
        """Return the task with the given id, or None."""
        return self._tasks.get(task_id)

    async def create(self, data: TaskIn) -> Task:
        """Insert a new task with a generated id and return it."""
        task = Task(
            name=data.name,
            description=data.description,
            command=data.command,
            command_type=data.command_type,
        )
        self._tasks[task.id] = task
        await self._flush()
        logger.info("task.created", task_id=task.id, command_type=task.command_type)
        return task

    async def update(self, task_id: str, data: TaskUpdate) -> Task | None:
        """Apply the fields present in the update and return the task, or None if unknown."""
        task = self._tasks.get(task_id)
        if task is None:
            return None

        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items()
            if not (field in _REQUIRED_FIELDS and value == "")
        }
        for field, value in changes.items():
            setattr(task, field, value)

        await self._flush()
        logger.info("task.updated", task_id=task_id, fields=sorted(changes))
        return task

    async def delete(self, task_id: str) -> Task | None:
        """Remove the task and return it, or None if unknown."""
        task = self._tasks.pop(task_id, None)
        if task is None:
            return None

        await self._flush()
        logger.info("task.deleted", task_id=task_id)
        return task

    async def mark_running(self, task_id: str) -> Task | None:
        """Set the running flag on a task."""
        task = self._tasks.get(task_id)
        if task is None:
            return None

        task.is_running = True
        try:
            await self._flush()
        except StorageError:
            task.is_running = False
            raise
        return task

    async def finish_execution(self, task_id: str, status: TaskStatus) -> Task | None:
        """Clear the running flag and record the outcome of an execution."""
        task = self._tasks.get(task_id)
        if task is None:
            # deleted while running
            return None

        task.is_running = False
        task.last_status = status
        task.last_executed_at = datetime.now(timezone.utc)
        await self._flush()
        return task

    async def _flush(self) -> None:
        async with self._flush_lock:
            # Copied under the lock; backends may await mid-save
            snapshot = [task.model_copy() for task in self._tasks.values()]
            try:
                await self.backend.save(snapshot)
            except StorageError as e:
                logger.error("storage.save_failed", error=str(e))
                raise
