"""Task manager coordinating the store and the command executor."""

from __future__ import annotations

from taskdeck.core.exceptions import ExecutionError, StorageError, TaskAlreadyRunningError, TaskNotFoundError
from taskdeck.core.logging import get_logger

from .executor import CommandExecutor
from .schemas import ExecutionResult, Task, TaskIn, TaskStatus, TaskUpdate
from .store import TaskStore

logger = get_logger(__name__)


class TaskManager:
    """Manager for task CRUD and on-demand execution."""

    def __init__(self, store: TaskStore, executor: CommandExecutor) -> None:
        """Initialize task manager with a loaded store and an executor."""
        self.store = store
        self.executor = executor

    async def find_all(self) -> list[Task]:
        return await self.store.find_all()

    async def find_by_id(self, task_id: str) -> Task:
        """Return a task or raise TaskNotFoundError."""
        task = await self.store.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def create(self, data: TaskIn) -> Task:
        return await self.store.create(data)

    async def update(self, task_id: str, data: TaskUpdate) -> Task:
        task = await self.store.update(task_id, data)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def delete(self, task_id: str) -> Task:
        task = await self.store.delete(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def execute(self, task_id: str) -> ExecutionResult:
        """Run a task's command and record the outcome on the task.

        A task that is already running is rejected rather than queued. The
        running flag is cleared and lastStatus/lastExecutedAt are written
        whatever the outcome. If that write fails, the StorageError is raised
        with the execution error, if any, as its cause.
        """
        task = await self.find_by_id(task_id)
        if task.is_running:
            raise TaskAlreadyRunningError(task_id)

        # Snapshot before the first await so edits during the run don't leak in
        command, command_type = task.command, task.command_type
        await self.store.mark_running(task_id)

        status = TaskStatus.ERROR
        failure: ExecutionError | None = None
        try:
            result = await self.executor.run(command, command_type)
            status = TaskStatus.SUCCESS
            logger.info("task.execute.succeeded", task_id=task_id, exit_code=result.exit_code)
            return result
        except ExecutionError as e:
            failure = e
            logger.warning("task.execute.failed", task_id=task_id, error=e.message)
            raise
        finally:
            try:
                await self.store.finish_execution(task_id, status)
            except StorageError as e:
                logger.error("task.execute.record_failed", task_id=task_id, status=status.value, error=e.message)
                raise e from failure
