"""Error taxonomy shared by the store, executor and HTTP layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskdeck.modules.task.schemas import ExecutionResult


class TaskdeckError(Exception):
    """Base class for all taskdeck errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskNotFoundError(TaskdeckError):
    """Raised when a task identifier is unknown."""

    status_code = 404

    def __init__(self, task_id: str) -> None:
        super().__init__("Task not found")
        self.task_id = task_id


class TaskAlreadyRunningError(TaskdeckError):
    """Raised when an execution is requested for a task that is already running."""

    status_code = 409

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} is already running")
        self.task_id = task_id


class StorageError(TaskdeckError):
    """Raised when the task collection cannot be loaded or saved."""


class ExecutionError(TaskdeckError):
    """Base class for failures while executing a task command."""


class UnknownCommandTypeError(ExecutionError):
    """Raised when a task carries a command type with no invocation strategy."""

    def __init__(self, command_type: str) -> None:
        super().__init__(f"Unknown command type: {command_type}")
        self.command_type = command_type


class SpawnError(ExecutionError):
    """Raised when the external process could not be started."""


class ProcessFailedError(ExecutionError):
    """Raised when the external process exits with a nonzero code."""

    def __init__(self, result: ExecutionResult) -> None:
        super().__init__(f"Process exited with code {result.exit_code}: {result.stderr}")
        self.result = result


class ExecutionTimeoutError(ExecutionError):
    """Raised when the external process exceeds the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Process timed out after {timeout:g} seconds")
        self.timeout = timeout
