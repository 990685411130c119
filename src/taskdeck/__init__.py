"""taskdeck - browser-based manager for on-demand automation commands."""

__version__ = "0.1.0"

# Core framework
from taskdeck.core import (
    Database,
    ExecutionError,
    ExecutionTimeoutError,
    ProcessFailedError,
    SpawnError,
    StorageError,
    TaskAlreadyRunningError,
    TaskdeckError,
    TaskNotFoundError,
    UnknownCommandTypeError,
)

# Task feature
from taskdeck.modules.task import (
    CommandExecutor,
    CommandType,
    ExecutionResult,
    JsonFileTaskBackend,
    MemoryTaskBackend,
    SqlTaskBackend,
    Task,
    TaskBackend,
    TaskIn,
    TaskManager,
    TaskStatus,
    TaskStore,
    TaskUpdate,
)

__all__ = [
    # Core framework
    "Database",
    "TaskdeckError",
    "TaskNotFoundError",
    "TaskAlreadyRunningError",
    "StorageError",
    "ExecutionError",
    "UnknownCommandTypeError",
    "SpawnError",
    "ProcessFailedError",
    "ExecutionTimeoutError",
    # Task feature
    "Task",
    "TaskIn",
    "TaskUpdate",
    "TaskStatus",
    "CommandType",
    "ExecutionResult",
    "TaskBackend",
    "MemoryTaskBackend",
    "JsonFileTaskBackend",
    "SqlTaskBackend",
    "TaskStore",
    "CommandExecutor",
    "TaskManager",
]
