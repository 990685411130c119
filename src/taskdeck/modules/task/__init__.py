"""Task feature - stored command definitions executed on demand."""

from .backends import JsonFileTaskBackend, MemoryTaskBackend, SqlTaskBackend, TaskBackend
from .executor import CommandExecutor, ExecInvocation, ShellInvocation
from .manager import TaskManager
from .router import TaskRouter
from .schemas import CommandType, ExecutionResult, Task, TaskExecuteResponse, TaskIn, TaskStatus, TaskUpdate
from .store import TaskStore

__all__ = [
    "Task",
    "TaskIn",
    "TaskUpdate",
    "TaskStatus",
    "CommandType",
    "ExecutionResult",
    "TaskExecuteResponse",
    "TaskBackend",
    "MemoryTaskBackend",
    "JsonFileTaskBackend",
    "SqlTaskBackend",
    "TaskStore",
    "CommandExecutor",
    "ExecInvocation",
    "ShellInvocation",
    "TaskManager",
    "TaskRouter",
]
