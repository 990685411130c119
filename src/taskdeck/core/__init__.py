"""Core framework - database, logging and error taxonomy."""

from .database import Database
from .exceptions import (
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
from .models import Base

__all__ = [
    "Base",
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
]
