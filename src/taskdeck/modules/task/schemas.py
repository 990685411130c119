"""Task schemas and command type enumeration."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from ulid import ULID

from taskdeck.core.exceptions import UnknownCommandTypeError


class CommandType(StrEnum):
    """Interpreter strategies a task command can be executed with."""

    POWERSHELL = "powershell"
    BATCH = "batch"
    PYTHON = "python"
    APPLICATION = "application"

    @classmethod
    def parse(cls, value: str) -> CommandType:
        """Map a stored command type tag to its enum member, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnknownCommandTypeError(value) from None


class TaskStatus(StrEnum):
    """Outcome of the last execution attempt."""

    SUCCESS = "success"
    ERROR = "error"


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _new_task_id() -> str:
    return str(ULID())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskIn(CamelModel):
    """Input schema for creating a task."""

    name: str = Field(min_length=1, description="Display name of the task")
    description: str = Field(default="", description="Free-text description")
    command: str = Field(min_length=1, description="Command text interpreted according to commandType")
    command_type: str = Field(min_length=1, description="powershell, batch, python or application")


class TaskUpdate(CamelModel):
    """Partial update schema.

    Only fields present in the request are applied; an empty name, command or
    command type is treated as absent.
    """

    name: str | None = None
    description: str | None = None
    command: str | None = None
    command_type: str | None = None


class Task(CamelModel):
    """Stored task record."""

    id: str = Field(default_factory=_new_task_id, description="Opaque unique identifier")
    name: str
    description: str = ""
    command: str
    command_type: str
    created_at: datetime = Field(default_factory=_utcnow)
    is_running: bool = False
    last_executed_at: datetime | None = None
    last_status: TaskStatus | None = None


class ExecutionResult(CamelModel):
    """Captured output of a finished external process."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int
    truncated: bool = Field(default=False, description="True when output exceeded the capture limit")


class TaskExecuteResponse(CamelModel):
    """Response schema for a successful task execution."""

    success: bool = True
    message: str = "Task executed successfully"
    result: ExecutionResult
