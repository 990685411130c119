"""Tests for task schemas and command type parsing."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from taskdeck import CommandType, Task, TaskIn, TaskUpdate, UnknownCommandTypeError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("powershell", CommandType.POWERSHELL),
        ("batch", CommandType.BATCH),
        ("Python", CommandType.PYTHON),
        (" APPLICATION ", CommandType.APPLICATION),
    ],
)
def test_command_type_parse_is_case_insensitive(raw: str, expected: CommandType) -> None:
    """Test that stored tags map to enum members regardless of case and padding."""
    assert CommandType.parse(raw) is expected


def test_command_type_parse_rejects_unknown_tag() -> None:
    """Test that an unrecognised tag raises with a readable message."""
    with pytest.raises(UnknownCommandTypeError) as exc_info:
        CommandType.parse("ruby")

    assert exc_info.value.command_type == "ruby"
    assert exc_info.value.message == "Unknown command type: ruby"


def test_task_in_accepts_camel_case_fields() -> None:
    """Test that TaskIn reads the camelCase wire names."""
    data = TaskIn.model_validate({"name": "Build", "command": "make", "commandType": "batch"})

    assert data.command_type == "batch"
    assert data.description == ""


@pytest.mark.parametrize("missing", ["name", "command", "commandType"])
def test_task_in_requires_fields(missing: str) -> None:
    """Test that each required field is enforced."""
    payload = {"name": "Build", "command": "make", "commandType": "batch"}
    del payload[missing]

    with pytest.raises(ValidationError):
        TaskIn.model_validate(payload)


def test_task_in_rejects_empty_strings() -> None:
    """Test that empty required strings count as missing."""
    with pytest.raises(ValidationError):
        TaskIn.model_validate({"name": "", "command": "make", "commandType": "batch"})


def test_task_update_tracks_only_supplied_fields() -> None:
    """Test that a partial update reports just the fields present in the body."""
    update = TaskUpdate.model_validate({"description": "new"})

    assert update.model_dump(exclude_unset=True) == {"description": "new"}


def test_task_defaults_and_serialization() -> None:
    """Test new task defaults and camelCase JSON output."""
    task = Task(name="Build", command="make", command_type="batch")

    assert len(task.id) == 26
    assert task.is_running is False
    assert task.last_status is None
    assert isinstance(task.created_at, datetime)
    assert task.created_at.tzinfo is not None

    dumped = task.model_dump(mode="json", by_alias=True)
    assert set(dumped) == {
        "id",
        "name",
        "description",
        "command",
        "commandType",
        "createdAt",
        "isRunning",
        "lastExecutedAt",
        "lastStatus",
    }


def test_task_ids_are_unique() -> None:
    """Test that generated identifiers do not collide."""
    ids = {Task(name="t", command="c", command_type="batch").id for _ in range(100)}
    assert len(ids) == 100
