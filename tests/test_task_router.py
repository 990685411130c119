"""Tests for TaskRouter error mapping with a mocked manager."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskdeck import (
    ExecutionResult,
    ProcessFailedError,
    SpawnError,
    StorageError,
    Task,
    TaskAlreadyRunningError,
    TaskManager,
    TaskNotFoundError,
)
from taskdeck.api import add_error_handlers
from taskdeck.modules.task import TaskRouter


def _client(mock_manager: Mock) -> TestClient:
    def manager_factory() -> TaskManager:
        return mock_manager

    app = FastAPI()
    add_error_handlers(app)
    app.include_router(TaskRouter.create(prefix="/api/tasks", tags=["Tasks"], manager_factory=manager_factory))
    return TestClient(app)


def test_get_unknown_task_returns_404() -> None:
    """Test that TaskNotFoundError maps to 404 with an error body."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.find_by_id = AsyncMock(side_effect=TaskNotFoundError("abc"))

    response = _client(mock_manager).get("/api/tasks/abc")

    assert response.status_code == 404
    assert response.json() == {"error": "Task not found"}


def test_execute_running_task_returns_409() -> None:
    """Test that TaskAlreadyRunningError maps to 409 Conflict."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.execute = AsyncMock(side_effect=TaskAlreadyRunningError("abc"))

    response = _client(mock_manager).post("/api/tasks/abc/execute")

    assert response.status_code == 409
    assert "already running" in response.json()["error"]


def test_execute_process_failure_returns_500_with_stderr() -> None:
    """Test that a nonzero exit maps to 500 carrying the stderr text."""
    mock_manager = Mock(spec=TaskManager)
    result = ExecutionResult(stderr="access denied", exit_code=5)
    mock_manager.execute = AsyncMock(side_effect=ProcessFailedError(result))

    response = _client(mock_manager).post("/api/tasks/abc/execute")

    assert response.status_code == 500
    assert response.json() == {"error": "Process exited with code 5: access denied"}


def test_execute_spawn_failure_returns_500() -> None:
    """Test that a spawn failure maps to 500."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.execute = AsyncMock(side_effect=SpawnError("Failed to execute command: no such file"))

    response = _client(mock_manager).post("/api/tasks/abc/execute")

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to execute command: no such file"


def test_execute_success_wraps_result() -> None:
    """Test the success envelope of the execute endpoint."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.execute = AsyncMock(return_value=ExecutionResult(stdout="ok\n", exit_code=0))

    response = _client(mock_manager).post("/api/tasks/abc/execute")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Task executed successfully",
        "result": {"stdout": "ok\n", "stderr": "", "exitCode": 0, "truncated": False},
    }
    mock_manager.execute.assert_awaited_once_with("abc")


def test_create_storage_failure_returns_500() -> None:
    """Test that a failed save maps to 500 instead of a silent success."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.create = AsyncMock(side_effect=StorageError("Cannot write task file"))

    response = _client(mock_manager).post(
        "/api/tasks", json={"name": "Build", "command": "make", "commandType": "batch"}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Cannot write task file"}


def test_create_sets_location_header() -> None:
    """Test that a created task is returned with 201 and a Location header."""
    task = Task(name="Build", command="make", command_type="batch")
    mock_manager = Mock(spec=TaskManager)
    mock_manager.create = AsyncMock(return_value=task)

    response = _client(mock_manager).post(
        "/api/tasks", json={"name": "Build", "command": "make", "commandType": "batch"}
    )

    assert response.status_code == 201
    assert response.headers["Location"].endswith(f"/api/tasks/{task.id}")
    assert response.json()["id"] == task.id


def test_create_missing_fields_returns_400_without_calling_manager() -> None:
    """Test that validation happens before the manager is touched."""
    mock_manager = Mock(spec=TaskManager)
    mock_manager.create = AsyncMock()

    response = _client(mock_manager).post("/api/tasks", json={"name": "Build"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: command, commandType"
    mock_manager.create.assert_not_awaited()
