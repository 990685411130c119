"""Task CRUD router with execution operation."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, NoReturn

from fastapi import Depends, HTTPException, Request, Response, status

from taskdeck.core.api.router import Router
from taskdeck.core.api.utilities import build_location_url
from taskdeck.core.exceptions import TaskdeckError

from .manager import TaskManager
from .schemas import Task, TaskExecuteResponse, TaskIn, TaskUpdate


def _raise_http(error: TaskdeckError) -> NoReturn:
    raise HTTPException(status_code=error.status_code, detail=error.message) from error


class TaskRouter(Router):
    """Router exposing list/get/create/update/delete and execute for tasks."""

    def __init__(
        self,
        prefix: str,
        tags: Sequence[str],
        manager_factory: Callable[..., Any],
        **kwargs: Any,
    ) -> None:
        """Initialize task router with a manager dependency factory."""
        self.manager_factory = manager_factory
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    def _register_routes(self) -> None:
        """Register task CRUD routes and execution operation."""
        manager_dependency = Depends(self.manager_factory)
        prefix = self.router.prefix

        @self.router.get("", summary="List tasks", response_model=list[Task])
        async def list_tasks(manager: TaskManager = manager_dependency) -> list[Task]:
            return await manager.find_all()

        @self.router.get("/{task_id}", summary="Get task by ID", response_model=Task)
        async def get_task(task_id: str, manager: TaskManager = manager_dependency) -> Task:
            try:
                return await manager.find_by_id(task_id)
            except TaskdeckError as e:
                _raise_http(e)

        @self.router.post(
            "",
            summary="Create task",
            response_model=Task,
            status_code=status.HTTP_201_CREATED,
        )
        async def create_task(
            data: TaskIn,
            request: Request,
            response: Response,
            manager: TaskManager = manager_dependency,
        ) -> Task:
            try:
                task = await manager.create(data)
            except TaskdeckError as e:
                _raise_http(e)
            response.headers["Location"] = build_location_url(request, f"{prefix}/{task.id}")
            return task

        @self.router.put(
            "/{task_id}",
            summary="Update task",
            description="Partial update; only fields present in the body change",
            response_model=Task,
        )
        async def update_task(
            task_id: str,
            data: TaskUpdate,
            manager: TaskManager = manager_dependency,
        ) -> Task:
            try:
                return await manager.update(task_id, data)
            except TaskdeckError as e:
                _raise_http(e)

        @self.router.delete("/{task_id}", summary="Delete task", response_model=Task)
        async def delete_task(task_id: str, manager: TaskManager = manager_dependency) -> Task:
            try:
                return await manager.delete(task_id)
            except TaskdeckError as e:
                _raise_http(e)

        @self.router.post(
            "/{task_id}/execute",
            summary="Execute task",
            description="Run the task's command and wait for the process to exit",
            response_model=TaskExecuteResponse,
            responses={
                404: {"description": "Task not found"},
                409: {"description": "Task is already running"},
                500: {"description": "Execution failed"},
            },
        )
        async def execute_task(task_id: str, manager: TaskManager = manager_dependency) -> TaskExecuteResponse:
            try:
                result = await manager.execute(task_id)
            except TaskdeckError as e:
                _raise_http(e)
            return TaskExecuteResponse(result=result)
