"""FastAPI dependency injection for the task manager."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskdeck.modules.task.manager import TaskManager

# Global task manager instance - initialized at app startup
_task_manager: TaskManager | None = None


def set_task_manager(manager: TaskManager | None) -> None:
    """Set (or clear) the global task manager instance."""
    global _task_manager
    _task_manager = manager


def get_task_manager() -> TaskManager:
    """Get the global task manager instance."""
    if _task_manager is None:
        raise RuntimeError("Task manager not initialized. Call set_task_manager() during app startup.")
    return _task_manager
