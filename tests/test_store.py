"""Tests for TaskStore."""

import asyncio
from collections.abc import Sequence

import pytest

from taskdeck import MemoryTaskBackend, StorageError, Task, TaskIn, TaskStatus, TaskStore, TaskUpdate

from tests._stubs import FailingSaveBackend


def _task_in(name: str = "Build") -> TaskIn:
    return TaskIn(name=name, description="compile", command="make", command_type="batch")


async def test_create_assigns_id_and_persists(store: TaskStore, backend: MemoryTaskBackend) -> None:
    """Test that create returns a new record and flushes the collection."""
    task = await store.create(_task_in())

    assert task.id
    assert task.is_running is False
    assert task.name == "Build"
    assert task.description == "compile"
    assert backend.save_count == 1
    assert [t.id for t in await backend.load()] == [task.id]


async def test_find_all_preserves_insertion_order(store: TaskStore) -> None:
    """Test that tasks are listed in the order they were created."""
    names = ["first", "second", "third"]
    for name in names:
        await store.create(_task_in(name))

    assert [task.name for task in await store.find_all()] == names


async def test_update_changes_only_supplied_fields(store: TaskStore) -> None:
    """Test partial updates leave other fields untouched."""
    task = await store.create(_task_in())

    updated = await store.update(task.id, TaskUpdate(command="make all"))

    assert updated is not None
    assert updated.command == "make all"
    assert updated.name == "Build"
    assert updated.description == "compile"
    assert updated.command_type == "batch"
    assert updated.created_at == task.created_at


async def test_update_skips_empty_required_fields(store: TaskStore) -> None:
    """Test that empty name/command/command_type are ignored while the rest applies."""
    task = await store.create(_task_in())

    updated = await store.update(task.id, TaskUpdate(name="", command="", command_type="", description=""))

    assert updated is not None
    assert updated.name == "Build"
    assert updated.command == "make"
    assert updated.command_type == "batch"
    assert updated.description == ""


async def test_update_and_delete_unknown_return_none(store: TaskStore) -> None:
    """Test that unknown ids are reported as None without flushing."""
    assert await store.update("missing", TaskUpdate(name="x")) is None
    assert await store.delete("missing") is None


async def test_delete_removes_task(store: TaskStore) -> None:
    """Test that deleted tasks disappear from the listing."""
    task = await store.create(_task_in())

    deleted = await store.delete(task.id)

    assert deleted is not None and deleted.id == task.id
    assert await store.find_all() == []
    assert await store.find_by_id(task.id) is None


async def test_finish_execution_records_outcome(store: TaskStore) -> None:
    """Test that finishing an execution clears the flag and stamps the outcome."""
    task = await store.create(_task_in())
    await store.mark_running(task.id)
    assert (await store.find_by_id(task.id)).is_running is True  # type: ignore[union-attr]

    finished = await store.finish_execution(task.id, TaskStatus.ERROR)

    assert finished is not None
    assert finished.is_running is False
    assert finished.last_status == TaskStatus.ERROR
    assert finished.last_executed_at is not None


async def test_finish_execution_after_delete_is_noop(store: TaskStore) -> None:
    """Test that a task deleted mid-run is not resurrected."""
    task = await store.create(_task_in())
    await store.mark_running(task.id)
    await store.delete(task.id)

    assert await store.finish_execution(task.id, TaskStatus.SUCCESS) is None
    assert await store.find_all() == []


async def test_load_clears_stale_running_flags() -> None:
    """Test that tasks persisted as running are reset on load."""
    stale = Task(name="Stuck", command="sleep 100", command_type="batch", is_running=True)
    backend = MemoryTaskBackend([stale])
    store = TaskStore(backend)

    await store.load()

    task = await store.find_by_id(stale.id)
    assert task is not None and task.is_running is False
    assert backend.save_count == 1
    assert (await backend.load())[0].is_running is False


async def test_load_without_stale_flags_does_not_flush() -> None:
    """Test that a clean load performs no write."""
    backend = MemoryTaskBackend([Task(name="Idle", command="true", command_type="batch")])
    store = TaskStore(backend)

    await store.load()

    assert backend.save_count == 0
    assert len(await store.find_all()) == 1


async def test_save_failure_propagates() -> None:
    """Test that a failed flush raises StorageError to the caller."""
    store = TaskStore(FailingSaveBackend())
    await store.load()

    with pytest.raises(StorageError, match="disk full"):
        await store.create(_task_in())


async def test_mark_running_resets_flag_when_flush_fails() -> None:
    """Test that a failed flush does not leave a task stuck as running."""
    task = Task(name="Build", command="make", command_type="batch")
    store = TaskStore(FailingSaveBackend([task]))
    await store.load()

    with pytest.raises(StorageError):
        await store.mark_running(task.id)

    assert (await store.find_by_id(task.id)).is_running is False  # type: ignore[union-attr]


class _SlowFirstSaveBackend(MemoryTaskBackend):
    """Memory backend whose first save takes longer than later ones."""

    def __init__(self) -> None:
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def save(self, tasks: Sequence[Task]) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.05 if self.save_count == 0 else 0)
        await super().save(tasks)
        self.active -= 1


async def test_overlapping_flushes_run_in_order() -> None:
    """Test that concurrent mutations never save at once and the newest state wins."""
    backend = _SlowFirstSaveBackend()
    store = TaskStore(backend)
    await store.load()

    first, second = await asyncio.gather(store.create(_task_in("first")), store.create(_task_in("second")))

    assert backend.max_active == 1
    assert [task.id for task in await backend.load()] == [first.id, second.id]
