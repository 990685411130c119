"""Shared fixtures for task store, executor, manager and app tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from taskdeck.modules.task import CommandExecutor, MemoryTaskBackend, TaskManager, TaskStore

from tests._stubs import build_app


@pytest.fixture
def backend() -> MemoryTaskBackend:
    """Empty in-memory task backend."""
    return MemoryTaskBackend()


@pytest.fixture
async def store(backend: MemoryTaskBackend) -> TaskStore:
    """Loaded task store over the in-memory backend."""
    task_store = TaskStore(backend)
    await task_store.load()
    return task_store


@pytest.fixture
def executor() -> CommandExecutor:
    """Command executor with a timeout so a hung command fails the test."""
    return CommandExecutor(timeout=30)


@pytest.fixture
def manager(store: TaskStore, executor: CommandExecutor) -> TaskManager:
    """Task manager over the in-memory store."""
    return TaskManager(store, executor)


@pytest.fixture
def client(backend: MemoryTaskBackend) -> Generator[TestClient, None, None]:
    """TestClient over a fresh app with lifespan enabled."""
    with TestClient(build_app(backend)) as test_client:
        yield test_client
