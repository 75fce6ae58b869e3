from __future__ import annotations

import datetime as dt
import threading
import uuid
from typing import Any

from tasktracker.errors import NotFound, StoreError
from tasktracker.models.task import Task, TaskQuery


def make_task(**fields: Any) -> Task:
    now = dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.UTC)
    base: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "title": "Task",
        "created_at": now,
        "updated_at": now,
    }
    base.update(fields)
    return Task(**base)


class FailingStore:
    """Every operation fails the way an unreachable database would."""

    def list_tasks(self, query: TaskQuery) -> list[Task]:
        raise StoreError("list failed")

    def get_task(self, task_id: str) -> Task | None:
        raise StoreError("get failed")

    def create_task(self, fields: dict[str, Any]) -> Task:
        raise StoreError("create failed")

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        raise StoreError("update failed")

    def delete_task(self, task_id: str) -> bool:
        raise StoreError("delete failed")

    def ping(self) -> None:
        raise StoreError("store unreachable")


class BlockingStore:
    """Empty store whose ``list_tasks`` holds until ``release`` is set."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def list_tasks(self, query: TaskQuery) -> list[Task]:
        self.entered.set()
        self.release.wait(timeout=5.0)
        return []

    def ping(self) -> None:
        return None


class InMemoryTaskSource:
    """List/update source for the taxonomy registry.

    Ids in ``fail_ids`` reject updates with ``StoreError``.
    """

    def __init__(self, tasks: list[Task], fail_ids: set[str] | None = None) -> None:
        self.tasks = {t.id: t for t in tasks}
        self.fail_ids = set(fail_ids or ())
        self.updates: list[tuple[str, dict[str, Any]]] = []

    def list_tasks(self) -> list[Task]:
        return list(self.tasks.values())

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        if task_id in self.fail_ids:
            raise StoreError("Failed to update task")
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFound()
        self.updates.append((task_id, dict(changes)))
        updated = task.model_copy(update=changes)
        self.tasks[task_id] = updated
        return updated
