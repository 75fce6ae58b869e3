from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tasktracker.errors import NotFound, ValidationError
from tasktracker.models.task import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    Task,
    TaskCreate,
    TaskQuery,
    TaskUpdate,
    describe_validation_error,
)
from tasktracker.observability import get_json_logger, get_metrics
from tasktracker.store.interface import TaskStore

# Fields that must never be cleared by an explicit null.
_REQUIRED_ON_UPDATE = ("title", "status", "priority")


def _coerce(model: Any, payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(describe_validation_error(exc)) from exc


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


class TaskService:
    """CRUD operations over a task store.

    Raises ``ValidationError`` for bad input, ``NotFound`` for unknown ids and
    lets ``StoreError`` from the store propagate untouched.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._logger = get_json_logger("tasktracker.service")
        self._metrics = get_metrics()

    def list_tasks(self, query: TaskQuery | None = None) -> list[Task]:
        return self._store.list_tasks(query or TaskQuery())

    def get_task(self, task_id: str) -> Task:
        task = self._store.get_task(task_id)
        if task is None:
            raise NotFound()
        return task

    def create_task(self, payload: TaskCreate | dict[str, Any]) -> Task:
        data = _coerce(TaskCreate, payload)
        if data.title is None or not data.title.strip():
            raise ValidationError("Title is required")
        fields: dict[str, Any] = {
            "title": data.title,
            "description": data.description or "",
            "status": data.status or DEFAULT_STATUS,
            "priority": data.priority or DEFAULT_PRIORITY,
            "due_date": data.due_date,
            "category": _blank_to_none(data.category),
            "tags": _blank_to_none(data.tags),
        }
        task = self._store.create_task(fields)
        self._logger.info("task created", extra={"event": "task_created", "task_id": task.id})
        self._metrics.increment("tasks_created")
        return task

    def update_task(self, task_id: str, payload: TaskUpdate | dict[str, Any]) -> Task:
        data = _coerce(TaskUpdate, payload)
        changes = data.changes()
        for name in _REQUIRED_ON_UPDATE:
            if name in changes and changes[name] is None:
                raise ValidationError(f"{name} cannot be null")
        if "title" in changes and not str(changes["title"]).strip():
            raise ValidationError("Title is required")
        if "description" in changes and changes["description"] is None:
            changes["description"] = ""
        for name in ("category", "tags"):
            if name in changes:
                changes[name] = _blank_to_none(changes[name])
        task = self._store.update_task(task_id, changes)
        if task is None:
            raise NotFound()
        self._logger.info(
            "task updated",
            extra={
                "event": "task_updated",
                "task_id": task_id,
                "attributes": {"fields": sorted(changes)},
            },
        )
        self._metrics.increment("tasks_updated")
        return task

    def delete_task(self, task_id: str) -> None:
        if not self._store.delete_task(task_id):
            raise NotFound()
        self._logger.info("task deleted", extra={"event": "task_deleted", "task_id": task_id})
        self._metrics.increment("tasks_deleted")

    def ping(self) -> None:
        self._store.ping()


__all__ = ["TaskService"]
