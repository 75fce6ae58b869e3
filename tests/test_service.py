from __future__ import annotations

import datetime as dt

import pytest

from tasktracker.errors import NotFound, StoreError, ValidationError
from tasktracker.models.task import TaskQuery
from tasktracker.observability import get_metrics
from tasktracker.service import TaskService
from tests.helpers.stores import FailingStore


def test_create_defaults_and_blank_fields(service: TaskService) -> None:
    task = service.create_task({"title": "Plan trip", "category": "  ", "tags": ""})

    assert task.status == "TODO"
    assert task.priority == 2
    assert task.description == ""
    assert task.category is None
    assert task.tags is None
    assert get_metrics().value("tasks_created") == 1


def test_create_accepts_camel_case_and_datetime_due(service: TaskService) -> None:
    task = service.create_task({"title": "x", "dueDate": "2024-02-29T10:30:00Z"})

    assert task.due_date == dt.date(2024, 2, 29)


@pytest.mark.parametrize("payload", [{}, {"title": None}, {"title": ""}, {"title": "  "}])
def test_create_requires_title(service: TaskService, payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError) as exc:
        service.create_task(payload)
    assert exc.value.message == "Title is required"


def test_create_rejects_out_of_range_priority(service: TaskService) -> None:
    with pytest.raises(ValidationError) as exc:
        service.create_task({"title": "x", "priority": 0})
    assert "priority" in exc.value.message


def test_update_partial_and_null_semantics(service: TaskService) -> None:
    task = service.create_task(
        {"title": "x", "description": "d", "dueDate": "2024-06-01", "category": "Work"}
    )

    kept = service.update_task(task.id, {"priority": 1})
    assert kept.due_date == dt.date(2024, 6, 1)
    assert kept.category == "Work"

    cleared = service.update_task(task.id, {"dueDate": None, "description": None})
    assert cleared.due_date is None
    assert cleared.description == ""
    assert cleared.category == "Work"


def test_update_blank_category_and_tags_clear_like_create(service: TaskService) -> None:
    task = service.create_task({"title": "x", "category": "Work", "tags": "a, b"})

    updated = service.update_task(task.id, {"category": "", "tags": "   "})

    assert updated.category is None
    assert updated.tags is None
    assert service.get_task(task.id).category is None


@pytest.mark.parametrize("field", ["title", "status", "priority"])
def test_update_rejects_null_required_fields(service: TaskService, field: str) -> None:
    task = service.create_task({"title": "x"})

    with pytest.raises(ValidationError):
        service.update_task(task.id, {field: None})


def test_unknown_ids_raise_not_found(service: TaskService) -> None:
    with pytest.raises(NotFound):
        service.get_task("missing")
    with pytest.raises(NotFound):
        service.update_task("missing", {"title": "x"})
    with pytest.raises(NotFound):
        service.delete_task("missing")


def test_list_passes_query_through(service: TaskService) -> None:
    service.create_task({"title": "a", "status": "DONE"})
    service.create_task({"title": "b"})

    assert [t.title for t in service.list_tasks(TaskQuery(status="DONE"))] == ["a"]
    assert len(service.list_tasks()) == 2


def test_store_errors_propagate() -> None:
    svc = TaskService(FailingStore())  # type: ignore[arg-type]

    with pytest.raises(StoreError):
        svc.list_tasks()
    with pytest.raises(StoreError):
        svc.create_task({"title": "x"})
    with pytest.raises(StoreError):
        svc.ping()
