from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from tasktracker.errors import StoreError
from tasktracker.models.task import TaskQuery
from tasktracker.store.sql_store import SqlTaskStore


def _fields(title: str, **extra: object) -> dict[str, object]:
    base: dict[str, object] = {
        "title": title,
        "description": "",
        "status": "TODO",
        "priority": 2,
        "due_date": None,
        "category": None,
        "tags": None,
    }
    base.update(extra)
    return base


def test_create_assigns_id_and_timestamps(store: SqlTaskStore) -> None:
    task = store.create_task(_fields("Write tests", due_date=dt.date(2024, 6, 1)))

    assert task.id
    assert task.created_at == task.updated_at
    assert task.created_at.tzinfo is not None
    assert task.due_date == dt.date(2024, 6, 1)

    fetched = store.get_task(task.id)
    assert fetched is not None
    assert fetched.title == "Write tests"


def test_caller_cannot_write_owned_columns(store: SqlTaskStore) -> None:
    task = store.create_task(_fields("x", id="forced", created_at=dt.datetime(2000, 1, 1)))

    assert task.id != "forced"
    assert task.created_at.year != 2000


def test_update_refreshes_updated_at_only(store: SqlTaskStore) -> None:
    task = store.create_task(_fields("x"))

    updated = store.update_task(task.id, {"status": "DONE", "created_at": dt.datetime(2000, 1, 1)})

    assert updated is not None
    assert updated.status == "DONE"
    assert updated.created_at == task.created_at
    assert updated.updated_at >= task.updated_at


def test_unknown_ids_return_none_or_false(store: SqlTaskStore) -> None:
    assert store.get_task("missing") is None
    assert store.update_task("missing", {"title": "x"}) is None
    assert store.delete_task("missing") is False


def test_delete_removes_row(store: SqlTaskStore) -> None:
    task = store.create_task(_fields("x"))

    assert store.delete_task(task.id) is True
    assert store.get_task(task.id) is None


def test_list_filters_by_exact_values(store: SqlTaskStore) -> None:
    store.create_task(_fields("a", status="TODO", priority=1, category="Work"))
    store.create_task(_fields("b", status="DONE", priority=1, category="Work:#1976d2"))
    store.create_task(_fields("c", status="TODO", priority=3, category="Home"))

    assert {t.title for t in store.list_tasks(TaskQuery())} == {"a", "b", "c"}
    assert {t.title for t in store.list_tasks(TaskQuery(status="TODO"))} == {"a", "c"}
    assert {t.title for t in store.list_tasks(TaskQuery(priority=1))} == {"a", "b"}
    # Server-side category matching compares the raw stored value
    assert {t.title for t in store.list_tasks(TaskQuery(category="Work"))} == {"a"}
    assert store.list_tasks(TaskQuery(status="DONE", category="Home")) == []


def test_list_is_most_recently_updated_first(store: SqlTaskStore) -> None:
    first = store.create_task(_fields("first"))
    store.create_task(_fields("second"))
    store.update_task(first.id, {"priority": 1})

    titles = [t.title for t in store.list_tasks(TaskQuery())]

    assert titles == ["first", "second"]


def test_file_database_persists_across_instances(tmp_path: Path) -> None:
    url = f"sqlite:///{(tmp_path / 'nested' / 'tasks.db').as_posix()}"
    s1 = SqlTaskStore.from_url(url)
    s1.init_schema()
    task = s1.create_task(_fields("durable"))
    s1.engine.dispose()

    s2 = SqlTaskStore.from_url(url)
    s2.init_schema()
    fetched = s2.get_task(task.id)
    s2.engine.dispose()

    assert fetched is not None
    assert fetched.title == "durable"


def test_missing_schema_surfaces_as_store_error() -> None:
    bare = SqlTaskStore.from_url("sqlite://")

    with pytest.raises(StoreError):
        bare.list_tasks(TaskQuery())
    bare.ping()
