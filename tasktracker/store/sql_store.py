"""Relational task store on SQLModel."""
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from tasktracker.errors import StoreError
from tasktracker.models.task import Task, TaskQuery
from tasktracker.observability import get_json_logger

# Columns a caller may write; id and timestamps are owned by the store.
WRITABLE_FIELDS = ("title", "description", "status", "priority", "due_date", "category", "tags")


def utc_now() -> datetime:
    return datetime.now(UTC)


class TaskRow(SQLModel, table=True):
    __tablename__ = "tasks"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    title: str
    description: str = ""
    status: str = Field(default="TODO", index=True)
    priority: int = Field(default=2, index=True)
    due_date: date | None = None
    category: str | None = Field(default=None, index=True)
    tags: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, index=True)


def _row_to_task(row: TaskRow) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description or "",
        status=row.status,
        priority=row.priority,
        due_date=row.due_date,
        category=row.category,
        tags=row.tags,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def create_store_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are shared across threads (API handlers run store calls on
    worker threads); in-memory SQLite uses a single static connection so every session
    sees the same database.
    """
    url = make_url(database_url)
    kwargs: dict[str, Any] = {"echo": False}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if not url.database or url.database == ":memory:":
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, **kwargs)


class SqlTaskStore:
    """Task store backed by one relational table.

    Every operation opens its own session; there is no cross-row transaction.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._logger = get_json_logger("tasktracker.store")

    @classmethod
    def from_url(cls, database_url: str) -> "SqlTaskStore":
        return cls(create_store_engine(database_url))

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        try:
            table = TaskRow.__table__  # type: ignore[attr-defined]
            SQLModel.metadata.create_all(self._engine, tables=[table])
        except SQLAlchemyError as exc:
            raise StoreError(f"schema init failed: {exc}") from exc

    @contextmanager
    def _session(self, op: str) -> Iterator[Session]:
        try:
            with Session(self._engine) as session:
                yield session
        except SQLAlchemyError as exc:
            self._logger.error(
                "store error",
                extra={"event": "store_error", "metadata": {"op": op, "error": str(exc)[:200]}},
            )
            raise StoreError(f"{op} failed") from exc

    def ping(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreError("store unreachable") from exc

    def list_tasks(self, query: TaskQuery) -> list[Task]:
        stmt = select(TaskRow)
        if query.status is not None:
            stmt = stmt.where(TaskRow.status == query.status)
        if query.category is not None:
            stmt = stmt.where(TaskRow.category == query.category)
        if query.priority is not None:
            stmt = stmt.where(TaskRow.priority == query.priority)
        stmt = stmt.order_by(
            TaskRow.updated_at.desc(),  # type: ignore[attr-defined]
            TaskRow.created_at.desc(),  # type: ignore[attr-defined]
        )
        with self._session("list") as session:
            return [_row_to_task(row) for row in session.exec(stmt)]

    def get_task(self, task_id: str) -> Task | None:
        with self._session("get") as session:
            row = session.get(TaskRow, task_id)
            return _row_to_task(row) if row is not None else None

    def create_task(self, fields: dict[str, Any]) -> Task:
        values = {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}
        now = utc_now()
        with self._session("create") as session:
            row = TaskRow(**values, created_at=now, updated_at=now)
            session.add(row)
            session.commit()
            session.refresh(row)
            return _row_to_task(row)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        with self._session("update") as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return None
            for key, value in changes.items():
                if key in WRITABLE_FIELDS:
                    setattr(row, key, value)
            row.updated_at = utc_now()
            session.add(row)
            session.commit()
            session.refresh(row)
            return _row_to_task(row)

    def delete_task(self, task_id: str) -> bool:
        with self._session("delete") as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True


__all__ = ["SqlTaskStore", "TaskRow", "create_store_engine", "utc_now", "WRITABLE_FIELDS"]
