from __future__ import annotations

import datetime as _dt
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from tasktracker.errors import ValidationError

TaskStatus = Literal["TODO", "IN_PROGRESS", "DONE"]
Priority = Literal[1, 2, 3]

STATUSES: tuple[str, ...] = get_args(TaskStatus)
PRIORITIES: tuple[int, ...] = get_args(Priority)

STATUS_LABELS: dict[str, str] = {"TODO": "To Do", "IN_PROGRESS": "In Progress", "DONE": "Done"}
PRIORITY_LABELS: dict[int, str] = {1: "High", 2: "Medium", 3: "Low"}

DEFAULT_STATUS: TaskStatus = "TODO"
DEFAULT_PRIORITY: Priority = 2


def _coerce_due_date(value: Any) -> Any:
    # Clients send either a bare date or a full ISO datetime; only the day matters.
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if "T" in text:
            return text.split("T", 1)[0]
        return text
    return value


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(_WireModel):
    """A task as returned by the API and consumed by the client."""

    id: str
    title: str
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS
    priority: Priority = DEFAULT_PRIORITY
    due_date: _dt.date | None = None
    category: str | None = None
    tags: str | None = None
    created_at: _dt.datetime
    updated_at: _dt.datetime

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value: Any) -> Any:
        return _coerce_due_date(value)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def assume_utc(cls, value: _dt.datetime) -> _dt.datetime:
        # SQLite drops tzinfo; stored timestamps are always UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=_dt.UTC)
        return value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TaskCreate(_WireModel):
    """Body of ``POST /tasks``. Title presence is checked by the service."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: _dt.date | None = None
    category: str | None = None
    tags: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value: Any) -> Any:
        return _coerce_due_date(value)


class TaskUpdate(_WireModel):
    """Body of ``PUT /tasks/{id}``.

    Only fields present in the payload are applied; ``model_fields_set`` tells
    an omitted field apart from an explicit ``null``.
    """

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: _dt.date | None = None
    category: str | None = None
    tags: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value: Any) -> Any:
        return _coerce_due_date(value)

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskQuery(BaseModel):
    """Closed set of server-side list filters (exact match, AND-combined)."""

    model_config = ConfigDict(frozen=True)

    status: TaskStatus | None = None
    category: str | None = None
    priority: Priority | None = None

    @classmethod
    def from_params(
        cls,
        status: str | None = None,
        category: str | None = None,
        priority: str | int | None = None,
    ) -> TaskQuery:
        """Build a query from raw query-string values; blanks mean "no filter"."""
        status_val = (status or "").strip() or None
        category_val = (category or "").strip() or None
        priority_val: int | None = None
        if priority is not None and str(priority).strip():
            try:
                priority_val = int(str(priority).strip())
            except ValueError as exc:
                raise ValidationError(f"Invalid priority: {priority}") from exc
        try:
            return cls(status=status_val, category=category_val, priority=priority_val)
        except PydanticValidationError as exc:
            raise ValidationError(describe_validation_error(exc)) from exc


def describe_validation_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = str(first.get("msg", "invalid value"))
    return f"Invalid {loc}: {msg}" if loc else msg


__all__ = [
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskQuery",
    "TaskStatus",
    "Priority",
    "STATUSES",
    "PRIORITIES",
    "STATUS_LABELS",
    "PRIORITY_LABELS",
    "DEFAULT_STATUS",
    "DEFAULT_PRIORITY",
    "describe_validation_error",
]
