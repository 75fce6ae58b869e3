from __future__ import annotations

import datetime as _dt
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar, get_args

from tasktracker.config import DEFAULT_PAGE_SIZE
from tasktracker.models.task import Priority, Task, TaskStatus
from tasktracker.taxonomy.codec import decoded_name, tag_names

DueWindow = Literal["all", "today", "tomorrow", "this_week", "overdue", "none"]
DUE_WINDOWS: tuple[str, ...] = get_args(DueWindow)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    """Client-side filters; every set criterion must hold (AND)."""

    search: str = ""
    status: TaskStatus | None = None
    priority: Priority | None = None
    category: str | None = None
    tag: str | None = None
    include_completed: bool = True
    due_window: DueWindow = "all"


def _matches_search(task: Task, needle: str) -> bool:
    if not needle:
        return True
    needle = needle.lower()
    haystacks = (task.title, task.description or "", task.category or "")
    return any(needle in h.lower() for h in haystacks)


def _same_iso_week(a: _dt.date, b: _dt.date) -> bool:
    return a.isocalendar()[:2] == b.isocalendar()[:2]


def matches_due_window(due: _dt.date | None, window: str, today: _dt.date) -> bool:
    """Calendar-day comparisons against ``today``; weeks start on Monday.

    ``overdue`` ignores status, so a finished task past its date still counts.
    """
    if window == "all":
        return True
    if window == "none":
        return due is None
    if due is None:
        return False
    if window == "today":
        return due == today
    if window == "tomorrow":
        return due == today + _dt.timedelta(days=1)
    if window == "this_week":
        return _same_iso_week(due, today)
    if window == "overdue":
        return due < today
    raise ValueError(f"unknown due window: {window}")


def matches(task: Task, criteria: FilterCriteria, today: _dt.date) -> bool:
    if not _matches_search(task, criteria.search.strip()):
        return False
    if criteria.status is not None and task.status != criteria.status:
        return False
    if criteria.priority is not None and task.priority != criteria.priority:
        return False
    if criteria.category is not None:
        if not task.category or decoded_name(task.category) != decoded_name(criteria.category):
            return False
    if criteria.tag is not None and criteria.tag.strip() not in tag_names(task.tags):
        return False
    if not criteria.include_completed and task.status == "DONE":
        return False
    return matches_due_window(task.due_date, criteria.due_window, today)


def filter_tasks(
    tasks: Iterable[Task],
    criteria: FilterCriteria | None = None,
    today: _dt.date | None = None,
) -> list[Task]:
    """Return the tasks satisfying ``criteria``, preserving input order."""
    crit = criteria or FilterCriteria()
    day = today or _dt.date.today()
    return [t for t in tasks if matches(t, crit, day)]


@dataclass(slots=True)
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total: int = 0
    page_count: int = 0


def page_count(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return math.ceil(total / page_size)


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice one 1-indexed page; pages outside the range are empty."""
    count = page_count(len(items), page_size)
    if page < 1:
        chunk: list[T] = []
    else:
        chunk = list(items[(page - 1) * page_size : page * page_size])
    return Page(items=chunk, page=page, page_size=page_size, total=len(items), page_count=count)


__all__ = [
    "DUE_WINDOWS",
    "DueWindow",
    "FilterCriteria",
    "Page",
    "filter_tasks",
    "matches",
    "matches_due_window",
    "page_count",
    "paginate",
]
