from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from tasktracker.errors import TaskTrackerError
from tasktracker.models.task import Task
from tasktracker.observability import get_json_logger, get_metrics

from .codec import decode, encode, is_color, split_tags
from .colors import NO_CATEGORY_COLOR, hash_color


@dataclass(slots=True)
class Category:
    name: str
    color: str
    count: int = 0


@dataclass(slots=True)
class Tag:
    name: str
    color: str


class TaskSource(Protocol):
    """Where the registry reads tasks from and writes category changes to.

    Both ``TaskService`` (in-process) and ``TaskApiClient`` (over HTTP) fit.
    """

    def list_tasks(self) -> Sequence[Task]: ...

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task: ...


def _pick_color(color: str | None, name: str, fallback: str | None = None) -> str:
    if color and is_color(color):
        return color.strip().lower()
    return fallback or hash_color(name)


def _encoded_color(tasks: Iterable[Task], name: str) -> str | None:
    for task in tasks:
        if not task.category:
            continue
        found, color = decode(task.category)
        if found == name and color:
            return color
    return None


class TaxonomyRegistry:
    """Colored, deduplicated view of the tags and categories used by tasks.

    Tags and categories are not stored on their own; they are mined from the
    free-text task fields. The registry additionally remembers names the user
    introduced (``add_tag``/``add_category``) and the colors chosen for them.
    Category renames and deletes are propagated back onto every referencing
    task, one independent update per task.
    """

    def __init__(
        self,
        source: TaskSource,
        *,
        categories: Iterable[tuple[str, str]] | None = None,
        tags: Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self._source = source
        self._logger = get_json_logger("tasktracker.taxonomy")
        self._categories: dict[str, str] = {}
        self._tags: dict[str, str] = {}
        for name, color in categories or ():
            self.add_category(name, color)
        for name, color in tags or ():
            self.add_tag(name, color)

    # ----------------------------
    # Colors
    # ----------------------------
    def get_color(self, name: str) -> str:
        if name in self._categories:
            return self._categories[name]
        if name in self._tags:
            return self._tags[name]
        return hash_color(name)

    def category_color(self, value: str | None) -> str:
        """Color for a raw ``category`` field value (plain or encoded)."""
        if not value or not value.strip():
            return NO_CATEGORY_COLOR
        name, color = decode(value)
        return color or self.get_color(name)

    # ----------------------------
    # Scans
    # ----------------------------
    def _tasks(self, tasks: Iterable[Task] | None) -> Iterable[Task]:
        return tasks if tasks is not None else self._source.list_tasks()

    def iter_tags(self, tasks: Iterable[Task] | None = None) -> Iterator[Tag]:
        """Yield every distinct tag; each call rescans the task collection."""
        found: dict[str, str | None] = {}
        for task in self._tasks(tasks):
            for name, color in split_tags(task.tags):
                if found.get(name) is None:
                    found[name] = color
        for name, color in found.items():
            yield Tag(name=name, color=color or self._tags.get(name) or hash_color(name))
        for name, color in list(self._tags.items()):
            if name not in found:
                yield Tag(name=name, color=color)

    def iter_categories(self, tasks: Iterable[Task] | None = None) -> Iterator[Category]:
        """Yield every distinct category with its usage count."""
        found: dict[str, list[Any]] = {}
        for task in self._tasks(tasks):
            if not task.category or not task.category.strip():
                continue
            name, color = decode(task.category)
            entry = found.setdefault(name, [None, 0])
            if entry[0] is None:
                entry[0] = color
            entry[1] += 1
        for name, (color, count) in found.items():
            resolved = color or self._categories.get(name) or hash_color(name)
            yield Category(name=name, color=resolved, count=count)
        for name, color in list(self._categories.items()):
            if name not in found:
                yield Category(name=name, color=color, count=0)

    def list_tags(self, tasks: Iterable[Task] | None = None) -> list[Tag]:
        return list(self.iter_tags(tasks))

    def list_categories(self, tasks: Iterable[Task] | None = None) -> list[Category]:
        return list(self.iter_categories(tasks))

    def registered_categories(self) -> list[tuple[str, str]]:
        return list(self._categories.items())

    def registered_tags(self) -> list[tuple[str, str]]:
        return list(self._tags.items())

    # ----------------------------
    # Local registration
    # ----------------------------
    def add_tag(self, name: str, color: str | None = None) -> Tag:
        name = name.strip()
        if not name:
            raise ValueError("tag name must be non-empty")
        if name not in self._tags:
            self._tags[name] = _pick_color(color, name)
        return Tag(name=name, color=self._tags[name])

    def add_category(self, name: str, color: str | None = None) -> Category:
        name = name.strip()
        if not name:
            raise ValueError("category name must be non-empty")
        if name not in self._categories:
            self._categories[name] = _pick_color(color, name)
        return Category(name=name, color=self._categories[name])

    # ----------------------------
    # Propagation sweeps
    # ----------------------------
    def rename_category(self, old: str, new: str, new_color: str | None = None) -> int:
        """Rename a category locally and on every task that uses it.

        The new color is ``new_color`` when valid, else the color registered
        for ``old``, else the first color encoded on a task using ``old``.
        Returns the number of task updates that succeeded. Failed updates are
        logged and skipped; earlier updates are not rolled back.
        """
        old = old.strip()
        new = new.strip()
        if not new:
            raise ValueError("category name must be non-empty")
        tasks = list(self._source.list_tasks())
        fallback = self._categories.get(old) or _encoded_color(tasks, old)
        color = _pick_color(new_color, new, fallback)
        renamed: dict[str, str] = {}
        for name, existing in self._categories.items():
            if name == old:
                renamed[new] = color
            elif name != new:
                renamed[name] = existing
        renamed.setdefault(new, color)
        self._categories = renamed
        return self._sweep(old, encode(new, color), op="rename", tasks=tasks)

    def delete_category(self, name: str) -> int:
        """Forget a category and clear it from every task that uses it."""
        name = name.strip()
        self._categories.pop(name, None)
        return self._sweep(name, None, op="delete")

    def _sweep(
        self,
        name: str,
        replacement: str | None,
        *,
        op: str,
        tasks: Iterable[Task] | None = None,
    ) -> int:
        metrics = get_metrics()
        updated = 0
        for task in self._tasks(tasks):
            if not task.category or decode(task.category)[0] != name:
                continue
            try:
                self._source.update_task(task.id, {"category": replacement})
                updated += 1
            except TaskTrackerError as exc:
                self._logger.warning(
                    "category sweep update failed",
                    extra={
                        "event": "category_sweep_error",
                        "task_id": task.id,
                        "category": name,
                        "metadata": {"op": op, "error": exc.message[:200]},
                    },
                )
                metrics.increment("category_sweep_errors", {"op": op})
        self._logger.info(
            "category sweep done",
            extra={
                "event": "category_sweep",
                "category": name,
                "attributes": {"op": op, "updated": updated},
            },
        )
        return updated


__all__ = ["Category", "Tag", "TaskSource", "TaxonomyRegistry"]
