from __future__ import annotations

import datetime as _dt
import sys
from typing import TextIO

from tasktracker.models.task import PRIORITY_LABELS, STATUS_LABELS, Task
from tasktracker.query.filters import Page
from tasktracker.query.summary import DashboardSummary
from tasktracker.settings.store import ClientSettings
from tasktracker.taxonomy.codec import decoded_name, split_tags
from tasktracker.taxonomy.registry import Category, Tag, TaxonomyRegistry

# Primary color per theme mode
THEME_ACCENTS = {"light": "#1976d2", "dark": "#90caf9"}
DASHBOARD_PREVIEW = 3


def format_due(due: _dt.date | None) -> str:
    if due is None:
        return "No due date"
    return f"{due:%b} {due.day}, {due.year}"


def _rgb(hex_color: str) -> tuple[int, int, int]:
    value = hex_color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


class CardRenderer:
    """Plain-text rendering of tasks, pages and the dashboard.

    Colors are emitted as 24-bit ANSI escapes only when ``color`` is true.
    """

    def __init__(
        self,
        registry: TaxonomyRegistry,
        settings: ClientSettings,
        *,
        out: TextIO | None = None,
        color: bool | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._out = out or sys.stdout
        if color is None:
            try:
                color = self._out.isatty()
            except Exception:
                color = False
        self._color = bool(color)

    def _paint(self, text: str, hex_color: str) -> str:
        if not self._color:
            return text
        r, g, b = _rgb(hex_color)
        return f"\x1b[38;2;{r};{g};{b}m{text}\x1b[0m"

    def _heading(self, text: str) -> str:
        return self._paint(text, THEME_ACCENTS[self._settings.theme_mode])

    def println(self, text: str = "") -> None:
        self._out.write(text + "\n")

    def banner(self, message: str, *, severity: str = "error") -> None:
        self.println(f"[{severity}] {message}")

    def card(self, task: Task) -> None:
        self.println(self._heading(task.title))
        self.println(f"  id: {task.id}")
        if task.description:
            for line in task.description.splitlines():
                self.println(f"  {line}")
        self.println(
            f"  {STATUS_LABELS[task.status]} | Priority: {PRIORITY_LABELS[task.priority]}"
            f" | {format_due(task.due_date)}"
        )
        if task.category:
            name = decoded_name(task.category)
            painted = self._paint(name, self._registry.category_color(task.category))
            self.println(f"  Category: {painted}")
        tags = split_tags(task.tags)
        if tags:
            rendered = [
                self._paint(name, color or self._registry.get_color(name)) for name, color in tags
            ]
            self.println(f"  Tags: {', '.join(rendered)}")
        self.println()

    def page(self, page: Page[Task]) -> None:
        if not page.items:
            self.banner(
                "No tasks found. Try adjusting your filters or create a new task.",
                severity="info",
            )
        for task in page.items:
            self.card(task)
        if page.page_count > 1:
            self.println(f"Page {page.page} of {page.page_count} ({page.total} tasks)")

    def tags(self, tags: list[Tag]) -> None:
        if not tags:
            self.banner("No tags yet.", severity="info")
        for tag in tags:
            self.println(f"{self._paint(tag.name, tag.color)}  {tag.color}")

    def categories(self, categories: list[Category]) -> None:
        if not categories:
            self.banner("No categories yet.", severity="info")
        for cat in categories:
            self.println(f"{self._paint(cat.name, cat.color)}  {cat.color}  ({cat.count})")

    def dashboard(self, summary: DashboardSummary) -> None:
        self.println(self._heading("Task Dashboard"))
        self.println(f"  Total Tasks: {summary.total}")
        self.println(f"  To Do: {summary.by_status.get('TODO', 0)}")
        self.println(f"  In Progress: {summary.by_status.get('IN_PROGRESS', 0)}")
        self.println(f"  Completion Rate: {summary.completion_rate}%")
        self.println()
        self._preview("High Priority Tasks", summary.high_priority, "No high priority tasks")
        self._preview("Due Soon", summary.due_soon, "No tasks due in the next 3 days")

    def _preview(self, title: str, tasks: list[Task], empty: str) -> None:
        suffix = f" ({len(tasks)})" if tasks else ""
        self.println(self._heading(f"{title}{suffix}"))
        if not tasks:
            self.banner(empty, severity="info")
            self.println()
            return
        for task in tasks[:DASHBOARD_PREVIEW]:
            self.card(task)
        if len(tasks) > DASHBOARD_PREVIEW:
            self.println(f"  ... and {len(tasks) - DASHBOARD_PREVIEW} more")
            self.println()


__all__ = ["CardRenderer", "format_due"]
