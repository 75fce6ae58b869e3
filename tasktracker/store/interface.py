from __future__ import annotations

from typing import Any, Protocol

from tasktracker.models.task import Task, TaskQuery


class TaskStore(Protocol):
    """Minimal persistence interface for task rows.

    Implementations return ``None``/``False`` for unknown ids and raise
    ``StoreError`` for any failure of the underlying engine.
    """

    def list_tasks(self, query: TaskQuery) -> list[Task]:
        """Tasks exactly matching the query, most recently updated first."""

    def get_task(self, task_id: str) -> Task | None:
        """Fetch one task by id."""

    def create_task(self, fields: dict[str, Any]) -> Task:
        """Insert a row from fully-defaulted fields; id and timestamps are assigned here."""

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        """Apply changes to one row and refresh its ``updated_at``."""

    def delete_task(self, task_id: str) -> bool:
        """Hard-delete one row. Returns False when nothing matched."""

    def ping(self) -> None:
        """Raise ``StoreError`` when the engine cannot be reached."""


__all__ = ["TaskStore"]
