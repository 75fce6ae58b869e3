from __future__ import annotations

import datetime as _dt
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from tasktracker.models.task import STATUSES, Task

DUE_SOON_DAYS = 3


@dataclass(slots=True)
class DashboardSummary:
    total: int
    by_status: dict[str, int]
    completion_rate: int
    high_priority: list[Task] = field(default_factory=list)
    due_soon: list[Task] = field(default_factory=list)


def summarize(tasks: Iterable[Task], today: _dt.date | None = None) -> DashboardSummary:
    """Counts per status, completion percentage, urgent and upcoming tasks.

    Due soon means due between today and today + 3 days, both inclusive.
    """
    items = list(tasks)
    day = today or _dt.date.today()
    horizon = day + _dt.timedelta(days=DUE_SOON_DAYS)
    by_status = {status: 0 for status in STATUSES}
    for task in items:
        by_status[task.status] = by_status.get(task.status, 0) + 1
    total = len(items)
    rate = math.floor(by_status["DONE"] * 100 / total + 0.5) if total else 0
    return DashboardSummary(
        total=total,
        by_status=by_status,
        completion_rate=rate,
        high_priority=[t for t in items if t.priority == 1],
        due_soon=[t for t in items if t.due_date is not None and day <= t.due_date <= horizon],
    )


__all__ = ["DashboardSummary", "summarize", "DUE_SOON_DAYS"]
