"""
Placement order for eligible tasks.

Ascending on: priority, due date (undated last), status, longest first.
Python's sort is stable, so remaining ties keep input order.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Tuple

from .schema import Status, Task

_STATUS_RANK = {
    Status.TODAY: 0,
    Status.THIS_WEEK: 1,
    Status.SCHEDULED: 2,
}
_OTHER_STATUS_RANK = 3


def ordering_key(task: Task) -> Tuple[int, bool, date, int, int]:
    # (False, date) sorts before (True, date.max) -> undated tasks last.
    due_missing = task.due_date is None
    return (
        task.priority.rank,
        due_missing,
        task.due_date or date.max,
        _STATUS_RANK.get(task.status, _OTHER_STATUS_RANK),
        -task.duration_minutes,
    )


def order_tasks(tasks: Iterable[Task]) -> List[Task]:
    return sorted(tasks, key=ordering_key)
