"""
Task normalization.

Turns loosely-typed task records into canonical `Task` values.

Every logical field has an explicit, ordered alias tuple: the store's
column label first, then legacy/programmatic aliases. The first alias
with a non-empty value wins; otherwise the field default applies.

Nothing in this module raises on malformed input.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .schema import (
    DEFAULT_DURATION_MINUTES,
    DEFAULT_TASK_NAME,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    Context,
    Energy,
    Priority,
    Status,
    Task,
    project_category,
)

logger = logging.getLogger(__name__)


FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "Task ID", "task_id", "taskId"),
    "name": ("Task Name", "name", "title"),
    "status": ("Status", "status"),
    "priority": ("Priority", "priority"),
    "energy": ("Energy Level", "energy", "energyLevel"),
    "context": ("Context", "context"),
    "duration": (
        "Time Estimate",
        "durationMinutes",
        "duration_minutes",
        "timeEstimate",
        "time",
        "estimate",
    ),
    "due_date": ("Due Date", "dueDate", "due_date", "due"),
    "project": ("Project", "project"),
    "auto_schedule": ("Auto-Schedule", "autoSchedule", "auto_schedule", "auto"),
    "blocked_by": ("Blocked By", "blockedBy", "blocked_by", "blockedByIds"),
}

TRUTHY_STRINGS = {"true", "1", "yes", "y", "on"}

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_PRIORITY_RE = re.compile(r"^p?([1-4])(?!\d)")

_STATUS_VALUES: Dict[str, Status] = {
    "inbox": Status.INBOX,
    "today": Status.TODAY,
    "thisweek": Status.THIS_WEEK,
    "scheduled": Status.SCHEDULED,
    "done": Status.DONE,
    "someday": Status.SOMEDAY,
}

_PRIORITY_NAMES: Dict[str, Priority] = {
    "critical": Priority.P1,
    "high": Priority.P2,
    "medium": Priority.P3,
    "low": Priority.P4,
}

_ENERGY_VALUES: Dict[str, Energy] = {
    "high": Energy.HIGH,
    "medium": Energy.MEDIUM,
    "med": Energy.MEDIUM,
    "low": Energy.LOW,
}

_CONTEXT_VALUES: Dict[str, Context] = {
    "deepwork": Context.DEEP_WORK,
    "meetings": Context.MEETINGS,
    "meeting": Context.MEETINGS,
    "admin": Context.ADMIN,
    "quickwins": Context.QUICK_WINS,
    "quickwin": Context.QUICK_WINS,
}


# --- Field lookup ------------------------------------------------------------


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def _fields_of(record: Mapping[str, Any]) -> Mapping[str, Any]:
    """Unwrap Airtable-style `{"id": ..., "fields": {...}}` records."""
    inner = record.get("fields")
    if isinstance(inner, Mapping):
        return inner
    return record


def lookup_field(
    record: Mapping[str, Any],
    field_name: str,
    default: Any = None,
) -> Any:
    """
    Return the first non-empty value among the aliases of `field_name`.

    Falls back to `default` when no alias is present.
    """
    for alias in FIELD_ALIASES[field_name]:
        value = record.get(alias)
        if not _is_empty(value):
            return value
    return default


# --- Scalar coercion ---------------------------------------------------------


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return False


def parse_date_only(value: Any) -> Optional[date]:
    """Parse a date from an ISO `YYYY-MM-DD` prefix. Returns None if invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None
    m = _DATE_PREFIX_RE.match(str(value).strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def clamp_minutes(
    value: Any,
    default: int = DEFAULT_DURATION_MINUTES,
    low: int = MIN_DURATION_MINUTES,
    high: int = MAX_DURATION_MINUTES,
) -> int:
    """
    Coerce a duration to a whole number of minutes in [low, high].

    Missing, non-numeric, non-finite or non-positive input yields `default`.
    """
    if isinstance(value, bool) or value is None:
        return default
    try:
        if isinstance(value, (int, float)):
            n = float(value)
        else:
            n = float(str(value).strip())
    except (OverflowError, ValueError):
        return default
    if not math.isfinite(n) or n <= 0:
        return default
    # Round half up, then clamp.
    return max(low, min(high, int(math.floor(n + 0.5))))


def _canon(value: Any) -> str:
    return re.sub(r"[\s_\-]", "", str(value)).lower()


def _coerce_status(value: Any) -> Status:
    if _is_empty(value):
        return Status.INBOX
    status = _STATUS_VALUES.get(_canon(value))
    if status is None:
        # Unknown statuses are never planned.
        logger.debug("Unrecognized status %r coerced to Someday", value)
        return Status.SOMEDAY
    return status


def _coerce_priority(value: Any) -> Priority:
    if isinstance(value, bool) or _is_empty(value):
        return Priority.P3
    if isinstance(value, (int, float)):
        # Range check first: huge ints overflow float conversion.
        if 1 <= value <= 4 and int(value) == value:
            return Priority("P%d" % int(value))
        return Priority.P3
    key = _canon(value)
    m = _PRIORITY_RE.match(key)
    if m:
        return Priority("P" + m.group(1))
    return _PRIORITY_NAMES.get(key, Priority.P3)


def _coerce_energy(value: Any) -> Energy:
    if _is_empty(value):
        return Energy.MEDIUM
    return _ENERGY_VALUES.get(_canon(value), Energy.MEDIUM)


def _coerce_context(value: Any) -> Context:
    if _is_empty(value):
        return Context.ADMIN
    return _CONTEXT_VALUES.get(_canon(value), Context.ADMIN)


def _coerce_text(value: Any) -> Optional[str]:
    # Linked-record / multi-select columns arrive as lists.
    if isinstance(value, (list, tuple)):
        value = next((v for v in value if not _is_empty(v)), None)
    if _is_empty(value):
        return None
    return str(value).strip()


def _coerce_ids(value: Any) -> Tuple[str, ...]:
    if _is_empty(value):
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    elif isinstance(value, (set, frozenset)):
        items = sorted(value, key=str)
    else:
        items = [value]

    ids: List[str] = []
    for item in items:
        if isinstance(item, Mapping):
            item = item.get("id")
        if _is_empty(item):
            continue
        ident = str(item).strip()
        if ident not in ids:
            ids.append(ident)
    return tuple(ids)


# --- Records -> Task ---------------------------------------------------------


def normalize_task(record: Any, fallback_id: str = "") -> Task:
    """
    Build a canonical Task from a raw record.

    An existing Task is returned unchanged. Anything that is not a
    mapping yields a default Task carrying `fallback_id`.
    """
    if isinstance(record, Task):
        return record
    if not isinstance(record, Mapping):
        logger.debug("Non-mapping task record %r replaced by defaults", type(record))
        return Task(id=fallback_id)

    fields = _fields_of(record)
    raw_id = record.get("id") if fields is not record else None
    if _is_empty(raw_id):
        raw_id = lookup_field(fields, "id")
    task_id = str(raw_id).strip() if not _is_empty(raw_id) else fallback_id

    name = _coerce_text(lookup_field(fields, "name")) or DEFAULT_TASK_NAME

    return Task(
        id=task_id,
        name=name,
        status=_coerce_status(lookup_field(fields, "status")),
        priority=_coerce_priority(lookup_field(fields, "priority")),
        energy=_coerce_energy(lookup_field(fields, "energy")),
        context=_coerce_context(lookup_field(fields, "context")),
        duration_minutes=clamp_minutes(lookup_field(fields, "duration")),
        due_date=parse_date_only(lookup_field(fields, "due_date")),
        project=_coerce_text(lookup_field(fields, "project")),
        auto_schedule=coerce_bool(lookup_field(fields, "auto_schedule", False)),
        blocked_by=_coerce_ids(lookup_field(fields, "blocked_by")),
    )


def normalize_tasks(records: Iterable[Any]) -> List[Task]:
    """
    Normalize a sequence of records, preserving order.

    Records without an id get a positional id ("#<index>").
    """
    tasks: List[Task] = []
    seen = set()
    for index, record in enumerate(records):
        task = normalize_task(record, fallback_id="#%d" % index)
        if task.id in seen:
            logger.warning("Duplicate task id %r at position %d", task.id, index)
        seen.add(task.id)
        tasks.append(task)
    logger.debug("Normalized %d task record(s)", len(tasks))
    return tasks


def task_to_record(task: Task) -> Dict[str, Any]:
    """Canonical record for a Task; normalizes back to an equal Task."""
    return {
        "id": task.id,
        "name": task.name,
        "status": task.status.value,
        "priority": task.priority.value,
        "energy": task.energy.value,
        "context": task.context.value,
        "durationMinutes": task.duration_minutes,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "project": task.project,
        "autoSchedule": task.auto_schedule,
        "blockedBy": list(task.blocked_by),
    }
