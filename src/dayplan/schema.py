"""
Data schemas for the day planner.

Defines:
- Enumerations for status, priority, energy, context and category
- Task: canonical, immutable snapshot of one task record
- TimeBlock: a fixed interval of today available for placement
- Assignment / IneligibleTask / ScheduleResult: planning output
- ScheduleOptions: per-call scheduling policy
- FocusPick: one selection made by the category balancer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when caller-supplied blocks or options are invalid."""


class Status(str, Enum):
    INBOX = "Inbox"
    TODAY = "Today"
    THIS_WEEK = "This Week"
    SCHEDULED = "Scheduled"
    DONE = "Done"
    SOMEDAY = "Someday"


class Priority(str, Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @property
    def rank(self) -> int:
        return int(self.value[1])


class Energy(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Context(str, Enum):
    DEEP_WORK = "Deep Work"
    MEETINGS = "Meetings"
    ADMIN = "Admin"
    QUICK_WINS = "Quick Wins"


class Category(str, Enum):
    WORK = "Work"
    PERSONAL = "Personal"
    PROJECT = "Project"


# Block kind "any" accepts every context.
ANY_KIND = "any"

DEFAULT_TASK_NAME = "(untitled)"
DEFAULT_DURATION_MINUTES = 30
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 8 * 60

# Project label -> coarse category. Unmapped projects count as Work.
PROJECT_CATEGORIES: Dict[str, Category] = {
    "crm dashboard": Category.WORK,
    "stem sales": Category.WORK,
    "business development": Category.WORK,
    "work": Category.WORK,
    "personal": Category.PERSONAL,
    "home improvement": Category.PERSONAL,
    "learning": Category.PERSONAL,
    "health": Category.PERSONAL,
    "command center": Category.PROJECT,
    "project": Category.PROJECT,
}


def project_category(project: Optional[str]) -> Category:
    if not project:
        return Category.WORK
    return PROJECT_CATEGORIES.get(project.strip().lower(), Category.WORK)


@dataclass(frozen=True)
class Task:
    """
    Canonical task snapshot consumed by the planning core.

    The mutable source record lives in the external store; this value is
    rebuilt from it on every planning call.
    """

    id: str
    name: str = DEFAULT_TASK_NAME
    status: Status = Status.INBOX
    priority: Priority = Priority.P3
    energy: Energy = Energy.MEDIUM
    context: Context = Context.ADMIN
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    due_date: Optional[date] = None
    project: Optional[str] = None
    auto_schedule: bool = False

    # Ids of tasks that must be Done first, in input order.
    blocked_by: Tuple[str, ...] = ()

    @property
    def category(self) -> Category:
        return project_category(self.project)


@dataclass(frozen=True)
class TimeBlock:
    """A single-day interval; `kind` is a Context value or "any"."""

    start: datetime
    end: datetime
    kind: str = ANY_KIND

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def accepts(self, task: Task) -> bool:
        return self.kind == ANY_KIND or self.kind == task.context.value


@dataclass(frozen=True)
class ScheduleOptions:
    """
    Scheduling policy for one invocation.

    - ignore_auto_flag: consider tasks whose auto-schedule flag is off
    - include_already_scheduled: allow Scheduled tasks to be re-planned
    - quick_win_threshold_minutes: max duration of a quick win
    - chunk_ceiling_minutes: max minutes placed for a single task
    - sprinkle_quick_wins: insert one quick win after each long task
    - match_block_kind: typed blocks only accept tasks of that context
    - match_energy: High energy before the afternoon cutoff, Low energy after it
    - buffer_minutes: gap left after each placement (never past a block end)
    """

    ignore_auto_flag: bool = False
    include_already_scheduled: bool = False
    quick_win_threshold_minutes: int = 5
    chunk_ceiling_minutes: int = 90
    sprinkle_quick_wins: bool = False
    match_block_kind: bool = False
    match_energy: bool = False
    buffer_minutes: int = 0


@dataclass(frozen=True)
class Assignment:
    task_id: str
    name: str
    start: datetime
    end: datetime
    block_index: int
    minutes: int
    chunked: bool = False
    quick_win: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "block_index": self.block_index,
            "minutes": self.minutes,
            "chunked": self.chunked,
            "quick_win": self.quick_win,
        }


@dataclass(frozen=True)
class IneligibleTask:
    task: Task
    reasons: Tuple[str, ...]


@dataclass
class ScheduleResult:
    """Outcome of one planning call. Eligible tasks end up in exactly one
    of `assignments` / `unscheduled`; the rest are in `ineligible`."""

    day: Optional[date]
    assignments: List[Assignment] = field(default_factory=list)
    unscheduled: List[Task] = field(default_factory=list)
    ineligible: List[IneligibleTask] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.isoformat() if self.day else None,
            "assignments": [a.to_dict() for a in self.assignments],
            "unscheduled": [
                {"task_id": t.id, "name": t.name} for t in self.unscheduled
            ],
            "ineligible": [
                {"task_id": i.task.id, "name": i.task.name, "reasons": list(i.reasons)}
                for i in self.ineligible
            ],
        }


@dataclass(frozen=True)
class FocusPick:
    task: Task
    tier: Priority
    category: Category
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task.id,
            "name": self.task.name,
            "priority": self.tier.value,
            "category": self.category.value,
            "reason": self.reason,
        }
