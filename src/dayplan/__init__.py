"""Deterministic day planner for a personal task dashboard."""

from .allocator import allocate
from .balancer import fill_today, select_focus_tasks
from .eligibility import split_eligible
from .normalize import normalize_task, normalize_tasks
from .ordering import order_tasks
from .planner import plan_day
from .schema import (
    Assignment,
    ConfigurationError,
    FocusPick,
    ScheduleOptions,
    ScheduleResult,
    Task,
    TimeBlock,
)

__all__ = [
    "Assignment",
    "ConfigurationError",
    "FocusPick",
    "ScheduleOptions",
    "ScheduleResult",
    "Task",
    "TimeBlock",
    "allocate",
    "fill_today",
    "normalize_task",
    "normalize_tasks",
    "order_tasks",
    "plan_day",
    "select_focus_tasks",
    "split_eligible",
]
