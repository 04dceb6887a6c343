"""
Plan metrics.

Summarizes a ScheduleResult against the blocks it was planned into:
- counts per outcome
- scheduled vs. available minutes, overall and per block
- scheduled minutes by priority tier

Also groups open tasks into the morning-brief buckets.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from .schema import Context, Priority, ScheduleResult, Status, Task, TimeBlock


def summarize_schedule(
    result: ScheduleResult,
    blocks: Sequence[TimeBlock],
    tasks: Sequence[Task] = (),
) -> Dict[str, object]:
    """
    Compute plan metrics.

    `tasks` (normalized) is only needed for the per-priority breakdown;
    assignments whose task is not found there are counted under "P?".

    Returns a dict with:
    - n_assigned, n_unscheduled, n_ineligible
    - scheduled_minutes, capacity_minutes, utilization (0..1)
    - block_utilization: list aligned with `blocks`
    - minutes_by_priority: {"P1": ..., ...}
    - unscheduled_minutes: total duration left unplaced
    """
    capacity = np.asarray([b.minutes for b in blocks], dtype=float)
    used = np.zeros(len(blocks), dtype=float)
    for a in result.assignments:
        if 0 <= a.block_index < len(blocks):
            used[a.block_index] += a.minutes

    with np.errstate(divide="ignore", invalid="ignore"):
        per_block = np.where(capacity > 0, used / capacity, 0.0)

    total_capacity = float(capacity.sum())
    total_used = float(used.sum())
    utilization = total_used / total_capacity if total_capacity > 0 else 0.0

    priority_of = {t.id: t.priority.value for t in tasks}
    by_priority: Dict[str, int] = {p.value: 0 for p in Priority}
    for a in result.assignments:
        key = priority_of.get(a.task_id, "P?")
        by_priority[key] = by_priority.get(key, 0) + a.minutes

    unscheduled = np.asarray([t.duration_minutes for t in result.unscheduled], dtype=float)

    block_utilization: List[float] = [round(float(u), 4) for u in per_block]
    return {
        "n_assigned": len(result.assignments),
        "n_unscheduled": len(result.unscheduled),
        "n_ineligible": len(result.ineligible),
        "scheduled_minutes": int(total_used),
        "capacity_minutes": int(total_capacity),
        "utilization": round(utilization, 4),
        "block_utilization": block_utilization,
        "minutes_by_priority": by_priority,
        "unscheduled_minutes": int(unscheduled.sum()) if unscheduled.size else 0,
    }


# Statuses a morning brief draws from.
BRIEF_STATUSES = (Status.INBOX, Status.TODAY, Status.THIS_WEEK, Status.SCHEDULED)

DEFAULT_BUCKET_CAPS = {"high": 6, "med": 6, "low": 6, "quick": 8}


def daily_plan_buckets(
    tasks: Sequence[Task],
    quick_win_threshold_minutes: int = 5,
    caps: Optional[Dict[str, int]] = None,
) -> Dict[str, object]:
    """
    Group open tasks into a morning brief.

    - high: Today or P1
    - med: P2 / P3 not already high
    - low: everything else
    - quick: any open task of at most `quick_win_threshold_minutes`
      (it may also sit in one of the tiers above)

    Buckets are shortest first (stable) and capped. `start` is the
    recommended first task: a Deep Work task from high, else the first
    of high, quick, med, low. `estimates` sums minutes per bucket.
    """
    caps = {**DEFAULT_BUCKET_CAPS, **(caps or {})}
    open_tasks = [t for t in tasks if t.status in BRIEF_STATUSES]

    high = [t for t in open_tasks if t.status == Status.TODAY or t.priority == Priority.P1]
    high_ids = {id(t) for t in high}
    med = [
        t
        for t in open_tasks
        if id(t) not in high_ids and t.priority in (Priority.P2, Priority.P3)
    ]
    med_ids = {id(t) for t in med}
    low = [t for t in open_tasks if id(t) not in high_ids and id(t) not in med_ids]
    quick = [t for t in open_tasks if t.duration_minutes <= quick_win_threshold_minutes]

    buckets: Dict[str, List[Task]] = {}
    for name, members in (("high", high), ("med", med), ("low", low), ("quick", quick)):
        members = sorted(members, key=lambda t: t.duration_minutes)
        buckets[name] = members[: max(caps[name], 0)]

    deep = [t for t in buckets["high"] if t.context == Context.DEEP_WORK]
    start = next(
        iter(deep + buckets["high"] + buckets["quick"] + buckets["med"] + buckets["low"]),
        None,
    )

    estimates = {
        name: int(np.sum([t.duration_minutes for t in members], dtype=int))
        for name, members in buckets.items()
    }
    return {**buckets, "start": start, "estimates": estimates}
