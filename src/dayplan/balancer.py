"""
Category balancer for the "Today" focus slate.

Picks up to N tasks: every P1 candidate first (criticality beats
balance), then one task per step rotating Work -> Personal -> Project,
preferring the highest priority tier within the desired category.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Sequence

from .eligibility import find_dependency_cycles, index_tasks, is_blocked
from .normalize import normalize_tasks
from .schema import Category, FocusPick, Priority, Status, Task

logger = logging.getLogger(__name__)

DEFAULT_FOCUS_SLOTS = 3

CATEGORY_ROTATION = (Category.WORK, Category.PERSONAL, Category.PROJECT)
ROTATION_TIERS = (Priority.P2, Priority.P3, Priority.P4)

REASON_P1_FIRST = "P1 first"
REASON_ROUND_ROBIN = "round-robin"
REASON_FALLBACK = "fallback"


def select_focus_tasks(candidates: Sequence[Task], needed: int) -> List[FocusPick]:
    """
    Select up to `needed` tasks from `candidates` (input order is the
    tie-break everywhere). Returns fewer picks when the pool runs out.
    """
    if needed <= 0:
        return []

    picks: List[FocusPick] = []

    for task in candidates:
        if len(picks) >= needed:
            return picks
        if task.priority == Priority.P1:
            picks.append(FocusPick(task, Priority.P1, task.category, REASON_P1_FIRST))

    queues: Dict[Priority, Dict[Category, Deque[Task]]] = {
        tier: {cat: deque() for cat in CATEGORY_ROTATION} for tier in ROTATION_TIERS
    }
    for task in candidates:
        if task.priority in queues:
            queues[task.priority][task.category].append(task)

    step = 0
    while len(picks) < needed:
        desired = CATEGORY_ROTATION[step % len(CATEGORY_ROTATION)]
        pick = None

        for tier in ROTATION_TIERS:
            queue = queues[tier][desired]
            if queue:
                pick = FocusPick(queue.popleft(), tier, desired, REASON_ROUND_ROBIN)
                break

        if pick is None:
            for tier in ROTATION_TIERS:
                for cat in CATEGORY_ROTATION:
                    if queues[tier][cat]:
                        pick = FocusPick(queues[tier][cat].popleft(), tier, cat, REASON_FALLBACK)
                        break
                if pick is not None:
                    break

        if pick is None:
            break
        picks.append(pick)
        step += 1

    logger.debug(
        "Focus selection: %d of %d slot(s) filled from %d candidate(s)",
        len(picks),
        needed,
        len(candidates),
    )
    return picks


def fill_today(
    records: Iterable[Any],
    target: int = DEFAULT_FOCUS_SLOTS,
) -> List[FocusPick]:
    """
    Top the Today list up to `target` tasks.

    Candidates are tasks that are not Done, not already Today and not
    blocked by an incomplete dependency.
    """
    tasks = normalize_tasks(records)
    today_count = sum(1 for t in tasks if t.status == Status.TODAY)
    needed = target - today_count
    if needed <= 0:
        logger.info("Today already has %d task(s); nothing to promote", today_count)
        return []

    index = index_tasks(tasks)
    cycles = find_dependency_cycles(tasks)
    candidates = [
        t
        for t in tasks
        if t.status not in (Status.DONE, Status.TODAY) and not is_blocked(t, index, cycles)
    ]

    picks = select_focus_tasks(candidates, needed)
    logger.info(
        "Promoting %d task(s) to Today (%d needed, %d candidate(s))",
        len(picks),
        needed,
        len(candidates),
    )
    return picks
