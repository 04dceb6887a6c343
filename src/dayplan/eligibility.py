"""
Eligibility rules for automatic placement.

Every rule is evaluated for every task so that all applicable reasons
are reported together, in a fixed order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .schema import IneligibleTask, ScheduleOptions, Status, Task

logger = logging.getLogger(__name__)


REASON_AUTO_DISABLED = "auto-schedule disabled"
REASON_STATUS_EXCLUDED = "status excludes it from planning"
REASON_ALREADY_SCHEDULED = "already scheduled"
REASON_NO_DURATION = "no duration"
REASON_BLOCKED = "blocked by incomplete dependency"
REASON_UNSUPPORTED_STATUS = "unsupported status"

ACTIVE_STATUSES = (Status.INBOX, Status.TODAY, Status.THIS_WEEK)
EXCLUDED_STATUSES = (Status.DONE, Status.SOMEDAY)


def index_tasks(tasks: Sequence[Task]) -> Dict[str, Task]:
    """Map id -> task. The first occurrence of a duplicated id wins."""
    index: Dict[str, Task] = {}
    for task in tasks:
        index.setdefault(task.id, task)
    return index


def find_dependency_cycles(tasks: Sequence[Task]) -> Dict[str, Tuple[str, ...]]:
    """
    Find tasks that sit on a `blocked_by` cycle.

    Returns a mapping from each such task id to the ids of its cycle
    (strongly connected component), in input order. Self-references
    count as cycles. References to unknown ids are ignored here.
    """
    index = index_tasks(tasks)
    order = list(index)
    edges: Dict[str, List[str]] = {
        tid: [b for b in index[tid].blocked_by if b in index] for tid in order
    }

    # Iterative Tarjan SCC.
    disc: Dict[str, int] = {}
    low: Dict[str, int] = {}
    stack: List[str] = []
    on_stack = set()
    counter = 0
    cycles: Dict[str, Tuple[str, ...]] = {}

    for root in order:
        if root in disc:
            continue
        disc[root] = low[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work: List[Tuple[str, Iterator[str]]] = [(root, iter(edges[root]))]

        while work:
            node, successors = work[-1]
            descended = False
            for nxt in successors:
                if nxt not in disc:
                    disc[nxt] = low[nxt] = counter
                    counter += 1
                    stack.append(nxt)
                    on_stack.add(nxt)
                    work.append((nxt, iter(edges[nxt])))
                    descended = True
                    break
                if nxt in on_stack:
                    low[node] = min(low[node], disc[nxt])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])

            if low[node] == disc[node]:
                component = set()
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.add(member)
                    if member == node:
                        break
                if len(component) > 1 or node in edges[node]:
                    members = tuple(tid for tid in order if tid in component)
                    for member in component:
                        cycles[member] = members

    if cycles:
        logger.warning(
            "Dependency cycle(s) detected; %d task(s) treated as blocked: %s",
            len(cycles),
            ", ".join(tid for tid in order if tid in cycles),
        )
    return cycles


def _blocking_labels(
    task: Task,
    index: Mapping[str, Task],
    cycles: Mapping[str, Tuple[str, ...]],
) -> List[str]:
    labels: List[str] = []
    for blocker_id in task.blocked_by:
        blocker = index.get(blocker_id)
        if blocker is None:
            logger.warning("Task %r: missing blocker %r assumed incomplete", task.id, blocker_id)
            labels.append("%s (missing)" % blocker_id)
        elif blocker.status != Status.DONE:
            labels.append(blocker.name)
    if task.id in cycles:
        labels.append("dependency cycle via %s" % ", ".join(cycles[task.id]))
    return labels


def check_eligibility(
    task: Task,
    options: Optional[ScheduleOptions] = None,
    index: Optional[Mapping[str, Task]] = None,
    cycles: Optional[Mapping[str, Tuple[str, ...]]] = None,
) -> List[str]:
    """
    Return the reasons `task` may not be planned; empty means eligible.

    `index` resolves `blocked_by` ids; ids it does not contain are
    treated as still blocking. `cycles` comes from
    `find_dependency_cycles`.
    """
    options = options or ScheduleOptions()
    index = index if index is not None else {}
    cycles = cycles or {}

    reasons: List[str] = []
    if not options.ignore_auto_flag and not task.auto_schedule:
        reasons.append(REASON_AUTO_DISABLED)
    if task.status in EXCLUDED_STATUSES:
        reasons.append(REASON_STATUS_EXCLUDED)
    if task.status == Status.SCHEDULED and not options.include_already_scheduled:
        reasons.append(REASON_ALREADY_SCHEDULED)
    if task.duration_minutes <= 0:
        reasons.append(REASON_NO_DURATION)

    blocking = _blocking_labels(task, index, cycles)
    if blocking:
        reasons.append("%s: %s" % (REASON_BLOCKED, ", ".join(blocking)))

    if not reasons:
        active = task.status in ACTIVE_STATUSES or (
            options.include_already_scheduled and task.status == Status.SCHEDULED
        )
        if not active:
            reasons.append(REASON_UNSUPPORTED_STATUS)
    return reasons


def is_blocked(
    task: Task,
    index: Mapping[str, Task],
    cycles: Optional[Mapping[str, Tuple[str, ...]]] = None,
) -> bool:
    return bool(_blocking_labels(task, index, cycles or {}))


def split_eligible(
    tasks: Sequence[Task],
    options: Optional[ScheduleOptions] = None,
) -> Tuple[List[Task], List[IneligibleTask]]:
    """Partition tasks into (eligible, ineligible-with-reasons), keeping order."""
    options = options or ScheduleOptions()
    index = index_tasks(tasks)
    cycles = find_dependency_cycles(tasks)

    eligible: List[Task] = []
    ineligible: List[IneligibleTask] = []
    for task in tasks:
        reasons = check_eligibility(task, options, index, cycles)
        if reasons:
            ineligible.append(IneligibleTask(task=task, reasons=tuple(reasons)))
        else:
            eligible.append(task)

    logger.info(
        "Eligibility: %d eligible, %d ineligible of %d task(s)",
        len(eligible),
        len(ineligible),
        len(tasks),
    )
    return eligible, ineligible
