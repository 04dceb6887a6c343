"""
Day planning pipeline.

records -> normalize -> eligibility -> ordering -> allocation -> result.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from .allocator import allocate, validate_blocks, validate_options
from .eligibility import split_eligible
from .normalize import normalize_tasks
from .ordering import order_tasks
from .schema import ScheduleOptions, ScheduleResult, TimeBlock

logger = logging.getLogger(__name__)


def plan_day(
    records: Iterable[Any],
    blocks: Sequence[TimeBlock],
    options: Optional[ScheduleOptions] = None,
    day: Optional[date] = None,
) -> ScheduleResult:
    """
    Plan one day.

    `records` may be raw mappings or Task values. `day` defaults to the
    date of the earliest block (None when there are no blocks).

    Raises ConfigurationError for invalid blocks or options before any
    task is looked at.
    """
    options = options or ScheduleOptions()
    validate_options(options)
    ordered_blocks = validate_blocks(blocks)
    if day is None and ordered_blocks:
        day = ordered_blocks[0][1].start.date()

    tasks = normalize_tasks(records)
    eligible, ineligible = split_eligible(tasks, options)
    assignments, unscheduled = allocate(order_tasks(eligible), blocks, options)

    logger.info(
        "Plan for %s: %d assigned, %d unscheduled, %d ineligible",
        day.isoformat() if day else "(no day)",
        len(assignments),
        len(unscheduled),
        len(ineligible),
    )
    return ScheduleResult(
        day=day,
        assignments=assignments,
        unscheduled=unscheduled,
        ineligible=ineligible,
    )
