"""
Greedy first-fit block allocator.

Walks tasks in the given order and places each one at the current
cursor of the earliest block that still has room for it. Each block's
cursor only moves forward, so placements never overlap and never exceed
the block's capacity.

All mutable state (the cursors and the quick-win queue) is local to one
`allocate` call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .schema import (
    ANY_KIND,
    Assignment,
    ConfigurationError,
    Context,
    Energy,
    ScheduleOptions,
    Task,
    TimeBlock,
)

logger = logging.getLogger(__name__)

# A placed task at least this long may be followed by a sprinkled quick win.
QUICK_WIN_ANCHOR_MINUTES = 45

VALID_BLOCK_KINDS = {ANY_KIND} | {c.value for c in Context}

# With energy matching, High-energy work starts before this hour and
# Low-energy work at or after it. Medium fits anywhere.
ENERGY_CUTOFF_HOUR = 15


def fits_energy(energy: Energy, when: datetime) -> bool:
    if when.hour < ENERGY_CUTOFF_HOUR:
        return energy != Energy.LOW
    return energy != Energy.HIGH


@dataclass
class _BlockCursor:
    index: int
    block: TimeBlock
    cursor: datetime

    @property
    def remaining_minutes(self) -> float:
        return (self.block.end - self.cursor).total_seconds() / 60.0

    def admits(self, task: Task, minutes: int, options: ScheduleOptions) -> bool:
        if options.match_block_kind and not self.block.accepts(task):
            return False
        if options.match_energy and not fits_energy(task.energy, self.cursor):
            return False
        return self.remaining_minutes >= minutes

    def take(
        self,
        task: Task,
        minutes: int,
        chunked: bool,
        quick_win: bool,
        buffer_minutes: int = 0,
    ) -> Assignment:
        start = self.cursor
        end = start + timedelta(minutes=minutes)
        # The buffer is clipped at the block end and never holds a task.
        self.cursor = min(end + timedelta(minutes=buffer_minutes), self.block.end)
        return Assignment(
            task_id=task.id,
            name=task.name,
            start=start,
            end=end,
            block_index=self.index,
            minutes=minutes,
            chunked=chunked,
            quick_win=quick_win,
        )


def validate_options(options: ScheduleOptions) -> None:
    if options.quick_win_threshold_minutes < 0:
        raise ConfigurationError(
            "quick_win_threshold_minutes must be >= 0, got %r"
            % options.quick_win_threshold_minutes
        )
    if options.chunk_ceiling_minutes <= 0:
        raise ConfigurationError(
            "chunk_ceiling_minutes must be > 0, got %r" % options.chunk_ceiling_minutes
        )
    if options.buffer_minutes < 0:
        raise ConfigurationError(
            "buffer_minutes must be >= 0, got %r" % options.buffer_minutes
        )


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def _same_day(start: datetime, end: datetime) -> bool:
    # An end at exactly midnight still closes the start's day.
    if _is_aware(start):
        end = end.astimezone(start.tzinfo)
    return (end - timedelta(microseconds=1)).date() == start.date()


def validate_blocks(blocks: Sequence[TimeBlock]) -> List[Tuple[int, TimeBlock]]:
    """
    Check every block and return `(input_index, block)` pairs ordered by start.

    Raises ConfigurationError for a block with `end <= start`, an
    unknown kind, a block spanning two calendar days, or a mix of
    timezone-aware and naive times. Overlaps are not checked.
    """
    aware_seen = set()
    for i, block in enumerate(blocks):
        aware = {_is_aware(block.start), _is_aware(block.end)}
        aware_seen |= aware
        if len(aware_seen) > 1:
            raise ConfigurationError(
                "Block %d mixes timezone-aware and naive times with the other blocks" % i
            )
        if block.end <= block.start:
            raise ConfigurationError(
                "Block %d ends at or before its start (%s -> %s)"
                % (i, block.start.isoformat(), block.end.isoformat())
            )
        if not _same_day(block.start, block.end):
            raise ConfigurationError(
                "Block %d spans more than one day (%s -> %s)"
                % (i, block.start.isoformat(), block.end.isoformat())
            )
        if block.kind not in VALID_BLOCK_KINDS:
            raise ConfigurationError("Block %d has unknown kind %r" % (i, block.kind))
    return sorted(enumerate(blocks), key=lambda pair: pair[1].start)


def _first_fit(
    cursors: List[_BlockCursor],
    task: Task,
    minutes: int,
    options: ScheduleOptions,
) -> Optional[_BlockCursor]:
    for slot in cursors:
        if slot.admits(task, minutes, options):
            return slot
    return None


def allocate(
    tasks: Sequence[Task],
    blocks: Sequence[TimeBlock],
    options: Optional[ScheduleOptions] = None,
) -> Tuple[List[Assignment], List[Task]]:
    """
    Place already-ordered tasks into today's blocks.

    Returns (assignments, unscheduled). Assignments are in placement
    order; unscheduled tasks keep their relative input order.
    """
    options = options or ScheduleOptions()
    validate_options(options)
    cursors = [
        _BlockCursor(index=i, block=b, cursor=b.start) for i, b in validate_blocks(blocks)
    ]
    ceiling = options.chunk_ceiling_minutes
    threshold = options.quick_win_threshold_minutes

    if options.sprinkle_quick_wins:
        quick_queue = [t for t in tasks if t.duration_minutes <= threshold]
        mains = [t for t in tasks if t.duration_minutes > threshold]
    else:
        quick_queue = []
        mains = list(tasks)

    assignments: List[Assignment] = []
    unscheduled: List[Task] = []

    def place(task: Task, quick_win: bool) -> Optional[Assignment]:
        if task.duration_minutes <= 0:
            return None
        minutes = min(task.duration_minutes, ceiling)
        slot = _first_fit(cursors, task, minutes, options)
        if slot is None:
            return None
        placed = slot.take(
            task,
            minutes,
            minutes < task.duration_minutes,
            quick_win,
            options.buffer_minutes,
        )
        assignments.append(placed)
        logger.debug(
            "Placed %r in block %d at %s (%d min)",
            task.id,
            placed.block_index,
            placed.start.isoformat(),
            minutes,
        )
        return placed

    for task in mains:
        placed = place(task, quick_win=False)
        if placed is None:
            unscheduled.append(task)
            continue

        if quick_queue and placed.minutes >= QUICK_WIN_ANCHOR_MINUTES:
            q = quick_queue[0]
            slot = next(c for c in cursors if c.index == placed.block_index)
            q_minutes = min(q.duration_minutes, ceiling)
            if q_minutes > 0 and slot.admits(q, q_minutes, options):
                quick_queue.pop(0)
                assignments.append(
                    slot.take(q, q_minutes, False, True, options.buffer_minutes)
                )
                logger.debug("Sprinkled quick win %r after %r", q.id, task.id)

    for q in quick_queue:
        if place(q, quick_win=True) is None:
            unscheduled.append(q)

    if quick_queue:
        position = {id(t): i for i, t in enumerate(tasks)}
        unscheduled.sort(key=lambda t: position[id(t)])

    logger.info(
        "Allocated %d task(s) into %d block(s); %d unscheduled",
        len(assignments),
        len(cursors),
        len(unscheduled),
    )
    return assignments, unscheduled
