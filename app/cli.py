"""
CLI for the day planner.

Usage examples:

    # Plan today from a task export and a block list
    python -m app.cli plan data/tasks.json data/blocks.json --day 2025-03-04

    # Pick tasks to top up the Today list
    python -m app.cli focus data/tasks.json --target 3

    # Show how records normalize
    python -m app.cli normalize data/tasks.csv

    # Morning brief from an export kept in Azure Blob Storage
    python -m app.cli brief exports/tasks.json --blob
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from dayplan.balancer import fill_today
from dayplan.config import get_config
from dayplan.data_io import (
    load_blocks_from_json,
    load_task_records,
    load_task_records_from_azure_blob,
    save_result_to_json,
    writeback_patches,
)
from dayplan.normalize import normalize_tasks, task_to_record
from dayplan.planner import plan_day
from dayplan.schema import ConfigurationError
from dayplan.summary import daily_plan_buckets, summarize_schedule

# --- Commands ----------------------------------------------------------------


def _load_records(path_str: str, command: str, blob: bool = False) -> list:
    if blob:
        try:
            return load_task_records_from_azure_blob(path_str)
        except (ImportError, ValueError) as e:
            raise SystemExit(f"[{command}] Could not load blob {path_str!r}: {e}")
    path = Path(path_str).resolve()
    if not path.exists():
        raise SystemExit(f"[{command}] Task file not found: {path}")
    try:
        return load_task_records(str(path))
    except (ValueError, json.JSONDecodeError) as e:
        raise SystemExit(f"[{command}] Could not read tasks from {path}: {e}")


def cmd_plan(args: argparse.Namespace) -> None:
    """
    Plan one day and print (or save) the result.
    """
    cfg = get_config()
    records = _load_records(args.tasks_path, "plan", args.blob)

    blocks_path = Path(args.blocks_path).resolve()
    if not blocks_path.exists():
        raise SystemExit(f"[plan] Blocks file not found: {blocks_path}")

    try:
        day = date.fromisoformat(args.day) if args.day else None
    except ValueError:
        raise SystemExit(f"[plan] Bad --day value: {args.day!r} (expected YYYY-MM-DD)")
    options = cfg.schedule_options()
    if args.ignore_auto:
        options = replace(options, ignore_auto_flag=True)
    if args.include_scheduled:
        options = replace(options, include_already_scheduled=True)
    if args.sprinkle:
        options = replace(options, sprinkle_quick_wins=True)
    if args.match_energy:
        options = replace(options, match_energy=True)
    if args.buffer is not None:
        options = replace(options, buffer_minutes=args.buffer)

    try:
        blocks = load_blocks_from_json(str(blocks_path), day=day)
        result = plan_day(records, blocks, options, day=day)
    except ConfigurationError as e:
        raise SystemExit(f"[plan] Invalid configuration: {e}")
    except ValueError as e:
        raise SystemExit(f"[plan] Could not read blocks from {blocks_path}: {e}")

    summary = summarize_schedule(result, blocks, normalize_tasks(records))

    if args.out:
        save_result_to_json(result, args.out, summary=summary)
        print(f"[plan] Saved plan to {Path(args.out).resolve()}")

    print(f"[plan] Day: {result.day.isoformat() if result.day else '-'}")
    for a in sorted(result.assignments, key=lambda a: a.start):
        flag = " (quick win)" if a.quick_win else " (chunk)" if a.chunked else ""
        print(f"  {a.start:%H:%M}-{a.end:%H:%M}  {a.name}{flag}")
    if result.unscheduled:
        print("[plan] Unscheduled:")
        for t in result.unscheduled:
            print(f"  - {t.name} ({t.duration_minutes}m, {t.priority.value})")
    if result.ineligible:
        print("[plan] Ineligible:")
        for item in result.ineligible:
            print(f"  - {item.task.name}: {'; '.join(item.reasons)}")
    print(
        f"[plan] {summary['scheduled_minutes']}/{summary['capacity_minutes']} min "
        f"scheduled ({summary['utilization']:.0%})"
    )

    if args.patches:
        print(json.dumps(writeback_patches(result, include_notes=True), indent=2))


def cmd_focus(args: argparse.Namespace) -> None:
    """
    Pick tasks to promote so Today holds `--target` tasks.
    """
    records = _load_records(args.tasks_path, "focus", args.blob)
    target = args.target if args.target is not None else get_config().focus_slots

    picks = fill_today(records, target=target)
    if not picks:
        print("[focus] Nothing to promote.")
        return
    for p in picks:
        print(f"  {p.task.name}  [{p.tier.value} / {p.category.value}]  ({p.reason})")


def cmd_normalize(args: argparse.Namespace) -> None:
    """
    Print canonical records for every task in the file.
    """
    records = _load_records(args.tasks_path, "normalize", args.blob)
    tasks = normalize_tasks(records)
    print(json.dumps([task_to_record(t) for t in tasks], indent=2))


def cmd_brief(args: argparse.Namespace) -> None:
    """
    Print the morning brief: starting task plus high/med/low/quick buckets.
    """
    records = _load_records(args.tasks_path, "brief", args.blob)
    cfg = get_config()
    brief = daily_plan_buckets(normalize_tasks(records), cfg.quick_win_threshold_minutes)

    start = brief["start"]
    print(f"[brief] Recommended starting task: {start.name if start else '-'}")
    for key, title in (
        ("high", "High priority"),
        ("med", "Medium"),
        ("low", "Low"),
        ("quick", f"Quick wins (<= {cfg.quick_win_threshold_minutes} min)"),
    ):
        print(f"[brief] {title}:")
        members = brief[key]
        if not members:
            print("  - (none)")
        for t in members:
            due = f", due {t.due_date.isoformat()}" if t.due_date else ""
            print(f"  - {t.name} ({t.duration_minutes}m, {t.priority.value}{due})")
    est = brief["estimates"]
    print(
        f"[brief] Estimates: high {est['high']}m, med {est['med']}m, "
        f"low {est['low']}m, quick {est['quick']}m"
    )


# --- Main --------------------------------------------------------------------


def _add_tasks_source(p: argparse.ArgumentParser) -> None:
    p.add_argument("tasks_path", help="Task export (.json or .csv), or a blob name with --blob.")
    p.add_argument(
        "--blob",
        action="store_true",
        help="Read tasks_path from the configured Azure Blob container.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Day planner CLI – plan today, fill the focus list, inspect tasks."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # plan
    plan_p = subparsers.add_parser(
        "plan",
        help="Place eligible tasks into today's time blocks.",
    )
    _add_tasks_source(plan_p)
    plan_p.add_argument(
        "blocks_path",
        help="JSON list of {start, end, kind} blocks, or {day, blocks}.",
    )
    plan_p.add_argument("--day", help="Day for HH:MM block times (YYYY-MM-DD).")
    plan_p.add_argument("--out", help="Write the plan as JSON to this path.")
    plan_p.add_argument(
        "--ignore-auto",
        action="store_true",
        help="Consider tasks even when Auto-Schedule is off.",
    )
    plan_p.add_argument(
        "--include-scheduled",
        action="store_true",
        help="Re-plan tasks already in Scheduled.",
    )
    plan_p.add_argument(
        "--sprinkle",
        action="store_true",
        help="Insert a quick win after each long task.",
    )
    plan_p.add_argument(
        "--match-energy",
        action="store_true",
        help="Keep High-energy tasks before 15:00 and Low-energy tasks after.",
    )
    plan_p.add_argument(
        "--buffer",
        type=int,
        default=None,
        help="Minutes of gap after each placed task.",
    )
    plan_p.add_argument(
        "--patches",
        action="store_true",
        help="Print the store write-back patches as JSON.",
    )
    plan_p.set_defaults(func=cmd_plan)

    # focus
    focus_p = subparsers.add_parser(
        "focus",
        help="Choose tasks to promote to Today with category balance.",
    )
    _add_tasks_source(focus_p)
    focus_p.add_argument(
        "--target",
        type=int,
        default=None,
        help="Desired number of Today tasks (default: DAYPLAN_FOCUS_SLOTS or 3).",
    )
    focus_p.set_defaults(func=cmd_focus)

    # normalize
    norm_p = subparsers.add_parser(
        "normalize",
        help="Print the canonical form of every task record.",
    )
    _add_tasks_source(norm_p)
    norm_p.set_defaults(func=cmd_normalize)

    # brief
    brief_p = subparsers.add_parser(
        "brief",
        help="Group open tasks into a morning brief with a starting task.",
    )
    _add_tasks_source(brief_p)
    brief_p.set_defaults(func=cmd_brief)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, get_config().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
