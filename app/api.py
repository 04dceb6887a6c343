"""
FastAPI app for the day planner.

Endpoints:
- POST /schedule   plan today's blocks from raw task records
- POST /focus      pick tasks to top up the Today list
- POST /normalize  canonical form of raw task records
- POST /brief      morning brief buckets and a starting task
- GET  /health

The planning calls are pure and synchronous; the HTTP layer only
converts payloads.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from dayplan.balancer import fill_today
from dayplan.config import get_config
from dayplan.data_io import parse_blocks, writeback_patches
from dayplan.normalize import normalize_tasks, task_to_record
from dayplan.planner import plan_day
from dayplan.schema import ConfigurationError, ScheduleOptions
from dayplan.summary import daily_plan_buckets, summarize_schedule

logger = logging.getLogger("dayplan.api")

app = FastAPI(title="Day Planner API")


# --- Request / Response schemas ----------------------------------------------


class BlockPayload(BaseModel):
    """
    One time block. `start` / `end` are ISO datetimes, or HH:MM when the
    request carries a `day`. `kind` is a context ("Deep Work", ...) or
    "any".
    """

    start: str
    end: str
    kind: Optional[str] = None


class OptionsPayload(BaseModel):
    """Overrides for the configured scheduling policy."""

    ignore_auto_flag: Optional[bool] = None
    include_already_scheduled: Optional[bool] = None
    quick_win_threshold_minutes: Optional[int] = None
    chunk_ceiling_minutes: Optional[int] = None
    sprinkle_quick_wins: Optional[bool] = None
    match_block_kind: Optional[bool] = None
    match_energy: Optional[bool] = None
    buffer_minutes: Optional[int] = None


class ScheduleRequest(BaseModel):
    """
    Body example:
    {
      "day": "2025-03-04",
      "tasks": [{"id": "rec1", "fields": {"Task Name": "Report",
                  "Priority": "P1-Critical", "Time Estimate": 60,
                  "Auto-Schedule": true}}],
      "blocks": [{"start": "09:00", "end": "12:00", "kind": "Deep Work"}],
      "options": {"sprinkle_quick_wins": true}
    }
    """

    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    blocks: List[BlockPayload] = Field(default_factory=list)
    day: Optional[date] = None
    options: OptionsPayload = Field(default_factory=OptionsPayload)
    include_patches: bool = False


class ScheduleResponse(BaseModel):
    day: Optional[str]
    assignments: List[Dict[str, Any]]
    unscheduled: List[Dict[str, Any]]
    ineligible: List[Dict[str, Any]]
    summary: Dict[str, Any]
    patches: Optional[List[Dict[str, Any]]] = None


class FocusRequest(BaseModel):
    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    target: Optional[int] = None


class FocusResponse(BaseModel):
    picks: List[Dict[str, Any]]


class NormalizeRequest(BaseModel):
    tasks: List[Dict[str, Any]] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    tasks: List[Dict[str, Any]]


class BriefResponse(BaseModel):
    start: Optional[Dict[str, Any]]
    high: List[Dict[str, Any]]
    med: List[Dict[str, Any]]
    low: List[Dict[str, Any]]
    quick: List[Dict[str, Any]]
    estimates: Dict[str, int]


# --- Helpers -----------------------------------------------------------------


def resolve_options(payload: OptionsPayload) -> ScheduleOptions:
    """Configured defaults, with any field set in the request taking over."""
    base = get_config().schedule_options()
    overrides = {k: v for k, v in payload.model_dump().items() if v is not None}
    return replace(base, **overrides)


# --- Endpoints ---------------------------------------------------------------


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/schedule", response_model=ScheduleResponse)
def schedule(payload: ScheduleRequest) -> ScheduleResponse:
    """
    Plan one day. Invalid blocks or options produce a 400.
    """
    try:
        options = resolve_options(payload.options)
        blocks = parse_blocks([b.model_dump() for b in payload.blocks], payload.day)
        result = plan_day(payload.tasks, blocks, options, day=payload.day)
    except ConfigurationError as e:
        logger.info("Rejected schedule request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    summary = summarize_schedule(result, blocks, normalize_tasks(payload.tasks))
    body = result.to_dict()
    return ScheduleResponse(
        day=body["day"],
        assignments=body["assignments"],
        unscheduled=body["unscheduled"],
        ineligible=body["ineligible"],
        summary=summary,
        patches=writeback_patches(result, include_notes=True)
        if payload.include_patches
        else None,
    )


@app.post("/focus", response_model=FocusResponse)
def focus(payload: FocusRequest) -> FocusResponse:
    target = payload.target if payload.target is not None else get_config().focus_slots
    picks = fill_today(payload.tasks, target=target)
    return FocusResponse(picks=[p.to_dict() for p in picks])


@app.post("/normalize", response_model=NormalizeResponse)
def normalize(payload: NormalizeRequest) -> NormalizeResponse:
    tasks = normalize_tasks(payload.tasks)
    return NormalizeResponse(tasks=[task_to_record(t) for t in tasks])


@app.post("/brief", response_model=BriefResponse)
def brief(payload: NormalizeRequest) -> BriefResponse:
    cfg = get_config()
    buckets = daily_plan_buckets(
        normalize_tasks(payload.tasks), cfg.quick_win_threshold_minutes
    )
    start = buckets["start"]
    return BriefResponse(
        start=task_to_record(start) if start else None,
        estimates=buckets["estimates"],
        **{k: [task_to_record(t) for t in buckets[k]] for k in ("high", "med", "low", "quick")},
    )


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
