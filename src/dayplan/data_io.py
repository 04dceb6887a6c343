"""
Data I/O utilities.

Provides thin helpers to:
- Load raw task records from a local JSON or CSV export
- Load today's time blocks from JSON
- Load task records from Azure Blob Storage (JSON or CSV export)
- Save a plan as JSON
- Build the field patches a store client would write back

The planning core never calls any of this; only the CLI and API do.

Dependencies:
- Standard library only for local files.
- For Azure Blob: `azure-storage-blob` package is required.
"""

from __future__ import annotations

import csv
import json
import logging
import re
from datetime import date, datetime, time
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import Config, get_config
from .schema import ANY_KIND, ConfigurationError, Context, ScheduleResult, TimeBlock

try:
    from azure.storage.blob import BlobServiceClient  # type: ignore[import]
except ImportError:  # pragma: no cover - optional dependency
    BlobServiceClient = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^(\d{1,2}):?(\d{2})$")

_KIND_VALUES = {re.sub(r"[\s_\-]", "", c.value).lower(): c.value for c in Context}


# --- Task records ------------------------------------------------------------


def _records_from_payload(payload: Any) -> List[Dict[str, Any]]:
    # Accept a bare list or a store response of the form {"records": [...]}.
    if isinstance(payload, Mapping):
        payload = payload.get("records", [])
    if not isinstance(payload, list):
        raise ValueError("Expected a list of task records or {'records': [...]}.")
    return [r for r in payload if isinstance(r, Mapping)]


def _records_from_csv_text(text: str) -> List[Dict[str, Any]]:
    reader = csv.DictReader(StringIO(text))
    # Empty cells are dropped so that field aliases fall through.
    return [
        {k: v for k, v in row.items() if k and v not in (None, "")}
        for row in reader
        if row
    ]


def load_task_records_from_json(path: str) -> List[Dict[str, Any]]:
    text = Path(path).read_text(encoding="utf-8")
    return _records_from_payload(json.loads(text))


def load_task_records_from_csv(path: str) -> List[Dict[str, Any]]:
    """
    Load task records from a CSV export (one row per task).

    Column names are passed through untouched; the normalizer resolves
    aliases such as "Task Name" / "name".
    """
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        return _records_from_csv_text(f.read())


def load_task_records(path: str) -> List[Dict[str, Any]]:
    """Dispatch on file extension (.csv, otherwise JSON)."""
    if Path(path).suffix.lower() == ".csv":
        return load_task_records_from_csv(path)
    return load_task_records_from_json(path)


# --- Blocks ------------------------------------------------------------------


def parse_block_time(value: Any, day: Optional[date]) -> datetime:
    """
    Parse a block boundary.

    Accepts ISO datetimes ("2025-03-04T09:00") or clock times
    ("09:00", "0900", "9:00") combined with `day`.
    """
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    m = _CLOCK_RE.match(text)
    if m:
        if day is None:
            raise ConfigurationError(
                "Clock time %r needs a day (pass --day or use ISO datetimes)" % text
            )
        try:
            return datetime.combine(day, time(int(m.group(1)), int(m.group(2))))
        except ValueError as e:
            raise ConfigurationError("Bad clock time %r: %s" % (text, e)) from e
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ConfigurationError("Bad block time %r" % text) from e


def parse_block_kind(value: Any) -> str:
    if value is None or not str(value).strip():
        return ANY_KIND
    key = re.sub(r"[\s_\-]", "", str(value)).lower()
    if key == ANY_KIND:
        return ANY_KIND
    if key not in _KIND_VALUES:
        raise ConfigurationError("Unknown block kind %r" % value)
    return _KIND_VALUES[key]


def parse_block(raw: Mapping[str, Any], day: Optional[date] = None) -> TimeBlock:
    if "start" not in raw or "end" not in raw:
        raise ConfigurationError("Block needs 'start' and 'end': %r" % dict(raw))
    return TimeBlock(
        start=parse_block_time(raw["start"], day),
        end=parse_block_time(raw["end"], day),
        kind=parse_block_kind(raw.get("kind")),
    )


def parse_blocks(raw_blocks: Sequence[Mapping[str, Any]], day: Optional[date] = None) -> List[TimeBlock]:
    return [parse_block(b, day) for b in raw_blocks]


def load_blocks_from_json(path: str, day: Optional[date] = None) -> List[TimeBlock]:
    """
    Load blocks from JSON: a list of {start, end, kind} objects, or
    {"day": "YYYY-MM-DD", "blocks": [...]}. An explicit `day` argument
    wins over the file's.
    """
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, Mapping):
        if day is None and payload.get("day"):
            try:
                day = date.fromisoformat(str(payload["day"]))
            except ValueError as e:
                raise ConfigurationError("Bad day %r in %s" % (payload["day"], path)) from e
        payload = payload.get("blocks", [])
    if not isinstance(payload, list):
        raise ConfigurationError("Expected a list of blocks or {'blocks': [...]}.")
    return parse_blocks(payload, day)


# --- Azure Blob helpers ----------------------------------------------------


def _task_export_blob(
    blob_name: str,
    container_name: Optional[str],
    config: Optional[Config],
):
    """Blob client for a task export; settings fall back to Config."""
    if BlobServiceClient is None:
        raise ImportError(
            "Loading task exports from Azure needs azure-storage-blob "
            "(`pip install dayplan[azure]`)."
        )
    cfg = config or get_config()
    missing = [
        env
        for env, value in (
            ("DAYPLAN_AZURE_BLOB_CONNECTION_STRING", cfg.azure_blob_connection_string),
            ("DAYPLAN_AZURE_BLOB_CONTAINER_NAME", container_name or cfg.azure_blob_container_name),
        )
        if not value
    ]
    if missing:
        raise ValueError("Azure task export is not configured; set %s." % ", ".join(missing))
    service = BlobServiceClient.from_connection_string(cfg.azure_blob_connection_string)
    return service.get_blob_client(
        container=container_name or cfg.azure_blob_container_name,
        blob=blob_name,
    )


def load_task_records_from_azure_blob(
    blob_name: str,
    *,
    container_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> List[Dict[str, Any]]:
    """
    Load task records from a JSON or CSV export stored in Azure Blob Storage.

    `container_name` overrides Config.azure_blob_container_name.
    """
    blob_client = _task_export_blob(blob_name, container_name, config)
    text = blob_client.download_blob().readall().decode("utf-8")
    logger.info("Downloaded task export %r (%d characters)", blob_name, len(text))

    if blob_name.lower().endswith(".csv"):
        return _records_from_csv_text(text)
    return _records_from_payload(json.loads(text))


# --- Output ------------------------------------------------------------------


def writeback_patches(
    result: ScheduleResult,
    *,
    include_notes: bool = False,
) -> List[Dict[str, Any]]:
    """
    Field patches for the task store, one per affected task.

    Assigned tasks get Status=Scheduled plus start/end. With
    `include_notes`, unscheduled and ineligible tasks get a
    "Schedule Note" explaining why they were left out.
    """
    patches: List[Dict[str, Any]] = []
    for a in result.assignments:
        patches.append(
            {
                "id": a.task_id,
                "fields": {
                    "Status": "Scheduled",
                    "Scheduled Start": a.start.isoformat(),
                    "Scheduled End": a.end.isoformat(),
                },
            }
        )
    if include_notes:
        for t in result.unscheduled:
            patches.append(
                {"id": t.id, "fields": {"Schedule Note": "No room left in today's blocks."}}
            )
        for item in result.ineligible:
            patches.append(
                {
                    "id": item.task.id,
                    "fields": {"Schedule Note": "Not planned: " + "; ".join(item.reasons)},
                }
            )
    return patches


def save_result_to_json(
    result: ScheduleResult,
    path: str,
    *,
    summary: Optional[Dict[str, Any]] = None,
) -> None:
    out = result.to_dict()
    if summary is not None:
        out["summary"] = summary
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(out, indent=2), encoding="utf-8")
