"""
Configuration module for the day planner.

Single source of truth for:
- Default scheduling policy (auto-schedule gate, quick wins, chunking)
- Focus slate size
- Logging level
- Azure Blob settings for loading task exports

All values can be overridden via environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

from .normalize import coerce_bool
from .schema import ScheduleOptions


def _get_env_bool(name: str, default: bool) -> bool:
    # Same truthy spellings as the Auto-Schedule field.
    raw = os.getenv(name)
    return default if raw is None else coerce_bool(raw)


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class Config:
    """
    Runtime configuration for the day planner.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # Scheduling policy defaults
    ignore_auto_flag: bool = False
    include_already_scheduled: bool = False
    quick_win_threshold_minutes: int = 5
    chunk_ceiling_minutes: int = 90
    sprinkle_quick_wins: bool = False
    match_block_kind: bool = False
    match_energy: bool = False
    buffer_minutes: int = 0

    # Size of the Today focus slate
    focus_slots: int = 3

    log_level: str = "INFO"

    # Azure Blob Storage (task exports as CSV/JSON)
    azure_blob_connection_string: Optional[str] = None
    azure_blob_container_name: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - DAYPLAN_IGNORE_AUTO_FLAG        (true/false)
        - DAYPLAN_INCLUDE_SCHEDULED       (true/false)
        - DAYPLAN_QUICK_WIN_MINUTES       (int)
        - DAYPLAN_CHUNK_CEILING_MINUTES   (int)
        - DAYPLAN_SPRINKLE_QUICK_WINS     (true/false)
        - DAYPLAN_MATCH_BLOCK_KIND        (true/false)
        - DAYPLAN_MATCH_ENERGY            (true/false)
        - DAYPLAN_BUFFER_MINUTES          (int)
        - DAYPLAN_FOCUS_SLOTS             (int)
        - DAYPLAN_LOG_LEVEL               (DEBUG/INFO/...)
        - DAYPLAN_AZURE_BLOB_CONNECTION_STRING
        - DAYPLAN_AZURE_BLOB_CONTAINER_NAME
        """
        return cls(
            ignore_auto_flag=_get_env_bool("DAYPLAN_IGNORE_AUTO_FLAG", default=False),
            include_already_scheduled=_get_env_bool(
                "DAYPLAN_INCLUDE_SCHEDULED", default=False
            ),
            quick_win_threshold_minutes=_get_env_int(
                "DAYPLAN_QUICK_WIN_MINUTES", default=5
            ),
            chunk_ceiling_minutes=_get_env_int(
                "DAYPLAN_CHUNK_CEILING_MINUTES", default=90
            ),
            sprinkle_quick_wins=_get_env_bool(
                "DAYPLAN_SPRINKLE_QUICK_WINS", default=False
            ),
            match_block_kind=_get_env_bool("DAYPLAN_MATCH_BLOCK_KIND", default=False),
            match_energy=_get_env_bool("DAYPLAN_MATCH_ENERGY", default=False),
            buffer_minutes=_get_env_int("DAYPLAN_BUFFER_MINUTES", default=0),
            focus_slots=_get_env_int("DAYPLAN_FOCUS_SLOTS", default=3),
            log_level=os.getenv("DAYPLAN_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            azure_blob_connection_string=os.getenv(
                "DAYPLAN_AZURE_BLOB_CONNECTION_STRING"
            ),
            azure_blob_container_name=os.getenv(
                "DAYPLAN_AZURE_BLOB_CONTAINER_NAME"
            ),
        )

    def schedule_options(self) -> ScheduleOptions:
        return ScheduleOptions(
            ignore_auto_flag=self.ignore_auto_flag,
            include_already_scheduled=self.include_already_scheduled,
            quick_win_threshold_minutes=self.quick_win_threshold_minutes,
            chunk_ceiling_minutes=self.chunk_ceiling_minutes,
            sprinkle_quick_wins=self.sprinkle_quick_wins,
            match_block_kind=self.match_block_kind,
            match_energy=self.match_energy,
            buffer_minutes=self.buffer_minutes,
        )


# Shared by the CLI and the API.
_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """Config read from the environment on first use; `force_reload` re-reads it."""
    global _DEFAULT_CONFIG
    if force_reload or _DEFAULT_CONFIG is None:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
