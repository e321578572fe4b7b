"""
Production Job Models

Boundary types for the batch progress tracker.

RULES:
- Numeric fields are validated integers before they enter the scheduler
- Malformed optional fields fall back to defaults (never raise inside a tick)
- Derived records (snapshots, next completion) are never persisted
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("ProductionJob")

DEFAULT_EXPECTED_OUTPUT = 100


class JobStatus(str, Enum):
    """Production run status. Only RUNNING jobs accrue progress."""
    RUNNING = "running"
    STOPPED = "stopped"


class ProductionJob(BaseModel):
    """
    One in-progress or stopped manufacturing run.

    Field aliases match the production records served by the backend
    (`start_date`), so raw API rows can be validated directly.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: Union[int, str]
    status: JobStatus = JobStatus.STOPPED
    start_instant: Optional[datetime] = Field(default=None, alias="start_date")
    expected_output: int = DEFAULT_EXPECTED_OUTPUT
    actual_output: int = 0
    cycle_duration_seconds: Optional[int] = None  # per-job override

    # Metadata forwarded to stock creation
    material_name: Optional[str] = None
    machine_name: Optional[str] = None
    mold_code: Optional[str] = None
    machine_id: Optional[Union[int, str]] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value):
        # Anything that is not explicitly running is treated as stopped
        if isinstance(value, str) and value.strip().lower() == JobStatus.RUNNING.value:
            return JobStatus.RUNNING
        return JobStatus.STOPPED

    @field_validator("start_instant", mode="wrap")
    @classmethod
    def _lenient_start(cls, value, handler) -> Optional[datetime]:
        # Blank or unparseable (e.g. MySQL zero date) -> no start, progress frozen
        if value in ("", None):
            return None
        try:
            parsed = handler(value)
        except ValidationError:
            logger.warning(f"Unparseable start_date {value!r}, treating as missing")
            return None
        # Naive timestamps are wall-clock local time
        if parsed is not None and parsed.tzinfo is None:
            return parsed.astimezone()
        return parsed

    @field_validator("expected_output", mode="wrap")
    @classmethod
    def _lenient_expected(cls, value, handler) -> int:
        if value in (None, "", 0, "0"):
            return DEFAULT_EXPECTED_OUTPUT
        try:
            parsed = handler(value)
        except ValidationError:
            logger.warning(f"Invalid expected_output {value!r}, using {DEFAULT_EXPECTED_OUTPUT}")
            return DEFAULT_EXPECTED_OUTPUT
        return parsed if parsed > 0 else DEFAULT_EXPECTED_OUTPUT

    @field_validator("actual_output", mode="wrap")
    @classmethod
    def _lenient_actual(cls, value, handler) -> int:
        if value in (None, ""):
            return 0
        try:
            parsed = handler(value)
        except ValidationError:
            logger.warning(f"Invalid actual_output {value!r}, using 0")
            return 0
        return max(parsed, 0)

    @field_validator("cycle_duration_seconds", mode="wrap")
    @classmethod
    def _lenient_cycle(cls, value, handler) -> Optional[int]:
        if value in (None, "", 0, "0"):
            return None
        try:
            return handler(value)
        except ValidationError:
            return None

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    def cycle_seconds(self, default: int) -> int:
        """Cycle time for this job, falling back to the driver-wide value."""
        if self.cycle_duration_seconds and self.cycle_duration_seconds > 0:
            return self.cycle_duration_seconds
        return default

    def metadata(self) -> Dict[str, Any]:
        return {
            "production_id": self.id,
            "material_name": self.material_name,
            "machine_name": self.machine_name,
            "mold_code": self.mold_code,
            "machine_id": self.machine_id,
        }


def parse_jobs(records: List[Dict[str, Any]]) -> List[ProductionJob]:
    """
    Validate raw production records.

    Malformed fields fall back to defaults and the job stays tracked.
    Only records without a usable `id` are logged and skipped.
    """
    jobs = []
    for record in records or []:
        if isinstance(record, ProductionJob):
            jobs.append(record)
            continue
        try:
            jobs.append(ProductionJob.model_validate(record))
        except ValidationError as e:
            ref = record.get("id") if isinstance(record, dict) else record
            logger.warning(f"Skipping malformed production record {ref!r}: {e.error_count()} error(s)")
    return jobs


@dataclass(frozen=True)
class ProgressSnapshot:
    """Per-job progress at one instant (derived, never stored)."""
    job_id: Union[int, str]
    units_done: int
    units_remaining: int
    expected_output: int
    percent: int
    estimated_completion: Optional[datetime]
    stopped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "units_done": self.units_done,
            "units_remaining": self.units_remaining,
            "expected_output": self.expected_output,
            "percent": self.percent,
            "estimated_completion": self.estimated_completion.isoformat() if self.estimated_completion else None,
            "stopped": self.stopped,
        }


@dataclass(frozen=True)
class NextCompletion:
    """The running job whose next unit completes soonest."""
    job_id: Union[int, str]
    time_remaining_ms: float
    estimated_instant: datetime
    material_name: Optional[str] = None
    machine_name: Optional[str] = None
    completing_threshold_ms: float = 30000.0

    @property
    def is_completing(self) -> bool:
        return self.time_remaining_ms < self.completing_threshold_ms

    def to_dict(self) -> Dict[str, Any]:
        from .next_completion import format_countdown

        return {
            "job_id": self.job_id,
            "time_remaining_ms": self.time_remaining_ms,
            "estimated_instant": self.estimated_instant.isoformat(),
            "countdown": format_countdown(self.time_remaining_ms),
            "is_completing": self.is_completing,
            "material_name": self.material_name,
            "machine_name": self.machine_name,
        }
