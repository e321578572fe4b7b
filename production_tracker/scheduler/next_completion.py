"""
Next-Completion Selector

Finds the running job whose next unit is due soonest.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from .models import NextCompletion, ProductionJob
from .progress import DEFAULT_CYCLE_SECONDS, units_done_at

COMPLETING_THRESHOLD_SECONDS = 30


def next_unit_instant(job: ProductionJob, now: datetime,
                      cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS) -> Optional[datetime]:
    """Instant at which the job's next unit completes (None if not accruing)."""
    if not job.is_running or job.start_instant is None:
        return None
    cycle = job.cycle_seconds(cycle_duration_seconds)
    done = units_done_at(job, now, cycle_duration_seconds)
    return job.start_instant + timedelta(seconds=(done + 1) * cycle)


def select_next_completion(jobs: Iterable[ProductionJob], now: datetime,
                           cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS,
                           completing_threshold_seconds: float = COMPLETING_THRESHOLD_SECONDS
                           ) -> Optional[NextCompletion]:
    """
    Select the running job with the smallest positive time to its next unit.

    A job sitting exactly on a unit boundary is not eligible. Exact ties keep
    the first job in iteration order.

    Args:
        jobs: Current job snapshot
        now: Current wall-clock instant
        cycle_duration_seconds: Default time to produce one unit
        completing_threshold_seconds: Below this the result reports `is_completing`

    Returns:
        NextCompletion, or None if no running job qualifies
    """
    best = None
    best_remaining = None

    for job in jobs:
        due = next_unit_instant(job, now, cycle_duration_seconds)
        if due is None:
            continue

        remaining_ms = (due - now) / timedelta(milliseconds=1)
        if remaining_ms <= 0:
            continue

        if best_remaining is None or remaining_ms < best_remaining:
            best_remaining = remaining_ms
            best = NextCompletion(
                job_id=job.id,
                time_remaining_ms=remaining_ms,
                estimated_instant=due,
                material_name=job.material_name,
                machine_name=job.machine_name,
                completing_threshold_ms=completing_threshold_seconds * 1000.0,
            )

    return best


def format_countdown(time_remaining_ms: float) -> str:
    """Render milliseconds as a `mm:ss` countdown."""
    if time_remaining_ms <= 0:
        return "00:00"
    total_seconds = int(time_remaining_ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"
