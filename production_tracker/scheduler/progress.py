"""
Progress Calculator

Derives per-job output counts from the wall clock.

RULES:
- Pure function of (job, now): no state, never raises
- Step function of elapsed time, no partial units
- Stopped jobs are frozen at their persisted output
"""

from datetime import datetime, timedelta
from typing import Optional
import math

from .models import ProductionJob, ProgressSnapshot

DEFAULT_CYCLE_SECONDS = 300


def _round_half_up(value: float) -> int:
    # Built-in round() is banker's rounding; 2.5% must display as 3%
    return int(math.floor(value + 0.5))


def units_done_at(job: ProductionJob, now: datetime, cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS) -> int:
    """
    Units produced by `job` at `now`.

    Running jobs count whole cycles since `start_instant`; elapsed time is
    clamped at zero so a clock moving backwards never yields negative output.
    Stopped jobs (and running jobs with no start) report `actual_output`.
    """
    if not job.is_running or job.start_instant is None:
        return job.actual_output

    cycle = job.cycle_seconds(cycle_duration_seconds)
    elapsed = max(0.0, (now - job.start_instant).total_seconds())
    return int(elapsed // cycle)


def estimated_completion(job: ProductionJob, cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS) -> Optional[datetime]:
    if job.start_instant is None:
        return None
    cycle = job.cycle_seconds(cycle_duration_seconds)
    return job.start_instant + timedelta(seconds=job.expected_output * cycle)


def compute_progress(job: ProductionJob, now: datetime,
                     cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS) -> ProgressSnapshot:
    """
    Compute the progress snapshot of one job.

    Args:
        job: Production job
        now: Current wall-clock instant (timezone aware)
        cycle_duration_seconds: Default time to produce one unit

    Returns:
        ProgressSnapshot with percent clamped to [0, 100]
    """
    expected = job.expected_output
    done = units_done_at(job, now, cycle_duration_seconds)
    frozen = not job.is_running or job.start_instant is None

    return ProgressSnapshot(
        job_id=job.id,
        units_done=done,
        units_remaining=max(expected - done, 0),
        expected_output=expected,
        percent=max(0, min(_round_half_up(done / expected * 100), 100)),
        estimated_completion=None if frozen else estimated_completion(job, cycle_duration_seconds),
        stopped=frozen,
    )
