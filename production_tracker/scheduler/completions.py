"""
Completion Detector

Tick-to-tick comparison of produced unit counts.

RULES:
- Last-observed counts only move forward
- State is updated before any side effect is dispatched
- A failed side effect never rolls a counter back
"""

from typing import Dict, Optional, Union
import logging

logger = logging.getLogger("CompletionDetector")

JobId = Union[int, str]


def detect_new_completions(job_id: JobId, previous_units_done: int, current_units_done: int) -> int:
    """
    Units completed since the previous observation.

    Args:
        job_id: Job identifier (for tracing only)
        previous_units_done: Last observed count
        current_units_done: Count at this tick

    Returns:
        max(0, current - previous)
    """
    return max(0, current_units_done - previous_units_done)


class CompletionDetector:
    """
    Last-observed unit counter per job.

    Counters are seeded from the persisted `actual_output` the first time a
    job is seen, so units already written back by an earlier session are not
    reported again.
    """

    def __init__(self):
        self._last_observed: Dict[JobId, int] = {}

    def observe(self, job_id: JobId, units_done: int, persisted_output: int = 0) -> int:
        """
        Record the current count for a running job.

        Args:
            job_id: Job identifier
            units_done: Units produced at this tick
            persisted_output: Output currently stored by the backend

        Returns:
            Number of newly completed units (0 if none)
        """
        previous = self._last_observed.get(job_id)
        if previous is None:
            previous = persisted_output
        elif persisted_output > previous:
            # Backend is ahead of us (another console); adopt without reporting
            logger.debug(f"Job {job_id}: adopting persisted output {persisted_output} (was {previous})")
            previous = persisted_output

        delta = detect_new_completions(job_id, previous, units_done)
        self._last_observed[job_id] = max(previous, units_done)
        return delta

    def last_observed(self, job_id: JobId) -> Optional[int]:
        return self._last_observed.get(job_id)

    def forget(self, job_id: JobId) -> None:
        """Drop state for a job that left the job list."""
        self._last_observed.pop(job_id, None)

    def get_all(self) -> Dict[JobId, int]:
        """Get all counters"""
        return self._last_observed.copy()
