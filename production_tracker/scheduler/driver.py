"""
Tick Driver

Periodic scheduler for running production jobs.

Two independent periodic actions share one job snapshot:
- Fast tick: detect newly completed units, dispatch per-job side effects
- Slow tick: refresh progress snapshots and the next completion

CRITICAL:
- Tick bodies are synchronous; they never interleave with each other
- Detector state advances BEFORE side effects are dispatched
- Each job's side-effect chain runs as its own task; one job's failure
  never blocks another job or a later tick
- A disposed driver is a no-op; in-flight side effects are left to finish
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union
import asyncio
import logging
import time

from .completions import CompletionDetector
from .events import CompletionEvent, CompletionHistory
from .models import NextCompletion, ProductionJob, ProgressSnapshot
from .next_completion import COMPLETING_THRESHOLD_SECONDS, select_next_completion
from .progress import DEFAULT_CYCLE_SECONDS, compute_progress, units_done_at

logger = logging.getLogger("TickDriver")


def local_now() -> datetime:
    return datetime.now().astimezone()


class TickDriver:
    """
    Batch progress / completion scheduler.

    Owns its timer tasks, completion detector and recent-history list.
    Construct one per job-list session and dispose() it when done.
    """

    def __init__(self, stock_creator, output_store, notifier,
                 job_archiver=None,
                 cycle_duration_seconds: int = DEFAULT_CYCLE_SECONDS,
                 fast_tick_seconds: float = 15.0,
                 slow_tick_seconds: float = 60.0,
                 history_capacity: int = 5,
                 completing_threshold_seconds: float = COMPLETING_THRESHOLD_SECONDS,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize Tick Driver.

        Args:
            stock_creator: StockCreator collaborator
            output_store: OutputStore collaborator
            notifier: Notifier collaborator
            job_archiver: Optional JobArchiver, called once per fulfilled job
            cycle_duration_seconds: Default time to produce one unit
            fast_tick_seconds: Completion detection period
            slow_tick_seconds: Progress refresh period
            history_capacity: Recent completions kept for display
            completing_threshold_seconds: "Completing" highlight threshold
            clock: Wall-clock source (timezone aware)
        """
        if cycle_duration_seconds <= 0:
            raise ValueError("Cycle duration must be positive")

        self.stock_creator = stock_creator
        self.output_store = output_store
        self.notifier = notifier
        self.job_archiver = job_archiver

        self.cycle_duration_seconds = cycle_duration_seconds
        self.fast_tick_seconds = fast_tick_seconds
        self.slow_tick_seconds = slow_tick_seconds
        self.completing_threshold_seconds = completing_threshold_seconds
        self.clock = clock or local_now

        self.detector = CompletionDetector()
        self.history = CompletionHistory(history_capacity)

        self._jobs: List[ProductionJob] = []
        self._snapshots: Dict[Union[int, str], ProgressSnapshot] = {}
        self._next_completion: Optional[NextCompletion] = None
        self._archived: Set[Union[int, str]] = set()

        self._timers: List[asyncio.Task] = []
        self._in_flight: Set[asyncio.Task] = set()
        self._disposed = False

    # ========== Lifecycle ==========

    def start(self, jobs: Iterable[ProductionJob]) -> None:
        """
        Take the first job snapshot and arm both timers.

        Snapshots and next completion are computed synchronously so the first
        read is never empty. Must be called from a running event loop.
        """
        if self._disposed:
            return
        self._jobs = list(jobs)
        self.slow_tick()
        self._arm_timers()
        logger.info(f"TickDriver started with {len(self._jobs)} job(s) "
                    f"(fast={self.fast_tick_seconds}s, slow={self.slow_tick_seconds}s)")

    def update_jobs(self, jobs: Iterable[ProductionJob]) -> None:
        """
        Replace the job snapshot supplied by the surrounding layer.

        An empty list cancels both timers; a non-empty one re-arms them.
        """
        if self._disposed:
            return
        self._jobs = list(jobs)

        current_ids = {job.id for job in self._jobs}
        for job_id in list(self.detector.get_all()):
            if job_id not in current_ids:
                self.detector.forget(job_id)
        self._archived &= current_ids

        if not self._jobs:
            self._cancel_timers()
            self._snapshots = {}
            self._next_completion = None
            logger.info("Job list empty, timers cancelled")
            return

        self.slow_tick()
        if not self._timers:
            self._arm_timers()

    def dispose(self) -> None:
        """Cancel both timers. Dispatched side effects keep running."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_timers()
        logger.info(f"TickDriver disposed ({len(self._in_flight)} side effect(s) still in flight)")

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def running(self) -> bool:
        return bool(self._timers) and not self._disposed

    # ========== Ticks ==========

    def fast_tick(self) -> List[asyncio.Task]:
        """
        Detect newly completed units and dispatch side effects.

        Returns:
            Tasks dispatched by this tick (one per job with new units)
        """
        if self._disposed:
            return []

        now = self.clock()
        dispatched = []
        for job in self._jobs:
            if not job.is_running:
                continue

            units_done = units_done_at(job, now, self.cycle_duration_seconds)
            new_units = self.detector.observe(job.id, units_done, job.actual_output)
            if new_units <= 0:
                continue

            cumulative = self.detector.last_observed(job.id)
            logger.info(f"Job {job.id}: {new_units} new unit(s), {cumulative}/{job.expected_output} total")
            dispatched.append(self._dispatch(self._complete_units(job, new_units, cumulative, now)))

        return dispatched

    def slow_tick(self) -> None:
        """Recompute every progress snapshot and the next completion."""
        if self._disposed:
            return

        now = self.clock()
        self._snapshots = {
            job.id: compute_progress(job, now, self.cycle_duration_seconds)
            for job in self._jobs
        }
        self._next_completion = select_next_completion(
            self._jobs, now, self.cycle_duration_seconds, self.completing_threshold_seconds
        )

    # ========== Side Effects ==========

    async def _complete_units(self, job: ProductionJob, new_units: int, cumulative: int,
                              detected_at: datetime) -> None:
        """
        Per-job chain: create stock -> record + notify -> persist output.

        A failed stock creation ends the chain for this job in this tick.
        """
        try:
            await self.stock_creator.create_stock(job, new_units)
        except Exception as e:
            logger.error(f"Job {job.id}: stock creation failed for {new_units} unit(s): {e}")
            self._notify(f"Error creating batch for production {job.id}: {e}", "error")
            return

        event = CompletionEvent(
            job_id=job.id,
            units_newly_completed=new_units,
            detected_at=detected_at,
            cumulative_units=cumulative,
            metadata=job.metadata(),
        )
        self.history.push(event)
        self._notify(f"Batch completed ({new_units} units) from production ID: {job.id}", "success")

        try:
            await self.output_store.persist_actual_output(job.id, cumulative)
        except Exception as e:
            logger.warning(f"Job {job.id}: could not persist actual output {cumulative}: {e}")
            self._notify(f"Error updating production {job.id}: {e}", "error")
            return

        if cumulative >= job.expected_output:
            await self._archive(job)

    async def _archive(self, job: ProductionJob) -> None:
        if self.job_archiver is None or job.id in self._archived:
            return
        self._archived.add(job.id)
        try:
            await self.job_archiver.archive_job(job)
        except Exception as e:
            logger.warning(f"Job {job.id}: archive failed: {e}")
            self._notify(f"Error archiving production {job.id}: {e}", "error")
            return
        logger.info(f"Job {job.id}: expected output {job.expected_output} reached, archived")
        self._notify(f"Production {job.id} complete ({job.expected_output} units)", "success")

    def _notify(self, message: str, level: str = "info") -> None:
        try:
            self.notifier.notify(message, level)
        except Exception as e:
            logger.error(f"Notifier failed: {e}")

    def _dispatch(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    # ========== Timers ==========

    def _arm_timers(self) -> None:
        if self._timers or self._disposed or not self._jobs:
            return
        loop = asyncio.get_running_loop()
        self._timers = [
            loop.create_task(self._run_periodic(self.fast_tick, self.fast_tick_seconds)),
            loop.create_task(self._run_periodic(self.slow_tick, self.slow_tick_seconds)),
        ]

    def _cancel_timers(self) -> None:
        for task in self._timers:
            task.cancel()
        self._timers = []

    async def _run_periodic(self, tick: Callable[[], Any], interval: float) -> None:
        next_due = time.monotonic() + interval
        while not self._disposed:
            await asyncio.sleep(max(0.0, next_due - time.monotonic()))
            if self._disposed:
                return
            try:
                tick()
            except Exception:
                logger.critical(f"{tick.__name__} crashed", exc_info=True)
            next_due += interval
            # Loop was starved (suspended host); resume cadence instead of bursting
            if next_due < time.monotonic():
                next_due = time.monotonic() + interval

    # ========== Read-Only State ==========

    @property
    def jobs(self) -> List[ProductionJob]:
        return list(self._jobs)

    @property
    def snapshots(self) -> Dict[Union[int, str], ProgressSnapshot]:
        return dict(self._snapshots)

    @property
    def next_completion(self) -> Optional[NextCompletion]:
        return self._next_completion

    @property
    def recent_completions(self) -> List[CompletionEvent]:
        return self.history.get_all()

    @property
    def in_flight(self) -> Set[asyncio.Task]:
        return set(self._in_flight)
