"""
Tracker Service

Wires collaborators to a TickDriver and keeps its job list fresh.

The job list is polled here, at its own cadence, and handed to the driver as
a snapshot; the driver never fetches jobs itself.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from production_tracker.collaborators.interfaces import CollaboratorError, IAdapter, Notifier
from production_tracker.collaborators.notifiers import LogNotifier, MQTTNotifier
from production_tracker.collaborators.rest import RestBackend
from production_tracker.scheduler import TickDriver, parse_jobs

logger = logging.getLogger("TrackerService")


def build_notifier(config: Dict[str, Any]) -> Notifier:
    if config.get("notifier") == "mqtt":
        return MQTTNotifier(config["mqtt_broker"], config["mqtt_port"], config["mqtt_topic"])
    return LogNotifier()


def build_backend(config: Dict[str, Any]) -> RestBackend:
    return RestBackend(
        config["api_url"],
        timeout=config["request_timeout_seconds"],
        created_by=config["created_by"],
        status_filter=config.get("job_status_filter"),
    )


class TrackerService:
    def __init__(self, config: Dict[str, Any], backend=None, notifier: Optional[Notifier] = None,
                 clock=None):
        self.config = config
        self.backend = backend or build_backend(config)
        self.notifier = notifier or build_notifier(config)
        self.driver = TickDriver(
            stock_creator=self.backend,
            output_store=self.backend,
            notifier=self.notifier,
            job_archiver=self.backend,
            cycle_duration_seconds=config["cycle_duration_seconds"],
            fast_tick_seconds=config["fast_tick_seconds"],
            slow_tick_seconds=config["slow_tick_seconds"],
            history_capacity=config["history_capacity"],
            completing_threshold_seconds=config["completing_threshold_seconds"],
            clock=clock,
        )
        self._poll_task: Optional[asyncio.Task] = None

    async def load_jobs(self):
        """Fetch and validate the current job list (None if the source failed)."""
        try:
            records = await self.backend.fetch_jobs()
        except CollaboratorError as e:
            logger.warning(f"Job list refresh failed: {e}")
            return None
        return parse_jobs(records)

    async def refresh_jobs(self) -> None:
        jobs = await self.load_jobs()
        if jobs is None:
            return  # keep the previous snapshot
        self.driver.update_jobs(jobs)

    async def start(self) -> None:
        for adapter in (self.backend, self.notifier):
            if isinstance(adapter, IAdapter):
                adapter.connect()

        jobs = await self.load_jobs()
        self.driver.start(jobs or [])
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_jobs())
        logger.info(f"Tracker started against {self.config['api_url']}")

    async def stop(self) -> None:
        if self._poll_task:
            self._poll_task.cancel()
            self._poll_task = None
        self.driver.dispose()
        for adapter in (self.backend, self.notifier):
            if isinstance(adapter, IAdapter):
                adapter.disconnect()
        logger.info("Tracker stopped")

    async def _poll_jobs(self) -> None:
        interval = self.config["job_refresh_seconds"]
        while not self.driver.disposed:
            await asyncio.sleep(interval)
            try:
                await self.refresh_jobs()
            except Exception:
                logger.critical("Job refresh crashed", exc_info=True)

    def get_state(self) -> Dict[str, Any]:
        """Read-only view for the UI layer."""
        next_completion = self.driver.next_completion
        return {
            "progress": {str(k): v.to_dict() for k, v in self.driver.snapshots.items()},
            "next_completion": next_completion.to_dict() if next_completion else None,
            "recent_completions": [e.to_dict() for e in self.driver.recent_completions],
        }
