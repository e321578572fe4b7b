import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import requests

from production_tracker.collaborators.interfaces import (
    CollaboratorError, IAdapter, JobArchiver, JobSource, OutputStore, StockCreator
)
from production_tracker.scheduler.models import ProductionJob

logger = logging.getLogger("RestBackend")


def format_entry_time(moment: datetime) -> str:
    """Warehouse entry timestamp as the backend stores it: HH:MM:SS - DD/MM/YYYY"""
    return moment.strftime("%H:%M:%S - %d/%m/%Y")


class RestBackend(JobSource, StockCreator, OutputStore, JobArchiver, IAdapter):
    """
    Production backend REST API.

    Blocking HTTP calls run in a worker thread so a slow backend never
    stalls the event loop the ticks run on.
    """
    def __init__(self, base_url: str, timeout: float = 5.0, created_by: int = 1,
                 status_filter: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.created_by = created_by
        self.status_filter = status_filter
        self.session = session or requests.Session()

    def connect(self):
        self.session.headers.update({"Content-Type": "application/json"})

    def disconnect(self):
        self.session.close()

    # --- HTTP ---

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise CollaboratorError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise CollaboratorError(f"{method} {path} returned {response.status_code}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    # --- JobSource ---

    async def fetch_jobs(self) -> List[Dict[str, Any]]:
        params = {"status": self.status_filter} if self.status_filter else None
        body = await self._call("GET", "/production", params=params)

        # Backend wraps rows as {"data": [...]}
        if isinstance(body, dict):
            body = body.get("data")
        if not isinstance(body, list):
            logger.warning("Production list response was not a list, ignoring")
            return []
        return body

    # --- StockCreator ---

    def build_batch_payload(self, job: ProductionJob, unit_count: int,
                            entry_time: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "part_name": job.material_name,
            "machine_name": job.machine_name,
            "mold_code": job.mold_code,
            "quantity": unit_count,
            "warehouse_entry_time": format_entry_time(entry_time or datetime.now()),
            "status": None,  # ungrouped
            "created_by": self.created_by,
        }

    async def create_stock(self, job: ProductionJob, unit_count: int) -> None:
        payload = self.build_batch_payload(job, unit_count)
        await self._call("POST", "/batches", json=payload)
        logger.info(f"Created warehouse batch of {unit_count} for production {job.id}")

    # --- OutputStore ---

    async def persist_actual_output(self, job_id: Union[int, str], cumulative_units: int) -> None:
        await self._call("PUT", f"/production/{job_id}", json={"actual_output": cumulative_units})
        logger.debug(f"Production {job_id} actual_output -> {cumulative_units}")

    # --- JobArchiver ---

    async def archive_job(self, job: ProductionJob) -> None:
        await self._call("POST", f"/production/{job.id}/archive")
        if job.machine_id is not None:
            now = datetime.now()
            await self._call("POST", f"/machines/{job.machine_id}/stop", json={
                "reason": "Production complete - 100% of expected output reached",
                "stopTime": now.strftime("%H:%M:%S"),
                "stopDate": now.strftime("%d/%m/%Y"),
            })
