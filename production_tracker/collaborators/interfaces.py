from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from production_tracker.scheduler.models import ProductionJob


class CollaboratorError(Exception):
    """An external system (backend API, broker) failed to perform a call."""


class JobSource(ABC):
    """
    Interface for production job sources (e.g. the REST backend).
    """
    @abstractmethod
    async def fetch_jobs(self) -> List[Dict[str, Any]]:
        """
        Reads the current production records.
        Returns raw rows; validation happens in parse_jobs().
        """
        pass


class StockCreator(ABC):
    """
    Interface for warehouse stock creation.
    Must tolerate duplicate calls; the tracker does not reconcile retries.
    """
    @abstractmethod
    async def create_stock(self, job: ProductionJob, unit_count: int) -> None:
        """Raises CollaboratorError on failure."""
        pass


class OutputStore(ABC):
    """
    Interface for writing a job's cumulative actual output back.
    """
    @abstractmethod
    async def persist_actual_output(self, job_id: Union[int, str], cumulative_units: int) -> None:
        """Best effort. Raises CollaboratorError on failure."""
        pass


class JobArchiver(ABC):
    """
    Interface for retiring a job once its expected output is reached.
    """
    @abstractmethod
    async def archive_job(self, job: ProductionJob) -> None:
        pass


class Notifier(ABC):
    """
    Interface for user-facing notifications (toasts, MQTT, log).
    Fire-and-forget: implementations must not block.
    """
    @abstractmethod
    def notify(self, message: str, level: str = "info") -> None:
        pass


class IAdapter(ABC):
    @abstractmethod
    def connect(self):
        pass

    @abstractmethod
    def disconnect(self):
        pass
