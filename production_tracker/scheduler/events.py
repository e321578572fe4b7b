"""
Completion Events

Ephemeral records of newly completed units and the bounded recent-history
list kept for display.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Union


@dataclass(frozen=True)
class CompletionEvent:
    """
    Newly completed units of one job, detected in one fast tick.
    """
    job_id: Union[int, str]
    units_newly_completed: int
    detected_at: datetime
    cumulative_units: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (f"CompletionEvent(job={self.job_id}, +{self.units_newly_completed}, "
                f"total={self.cumulative_units}, at={self.detected_at.isoformat()})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "units_newly_completed": self.units_newly_completed,
            "cumulative_units": self.cumulative_units,
            "detected_at": self.detected_at.isoformat(),
            "material_name": self.metadata.get("material_name"),
            "machine_name": self.metadata.get("machine_name"),
        }


class CompletionHistory:
    """
    Fixed-capacity recent completions, newest first.

    Oldest entries are evicted once capacity is reached.
    """

    def __init__(self, capacity: int = 5):
        if capacity < 1:
            raise ValueError("History capacity must be positive")
        self._events: Deque[CompletionEvent] = deque(maxlen=capacity)

    def push(self, event: CompletionEvent) -> None:
        self._events.appendleft(event)

    def get_all(self) -> List[CompletionEvent]:
        """Newest first"""
        return list(self._events)
