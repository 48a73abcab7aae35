# autoirrigation/triggers/base_trigger.py
from abc import ABC, abstractmethod
from typing import Optional
from datetime import datetime


class TriggerStrategy(ABC):
    """Abstract base class for schedule trigger strategies"""

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.last_execution: Optional[datetime] = None
        self.execution_count: int = 0

    @abstractmethod
    async def should_trigger(self, now: datetime) -> bool:
        """Determine if the device job is due at `now`"""
        pass

    @abstractmethod
    def get_next_check_interval(self, now: datetime) -> float:
        """Return seconds until the next check should occur"""
        pass

    @abstractmethod
    def reset_state(self) -> None:
        """Reset trigger internal state"""
        pass
