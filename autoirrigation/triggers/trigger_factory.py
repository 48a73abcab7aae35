from typing import Dict, List, Type
from .base_trigger import TriggerStrategy
from .time_trigger import DailyTimeTrigger
from autoirrigation.models import DeviceConfig


class TriggerStrategyFactory:
    """Factory for creating trigger strategy instances"""

    _strategy_registry: Dict[str, Type[TriggerStrategy]] = {
        "daily": DailyTimeTrigger,
    }

    @classmethod
    def create_for_device(cls, device: DeviceConfig, strategy_type: str = "daily") -> List[TriggerStrategy]:
        """One trigger per configured schedule time; an empty list for unscheduled devices."""
        if strategy_type not in cls._strategy_registry:
            raise ValueError(f"Unknown trigger strategy: {strategy_type}")
        strategy_class = cls._strategy_registry[strategy_type]
        return [strategy_class(device.id, at) for at in device.schedule_clock_times()]
