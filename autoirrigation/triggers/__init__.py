"""Schedule trigger strategies, factory and the job clock."""

from .base_trigger import TriggerStrategy
from .time_trigger import DailyTimeTrigger
from .trigger_factory import TriggerStrategyFactory
from .job_clock import JobClock

__all__ = [
    'TriggerStrategy',
    'DailyTimeTrigger',
    'TriggerStrategyFactory',
    'JobClock',
]
