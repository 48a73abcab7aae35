from datetime import datetime, time, timedelta
from typing import Optional
from .base_trigger import TriggerStrategy


class DailyTimeTrigger(TriggerStrategy):
    """Fires once per calendar day when the wall clock passes `at`.

    The first evaluation only arms the trigger: if today's time has already
    gone by, the next firing is tomorrow. Days missed while the process was
    not evaluating (sleep, downtime) are skipped, not caught up.
    """

    def __init__(self, device_id: str, at: time):
        super().__init__(device_id)
        self.at = at
        self.next_fire: Optional[datetime] = None

    def _at_on(self, day, now: datetime) -> datetime:
        return datetime.combine(day, self.at, tzinfo=now.tzinfo)

    async def should_trigger(self, now: datetime) -> bool:
        if self.next_fire is None:
            self.next_fire = self._at_on(now.date(), now)
            if self.next_fire <= now:
                self.next_fire += timedelta(days=1)
            return False

        if now < self.next_fire:
            return False

        self.last_execution = now
        self.execution_count += 1
        next_fire = self._at_on(self.next_fire.date() + timedelta(days=1), now)
        while next_fire <= now:
            next_fire += timedelta(days=1)
        self.next_fire = next_fire
        return True

    def get_next_check_interval(self, now: datetime) -> float:
        if self.next_fire is None:
            return 0.0  # Arm immediately
        return max(0.0, (self.next_fire - now).total_seconds())

    def reset_state(self) -> None:
        self.next_fire = None
        self.last_execution = None
        self.execution_count = 0

    def __repr__(self):
        return f"DailyTimeTrigger({self.device_id!r}, {self.at.strftime('%H:%M')})"
