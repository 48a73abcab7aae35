"""Daily schedule loop: evaluates every device trigger and launches due jobs."""
from __future__ import annotations
import asyncio, logging
from datetime import datetime, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Set

from autoirrigation.core.exceptions import DeviceJobError
from autoirrigation.models import DeviceConfig
from .base_trigger import TriggerStrategy
from .trigger_factory import TriggerStrategyFactory


class JobClock:
    def __init__(self, orchestrator, devices: Iterable[DeviceConfig], tz: Optional[tzinfo] = None, *,
                 max_check_interval: float = 30.0,
                 now: Optional[Callable[[], datetime]] = None):
        self.orchestrator = orchestrator
        self.tz = tz
        self.max_check_interval = max_check_interval
        self._now = now or (lambda: datetime.now(self.tz))
        self.log = logging.getLogger(self.__class__.__name__)
        self.triggers: Dict[str, List[TriggerStrategy]] = {}
        for device in devices:
            triggers = TriggerStrategyFactory.create_for_device(device)
            if triggers:
                self.triggers[device.id] = triggers
                for t in triggers:
                    self.log.info(f"Scheduling {t!r}")
        self._task: Optional[asyncio.Task] = None
        self._jobs: Set[asyncio.Task] = set()

    # ---------- lifecycle ------------------------------------------------- #
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self.log.info(f"Job clock started with {sum(map(len, self.triggers.values()))} triggers")
        self._task = asyncio.create_task(self._run(), name="job-clock")

    async def stop(self):
        self.log.info("Stopping job clock...")
        pending = [t for t in (self._task, *self._jobs) if t is not None and not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._task = None
        self._jobs.clear()

    # ---------- loop ------------------------------------------------------ #
    async def tick(self) -> List[str]:
        """Evaluate every trigger once; returns the device IDs launched."""
        now = self._now()
        launched = []
        for device_id, triggers in self.triggers.items():
            for trigger in triggers:
                if await trigger.should_trigger(now):
                    self.log.info(f"{trigger!r} fired at {now:%Y-%m-%d %H:%M:%S}")
                    self._launch(device_id)
                    launched.append(device_id)
        return launched

    def next_interval(self) -> float:
        now = self._now()
        intervals = [t.get_next_check_interval(now) for ts in self.triggers.values() for t in ts]
        return min([self.max_check_interval, *intervals])

    async def _run(self):
        while True:
            await self.tick()
            await asyncio.sleep(max(self.next_interval(), 0.1))

    def _launch(self, device_id: str):
        task = asyncio.create_task(self._run_job(device_id), name=f"job-{device_id}")
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)

    async def _run_job(self, device_id: str):
        try:
            await self.orchestrator.run_scheduled(device_id)
        except DeviceJobError as e:
            self.log.error(f"Scheduled job failed: {e}")
        except asyncio.CancelledError:
            self.log.warning(f"Scheduled job for {device_id} cancelled")
            raise
        except Exception:
            self.log.exception(f"Scheduled job for {device_id} crashed")
