from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
import asyncio
import logging
import time

from autoirrigation.core.exceptions import DeviceJobError, DeviceNotFoundError
from autoirrigation.mapping import DeviceStatusStore
from autoirrigation.models import DeviceConfig, DeviceType, JobRecord, JobStatus
from autoirrigation.protocols import MessageBus
from autoirrigation.services import HistoryRecorder, SlackNotifier, TaskDefinitionLoader
from .commands import (
    CalibrateAxisCommand,
    JobContext,
    OrchestratorConfig,
    RunTaskCommand,
    TriggerPlantPotCommand,
    succeeded,
    failed,
)
from .state_machine import JobState, JobStateMachine


@dataclass
class JobOutcome:
    device_id: str
    state: JobState
    status: Optional[JobStatus] = None      # None when the device was skipped
    skipped: bool = False
    error: Optional[str] = None
    record_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.skipped or self.status is JobStatus.COMPLETED


class IrrigationOrchestrator:
    """Runs device jobs: calibration and task sequences for sprinklers, valve triggers for plant pots.

    Jobs for the same device never overlap; a second invocation waits for the
    first to finish. Each job is tracked by its own `JobStateMachine` and one
    `JobRecord` in the history.
    """

    def __init__(self,
                 devices: Iterable[DeviceConfig],
                 bus: MessageBus,
                 store: DeviceStatusStore,
                 task_loader: TaskDefinitionLoader,
                 notifier: SlackNotifier,
                 history: HistoryRecorder,
                 config: Optional[OrchestratorConfig] = None,
                 *,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 now: Callable[[], datetime] = datetime.now):
        self.devices: List[DeviceConfig] = list(devices)
        self.bus = bus
        self.store = store
        self.task_loader = task_loader
        self.notifier = notifier
        self.history = history
        self.config = config or OrchestratorConfig()
        self.clock = clock
        self.sleep = sleep
        self.now = now
        self._locks: Dict[str, asyncio.Lock] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    # ---------- entry points ---------------------------------------------- #
    async def run_all_once(self) -> List[JobOutcome]:
        """Run every configured device once, in configuration order."""
        self.logger.info("Starting manual run for all devices...")
        await self.notifier.info("Manual Run Started", "Manual run for all devices has commenced.")

        outcomes = [await self._run_device(device) for device in self.devices]

        failures = [o.device_id for o in outcomes if not o.succeeded]
        self.logger.info(f"Manual run for all devices finished ({len(failures)} failed)")
        await self.notifier.success("Manual Run Completed", "Finished processing all devices for the manual run.")
        return outcomes

    async def run_for_device(self, device_id: str) -> JobOutcome:
        """Run one device; raises DeviceJobError if its job fails."""
        device = self.get_device(device_id)
        outcome = await self._run_device(device)
        if not outcome.succeeded:
            raise DeviceJobError(outcome)
        return outcome

    async def run_scheduled(self, device_id: str) -> JobOutcome:
        self.logger.info(f"Scheduled run triggered for device {device_id}")
        return await self.run_for_device(device_id)

    def get_device(self, device_id: str) -> DeviceConfig:
        for device in self.devices:
            if device.id == device_id:
                return device
        raise DeviceNotFoundError(f"device '{device_id}' is not configured")

    # ---------- job execution --------------------------------------------- #
    async def _run_device(self, device: DeviceConfig) -> JobOutcome:
        lock = self._locks.setdefault(device.id, asyncio.Lock())
        if lock.locked():
            self.logger.info(f"Job for device {device.id} already running; waiting for it to finish")
        async with lock:
            return await self._execute_job(device)

    async def _execute_job(self, device: DeviceConfig) -> JobOutcome:
        self.logger.info(f"Starting job for device {device.id} of type {device.raw_type}")
        if device.type is DeviceType.UNRECOGNIZED:
            self.logger.warning(f"Unknown device type '{device.raw_type}' for device '{device.id}'. Skipping.")
            return JobOutcome(device.id, JobState.SCHEDULED, skipped=True)

        machine = JobStateMachine(device.id)
        record = JobRecord(device_id=device.id, scheduled_at=self.now())
        machine.transition_to(JobState.STARTED)
        record.mark(JobStatus.STARTED, f"Processing device: {device.id}", now=record.scheduled_at)
        await self._create_record(record)

        context = JobContext(device, self.bus, self.store, self.task_loader,
                             self.config, self.clock, self.sleep)
        try:
            if device.type is DeviceType.SPRINKLER:
                result = await self._run_sprinkler(context, machine)
            else:
                result = await self._run_plant_pot(context, machine)
        except Exception as e:
            self.logger.exception(f"Unexpected error processing device {device.id}")
            result = failed(JobStatus.FAILED, f"Unexpected error: {e}", f"ERROR: Device {device.id}")

        if result["success"]:
            machine.transition_to(JobState.COMPLETED)
            record.finish(JobStatus.COMPLETED, result.get("notes"), now=self.now())
            await self._save_record(record)
            self.logger.info(f"Successfully completed job for device {device.id}")
            await self.notifier.success(result["title"], result["notes"])
            return JobOutcome(device.id, machine.current_state, record.status, record_id=record.id)

        machine.fail()
        record.finish(result["status"], result["error"], now=self.now())
        await self._save_record(record)
        self.logger.error(f"Error processing device {device.id}: {result['error']}")
        await self.notifier.error(result["title"], result["error"])
        return JobOutcome(device.id, machine.current_state, record.status,
                          error=result["error"], record_id=record.id)

    async def _run_sprinkler(self, context: JobContext, machine: JobStateMachine) -> Dict[str, Any]:
        device_id = context.device.id
        self.logger.info(f"Starting calibration check for device {device_id}...")
        for axis, state in (("sprinkler", JobState.CALIBRATING_SPRINKLER),
                            ("valve", JobState.CALIBRATING_VALVE)):
            command = CalibrateAxisCommand(context, axis)
            if not command.already_calibrated():
                machine.transition_to(state)
            result = await command.execute()
            if not result["success"]:
                return result

        machine.transition_to(JobState.RUNNING_TASKS)
        self.logger.info(f"Starting {len(context.device.task_ids)} tasks for device {device_id}...")
        for task_id in context.device.task_ids:
            result = await RunTaskCommand(context, task_id).execute()
            if not result["success"]:
                return result

        return succeeded(title=f"Irrigation Completed: {device_id}",
                         notes="All tasks completed successfully.")

    async def _run_plant_pot(self, context: JobContext, machine: JobStateMachine) -> Dict[str, Any]:
        device_id = context.device.id
        await self.notifier.info(f"Plant Pot Job Started: {device_id}", "Starting health check and watering process.")
        machine.transition_to(JobState.TRIGGERING)
        result = await TriggerPlantPotCommand(context).execute()
        if not result["success"]:
            return result
        return succeeded(title=f"Plant Pot Job Completed: {device_id}",
                         notes=f"Successfully triggered solenoid valve for plant pot {device_id}.")

    # ---------- history --------------------------------------------------- #
    async def _create_record(self, record: JobRecord):
        try:
            await self.history.create(record)
        except Exception:
            self.logger.exception(f"Failed to create job record for device {record.device_id}")

    async def _save_record(self, record: JobRecord):
        if record.id is None:
            self.logger.warning(f"Job record for device {record.device_id} was never created; not saving")
            return
        try:
            await self.history.save(record)
        except Exception:
            self.logger.exception(f"Failed to save job record {record.id} for device {record.device_id}")
