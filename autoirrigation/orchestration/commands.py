from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict
import asyncio
import logging
import time

from autoirrigation.core.exceptions import PublishError, TaskDefinitionError
from autoirrigation.core.patterns import wait_for
from autoirrigation.mapping import DeviceStatusStore
from autoirrigation.models import DeviceConfig, JobStatus
from autoirrigation.protocols import MessageBus, command_topic
from autoirrigation.services import TaskDefinitionLoader


@dataclass
class OrchestratorConfig:
    calibration_timeout: float = 120.0
    poll_interval: float = 2.0
    settle_delay: float = 3.0


@dataclass
class JobContext:
    """Everything a device command needs; one per device job."""
    device: DeviceConfig
    bus: MessageBus
    store: DeviceStatusStore
    task_loader: TaskDefinitionLoader
    config: OrchestratorConfig
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


def succeeded(**extra) -> Dict[str, Any]:
    return {"success": True, **extra}


def failed(status: JobStatus, error: str, title: str) -> Dict[str, Any]:
    return {"success": False, "status": status, "error": error, "title": title}


class DeviceCommand(ABC):
    """Base class for the steps of a device job.

    `execute` never raises for business failures; it returns a result dict
    with `success` and, on failure, the terminal `status`, an `error` note and
    a notification `title`.
    """

    def __init__(self, context: JobContext):
        self.context = context
        self.device_id = context.device.id
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def execute(self) -> Dict[str, Any]:
        pass

    async def _publish(self, path: str, payload: Any) -> None:
        await self.context.bus.publish(command_topic(self.device_id, path), payload)

    async def _wait_for_flag(self, attribute: str, timeout: float) -> bool:
        store = self.context.store
        return await wait_for(
            lambda: getattr(store.get(self.device_id), attribute),
            timeout=timeout,
            interval=self.context.config.poll_interval,
            clock=self.context.clock,
            sleep=self.context.sleep,
            label=f"{self.device_id} {attribute}",
        )


class CalibrateAxisCommand(DeviceCommand):
    """Homes one actuator axis (`sprinkler` or `valve`) unless it already reports calibrated."""

    AXES = {
        "sprinkler": "sprinkler_calib_complete",
        "valve": "valve_calib_complete",
    }

    def __init__(self, context: JobContext, axis: str):
        super().__init__(context)
        if axis not in self.AXES:
            raise ValueError(f"unknown calibration axis: {axis}")
        self.axis = axis
        self.flag = self.AXES[axis]

    def already_calibrated(self) -> bool:
        return getattr(self.context.store.get(self.device_id), self.flag)

    async def execute(self) -> Dict[str, Any]:
        if self.already_calibrated():
            self.logger.info(f"{self.axis.capitalize()} for device {self.device_id} is already calibrated. Skipping.")
            return succeeded(skipped=True)

        self.logger.info(f"Calibrating {self.axis} for device {self.device_id}...")
        try:
            await self._publish(f"{self.axis}/home", "1")
        except PublishError as e:
            return failed(JobStatus.FAILED, f"{self.axis.capitalize()} calibration command failed: {e}",
                          "Calibration Error")

        if not await self._wait_for_flag(self.flag, self.context.config.calibration_timeout):
            return failed(JobStatus.CALIBRATION_TIMEOUT,
                          f"Timeout waiting for {self.axis} calibration on device {self.device_id}",
                          "Calibration Timeout")

        self.logger.info(f"{self.axis.capitalize()} calibration completed for device {self.device_id}")
        return succeeded(skipped=False)


class RunTaskCommand(DeviceCommand):
    """Runs one externally defined task and waits for the device to report completion."""

    def __init__(self, context: JobContext, task_id: str):
        super().__init__(context)
        self.task_id = task_id

    async def execute(self) -> Dict[str, Any]:
        # every task starts from a clean status so a stale completion flag cannot leak in
        self.context.store.reset(self.device_id)

        try:
            task = self.context.task_loader.load(self.device_id, self.task_id)
        except TaskDefinitionError as e:
            return failed(JobStatus.TASK_ERROR, str(e), "Task Error")

        self.logger.info(f"Publishing task '{self.task_id}' payload for device '{self.device_id}'")
        try:
            await self._publish("task/set", task.encoded_payload)
        except PublishError as e:
            return failed(JobStatus.FAILED, f"Task '{self.task_id}' command failed: {e}", "Task Error")

        settle = self.context.config.settle_delay
        if settle > 0:
            self.logger.info(f"Waiting {settle:g} seconds after publishing task...")
            await self.context.sleep(settle)

        self.logger.info(f"Waiting for task completion flag with timeout: {task.timeout_minutes} minutes")
        if not await self._wait_for_flag("task_all_complete", task.timeout_seconds):
            return failed(JobStatus.TASK_TIMEOUT,
                          f"Task '{self.task_id}' for device '{self.device_id}' timed out "
                          f"after {task.timeout_minutes} minutes.",
                          "Task Timeout")

        self.logger.info(f"Task '{self.task_id}' completed successfully for device '{self.device_id}'.")
        return succeeded(task_id=self.task_id)


class TriggerPlantPotCommand(DeviceCommand):
    """Opens the solenoid valve of a healthy plant pot for the configured duration."""

    async def execute(self) -> Dict[str, Any]:
        if not self.context.store.get(self.device_id).health_check:
            return failed(JobStatus.FAILED,
                          f"Health check failed for plant pot {self.device_id}. Aborting job for this device.",
                          f"Plant Pot {self.device_id}")

        self.logger.info(f"Health check passed for {self.device_id}.")
        duration = self.context.device.schedule_duration
        try:
            await self._publish("trigger_solenoid_valve", str(duration))
        except PublishError as e:
            return failed(JobStatus.FAILED, f"Solenoid valve trigger failed: {e}", f"Plant Pot {self.device_id}")

        self.logger.info(f"Triggered solenoid valve for {self.device_id} for {duration} seconds")
        return succeeded()
