"""
Centralised exception definitions for the irrigation orchestrator.
All custom exceptions should inherit from IrrigationError.
"""
from typing import List, Optional


class IrrigationError(Exception):
    """Base class for every custom exception thrown by this project."""


class ConfigurationError(IrrigationError):
    """Raised when configuration files or environment variables are invalid.

    Carries every violation found so a broken device file is reported once,
    not one field at a time.
    """

    def __init__(self, message: str, violations: Optional[List[str]] = None):
        self.violations = list(violations or [])
        if self.violations:
            message = f"{message}:\n  - " + "\n  - ".join(self.violations)
        super().__init__(message)


class BusConnectionError(IrrigationError):
    """The message broker could not be reached."""


class PublishError(IrrigationError):
    """A command was not acknowledged by the broker (transport error or ack timeout)."""


class TaskDefinitionError(IrrigationError):
    """A task descriptor is missing or malformed."""


class NotificationError(IrrigationError):
    """Slack rejected a message or could not be reached."""


class DeviceNotFoundError(IrrigationError):
    """A device ID was requested that is not part of the configuration."""


class DeviceJobError(IrrigationError):
    """A device job ended in a failed state; the outcome is attached."""

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(f"job for device '{outcome.device_id}' failed: {outcome.error}")


class JobRecordError(IrrigationError):
    """A terminal job record was mutated."""


class InvalidTransitionError(IrrigationError):
    """The job state machine refused a transition."""
