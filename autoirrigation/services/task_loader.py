import logging
from pathlib import Path
from typing import Union

from autoirrigation.core.exceptions import TaskDefinitionError
from autoirrigation.models import TaskDefinition


class TaskDefinitionLoader:
    """Resolves (device ID, task ID) to a `TaskDefinition` stored as JSON.

    Files live at `<tasks_dir>/<deviceID>_<taskID>.json` and are read on every
    call, so edits take effect on the next run without a restart.
    """

    def __init__(self, tasks_dir: Union[str, Path]):
        self.tasks_dir = Path(tasks_dir)
        self.log = logging.getLogger(self.__class__.__name__)

    def path_for(self, device_id: str, task_id: str) -> Path:
        return self.tasks_dir / f"{device_id}_{task_id}.json"

    def load(self, device_id: str, task_id: str) -> TaskDefinition:
        path = self.path_for(device_id, task_id)
        self.log.info(f"Loading task '{task_id}' for device '{device_id}' from {path}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise TaskDefinitionError(f"failed to read task file {path}: {e}") from e

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TaskDefinitionError(f"task file {path} is not valid UTF-8: {e}") from e

        try:
            return TaskDefinition.from_json(text)
        except TaskDefinitionError as e:
            raise TaskDefinitionError(f"invalid task file {path}: {e}") from e
