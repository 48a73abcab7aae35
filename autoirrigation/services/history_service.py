# history_service.py

import asyncio
import dataclasses
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from frappeclient import FrappeClient

from autoirrigation.models import JobRecord

logger = logging.getLogger(__name__)

HISTORY_DOCTYPE = "Irrigation History"


class HistoryRecorder(ABC):
    """Write-only sink for job lifecycle records."""

    @abstractmethod
    async def create(self, record: JobRecord) -> JobRecord:
        """Persist a new record and assign its `id`."""
        pass

    @abstractmethod
    async def save(self, record: JobRecord) -> None:
        """Persist the current state of an existing record."""
        pass


class InMemoryHistoryRecorder(HistoryRecorder):
    """Keeps copies of every saved record; used when no backend is configured."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._records: Dict[str, JobRecord] = {}
        self.saves: List[JobRecord] = []

    async def create(self, record: JobRecord) -> JobRecord:
        record.id = str(next(self._ids))
        self._records[record.id] = dataclasses.replace(record)
        self.saves.append(dataclasses.replace(record))
        return record

    async def save(self, record: JobRecord) -> None:
        if record.id not in self._records:
            raise KeyError(f"unknown job record {record.id}")
        self._records[record.id] = dataclasses.replace(record)
        self.saves.append(dataclasses.replace(record))

    def get(self, record_id: str) -> Optional[JobRecord]:
        return self._records.get(record_id)

    def records(self) -> List[JobRecord]:
        return list(self._records.values())


class FrappeHistoryRecorder(HistoryRecorder):
    """Stores job records as documents of a Frappe doctype.

    frappeclient is synchronous, so every call runs in a worker thread. The
    Frappe document `name` becomes the record id.
    """

    def __init__(self, url: str, user: str, pwd: str, *,
                 doctype: str = HISTORY_DOCTYPE, client: Any = None):
        self.client = client or FrappeClient(url, user, pwd)
        self.doctype = doctype

    async def create(self, record: JobRecord) -> JobRecord:
        doc = {"doctype": self.doctype, **record.to_row()}
        logger.info(f"Inserting {self.doctype} for device={record.device_id}")
        created = await asyncio.to_thread(self.client.insert, doc)
        record.id = created["name"]
        return record

    async def save(self, record: JobRecord) -> None:
        if record.id is None:
            raise ValueError("cannot save a job record that was never created")
        doc = {"doctype": self.doctype, "name": record.id, **record.to_row()}
        logger.info(f"Updating {self.doctype} {record.id}: status={record.status.value}")
        await asyncio.to_thread(self.client.update, doc)
