from datetime import datetime
from unittest.mock import MagicMock

import pytest

from autoirrigation.models import JobRecord, JobStatus
from autoirrigation.services import FrappeHistoryRecorder, InMemoryHistoryRecorder

T0 = datetime(2024, 5, 1, 6, 0, 0)


def record():
    r = JobRecord(device_id="dev", scheduled_at=T0)
    r.mark(JobStatus.STARTED, now=T0)
    return r


@pytest.mark.asyncio
async def test_in_memory_assigns_sequential_ids():
    history = InMemoryHistoryRecorder()

    first = await history.create(record())
    second = await history.create(record())

    assert (first.id, second.id) == ("1", "2")
    assert len(history.records()) == 2


@pytest.mark.asyncio
async def test_in_memory_keeps_copies():
    history = InMemoryHistoryRecorder()
    r = await history.create(record())

    r.finish(JobStatus.COMPLETED, now=T0)
    assert history.get(r.id).status is JobStatus.STARTED

    await history.save(r)
    assert history.get(r.id).status is JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_in_memory_rejects_unknown_records():
    with pytest.raises(KeyError):
        await InMemoryHistoryRecorder().save(record())


@pytest.mark.asyncio
async def test_frappe_insert_and_update():
    client = MagicMock()
    client.insert.return_value = {"name": "IRR-0001"}
    history = FrappeHistoryRecorder("http://frappe", "user", "pwd", client=client)

    r = await history.create(record())
    assert r.id == "IRR-0001"
    doc = client.insert.call_args.args[0]
    assert doc["doctype"] == "Irrigation History"
    assert doc["status"] == "started"

    r.finish(JobStatus.TASK_ERROR, "bad task file", now=T0)
    await history.save(r)
    doc = client.update.call_args.args[0]
    assert doc["name"] == "IRR-0001"
    assert doc["status"] == "task_error"
    assert doc["notes"] == "bad task file"
