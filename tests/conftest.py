import asyncio
from typing import Any, Callable, List, Optional, Set, Tuple

import httpx
import pytest

from autoirrigation.core.exceptions import PublishError
from autoirrigation.mapping import DeviceStatusStore, StatusDispatcher
from autoirrigation.protocols import ConnectionState, MessageBus
from autoirrigation.services import InMemoryHistoryRecorder, SlackNotifier, TaskDefinitionLoader


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeBus(MessageBus):
    """In-memory message sink; `on_publish` lets a test play the device."""

    def __init__(self, dispatcher: StatusDispatcher):
        super().__init__(dispatcher)
        self.published: List[Tuple[str, Any]] = []
        self.subscriptions: List[Tuple[str, List[str]]] = []
        self.on_publish: Optional[Callable[[str, Any], None]] = None
        self.fail_topics: Set[str] = set()

    async def connect(self):
        self.connection_state = ConnectionState.CONNECTED
        self.resubscribe_all()

    async def disconnect(self):
        self.connection_state = ConnectionState.DISCONNECTED

    async def publish(self, topic: str, payload: Any):
        if topic in self.fail_topics:
            raise PublishError(f"timeout publishing to topic {topic}")
        self.published.append((topic, payload))
        if self.on_publish is not None:
            self.on_publish(topic, payload)

    def _subscribe_topics(self, device_id: str, topics: List[str]) -> None:
        self.subscriptions.append((device_id, topics))

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.published]

    def report(self, device_id: str, path: str, value: str):
        """Simulate a device status message."""
        self.dispatcher.dispatch(f"{device_id}/status/{path}", value.encode())


class RecordingNotifier(SlackNotifier):
    """Enabled notifier that keeps what it would have sent."""

    def __init__(self):
        super().__init__("xoxb-test", "C123")
        self.sent: List[Tuple[str, str]] = []

    async def _post(self, message):
        tag, _, rest = message["text"].partition("] ")
        self.sent.append((tag.lstrip("["), rest))

    def severities(self) -> List[str]:
        return [tag for tag, _ in self.sent]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return DeviceStatusStore()


@pytest.fixture
def dispatcher(store):
    return StatusDispatcher(store)


@pytest.fixture
def bus(dispatcher):
    bus = FakeBus(dispatcher)
    bus.connection_state = ConnectionState.CONNECTED
    return bus


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def history():
    return InMemoryHistoryRecorder()


@pytest.fixture
def tasks_dir(tmp_path):
    path = tmp_path / "tasks"
    path.mkdir()
    return path


@pytest.fixture
def task_loader(tasks_dir):
    return TaskDefinitionLoader(tasks_dir)


@pytest.fixture
def slack_transport():
    """MockTransport that answers from a queue of (status, json) pairs and records requests."""

    class Transport:
        def __init__(self):
            self.responses: List[Tuple[int, dict]] = []
            self.requests: List[httpx.Request] = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            status, body = self.responses.pop(0) if self.responses else (200, {"ok": True})
            return httpx.Response(status, json=body)

        def transport(self) -> httpx.MockTransport:
            return httpx.MockTransport(self.handler)

    return Transport()
