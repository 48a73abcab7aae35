"""
Message bus framework
Abstract message sink shared by the MQTT gateway and in-memory test buses
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Set
from enum import Enum
import logging
import threading

from autoirrigation.mapping import StatusDispatcher, StatusField


class ConnectionState(Enum):
    """Connection state enumeration."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


class BusClientConfig:
    """Configuration class for message bus clients."""

    def __init__(self,
                 broker: str,
                 client_id: str = "auto-irrigation",
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 qos: int = 1,
                 keepalive: int = 60,
                 connect_timeout: float = 30.0,
                 publish_timeout: float = 5.0,
                 retry_delay: int = 1,
                 max_retry_delay: int = 60):
        self.broker = broker
        self.client_id = client_id
        self.username = username
        self.password = password
        self.qos = qos
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay


def status_topic(device_id: str, path: str) -> str:
    return f"{device_id}/status/{path}"


def command_topic(device_id: str, path: str) -> str:
    return f"{device_id}/cmd/{path}"


def device_status_topics(device_id: str) -> List[str]:
    """Every inbound status topic of one device."""
    return [status_topic(device_id, f.suffix) for f in StatusField]


class MessageBus(ABC):
    """
    Message sink the orchestrator talks to.

    Implementations publish commands with at-least-once acknowledgement and
    feed inbound status messages into a `StatusDispatcher`. Devices passed to
    `subscribe_device` are remembered so that a reconnect can restore their
    subscriptions.
    """

    def __init__(self, dispatcher: StatusDispatcher):
        self.dispatcher = dispatcher
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connection_state = ConnectionState.DISCONNECTED
        self.subscribed_devices: Set[str] = set()
        self._devices_lock = threading.Lock()

    # Context manager protocol
    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False

    @abstractmethod
    async def connect(self):
        """Establish the connection; raises BusConnectionError when unreachable."""
        pass

    @abstractmethod
    async def disconnect(self):
        pass

    @abstractmethod
    async def publish(self, topic: str, payload: Any):
        """Publish with delivery acknowledgement; raises PublishError on failure."""
        pass

    @abstractmethod
    def _subscribe_topics(self, device_id: str, topics: List[str]) -> None:
        """Issue the transport subscription for one device."""
        pass

    def subscribe_device(self, device_id: str) -> None:
        """Subscribe to the status topics of a device and remember it."""
        with self._devices_lock:
            self.subscribed_devices.add(device_id)
        if self.is_connected():
            self._subscribe_topics(device_id, device_status_topics(device_id))
        else:
            self.logger.info(f"Deferring subscription for {device_id} until connected")

    def resubscribe_all(self) -> None:
        with self._devices_lock:
            devices = sorted(self.subscribed_devices)
        for device_id in devices:
            self.logger.info(f"Re-subscribing to topics for device: {device_id}")
            self._subscribe_topics(device_id, device_status_topics(device_id))

    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED
