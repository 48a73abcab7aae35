"""Message bus clients."""

from .base_bus_client import (
    MessageBus,
    BusClientConfig,
    ConnectionState,
    status_topic,
    command_topic,
    device_status_topics,
)

from .mqtt_client import MQTTGateway, parse_broker_url

__all__ = [
    # Base classes
    'MessageBus',
    'BusClientConfig',
    'ConnectionState',
    'status_topic',
    'command_topic',
    'device_status_topics',

    # Implementations
    'MQTTGateway',
    'parse_broker_url',
]
