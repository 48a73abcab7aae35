"""
MQTT Message Gateway
paho-mqtt implementation of the MessageBus used by the orchestrator
"""

import asyncio
import json
import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from autoirrigation.core.exceptions import BusConnectionError, PublishError
from autoirrigation.mapping import StatusDispatcher
from autoirrigation.protocols.base_bus_client import BusClientConfig, ConnectionState, MessageBus

TLS_SCHEMES = {"ssl", "tls", "mqtts"}


def parse_broker_url(broker: str) -> Tuple[str, int, bool]:
    """Split `tcp://host:1883` style broker URLs into (host, port, use_tls)."""
    if "://" not in broker:
        broker = f"tcp://{broker}"
    parts = urlsplit(broker)
    use_tls = parts.scheme.lower() in TLS_SCHEMES
    if not parts.hostname:
        raise ValueError(f"MQTT broker host is required, got {broker!r}")
    port = parts.port or (8883 if use_tls else 1883)
    return parts.hostname, port, use_tls


class MQTTGateway(MessageBus):
    """
    MQTT gateway between the orchestrator and the devices.

    Features:
    - QoS 1 publishes that wait for the broker acknowledgement
    - Per-device status subscriptions restored after every reconnect
    - Inbound messages dispatched straight into the status store
    - paho log bridged into Python logging
    """

    def __init__(self, config: BusClientConfig, dispatcher: StatusDispatcher):
        super().__init__(dispatcher)
        self.config = config
        self.client: Optional[mqtt.Client] = None
        self.broker_host, self.broker_port, self.use_tls = parse_broker_url(config.broker)

    def _initialize_client(self):
        """Initialize the paho client and wire its callbacks."""
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id,
            clean_session=True,
            protocol=mqtt.MQTTv311,
        )

        if self.config.username:
            self.client.username_pw_set(self.config.username, self.config.password)

        if self.use_tls:
            self.client.tls_set()

        self.client.reconnect_delay_set(min_delay=self.config.retry_delay,
                                        max_delay=self.config.max_retry_delay)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message
        self.client.on_subscribe = self._on_subscribe
        self.client.on_log = self._on_log

        self.logger.info(f"MQTT client initialized with ID: {self.config.client_id}")

    async def connect(self):
        """Connect to the broker and wait until the session is up.

        Any failure here is fatal for the caller; once connected, paho's
        network loop takes care of reconnecting.
        """
        if self.client is None:
            self._initialize_client()

        self.logger.info(f"Connecting to MQTT broker at {self.broker_host}:{self.broker_port}")
        self.connection_state = ConnectionState.CONNECTING
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=self.config.keepalive)
        except (OSError, ValueError) as e:
            self.connection_state = ConnectionState.ERROR
            raise BusConnectionError(f"MQTT broker {self.broker_host}:{self.broker_port} unreachable: {e}") from e

        self.client.loop_start()

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while not self.client.is_connected():
            if self.connection_state == ConnectionState.ERROR:
                self.client.loop_stop()
                raise BusConnectionError("MQTT broker refused the connection")
            if loop.time() - start_time > self.config.connect_timeout:
                self.client.loop_stop()
                self.connection_state = ConnectionState.ERROR
                raise BusConnectionError(f"Connection timeout after {self.config.connect_timeout}s")
            await asyncio.sleep(0.1)

        self.logger.info("Successfully connected to MQTT broker")

    async def disconnect(self):
        if self.client is None:
            return
        self.logger.info("Disconnecting from MQTT broker")
        self.client.disconnect()
        self.client.loop_stop()
        self.connection_state = ConnectionState.DISCONNECTED

    async def publish(self, topic: str, payload: Any):
        """Publish with QoS 1 and wait for the broker's acknowledgement."""
        if self.client is None or not self.is_connected():
            raise PublishError(f"cannot publish to '{topic}': MQTT client is not connected")

        if isinstance(payload, (dict, list)):
            payload = json.dumps(payload)
        elif not isinstance(payload, (str, bytes)):
            payload = str(payload)

        info = self.client.publish(topic, payload, qos=self.config.qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"error publishing to topic {topic}: {mqtt.error_string(info.rc)}")

        try:
            await asyncio.to_thread(info.wait_for_publish, self.config.publish_timeout)
        except (RuntimeError, ValueError) as e:
            raise PublishError(f"error publishing to topic {topic}: {e}") from e

        if not info.is_published():
            raise PublishError(f"timeout publishing to topic {topic}")

        self.logger.info(f"Published {payload!r} to topic '{topic}'")

    def _subscribe_topics(self, device_id: str, topics: List[str]) -> None:
        result, _mid = self.client.subscribe([(topic, self.config.qos) for topic in topics])
        if result != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error(f"Error subscribing to topics for {device_id}: {mqtt.error_string(result)}")
            return
        self.logger.info(f"Subscribed to {len(topics)} status topics for device: {device_id}")

    # MQTT Event Callbacks (network thread)
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self.logger.error(f"Connection refused by MQTT broker: {reason_code}")
            self.connection_state = ConnectionState.ERROR
            return
        self.logger.info("Connected to MQTT broker")
        self.connection_state = ConnectionState.CONNECTED
        # clean sessions drop subscriptions, so every (re)connect restores them
        self.resubscribe_all()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        if reason_code.is_failure:
            self.logger.warning(f"Connection to MQTT broker lost: {reason_code}")
            self.connection_state = ConnectionState.RECONNECTING
        else:
            self.logger.info("Disconnected from MQTT broker")
            self.connection_state = ConnectionState.DISCONNECTED

    def _on_message(self, client, userdata, msg):
        self.logger.debug(f"Received {msg.payload!r} from topic: {msg.topic}")
        self.dispatcher.dispatch(msg.topic, msg.payload)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        failed = [rc for rc in reason_code_list if rc.is_failure]
        if failed:
            self.logger.warning(f"Subscription {mid} partially refused: {failed}")
        else:
            self.logger.debug(f"Subscription {mid} acknowledged")

    def _on_log(self, client, userdata, level, buf):
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.INFO,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR,
        }
        self.logger.log(level_map.get(level, logging.DEBUG), f"MQTT: {buf}")
