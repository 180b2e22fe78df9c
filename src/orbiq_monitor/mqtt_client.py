"""MQTT transport: connection, publishing and the connection event stream.

Reconnection is handled by paho's network thread (``connect_async`` plus
``loop_start``). Connection activity is reported as ``ConnectionEvent``
objects on a queue that the supervisor polls.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from queue import Empty, Queue
from typing import Optional

import paho.mqtt.client as mqtt

from .config import Config
from .errors import PublishError
from .homeassistant import Payload

logger = logging.getLogger(__name__)

RECONNECT_MIN_DELAY_SECS = 1
RECONNECT_MAX_DELAY_SECS = 60


class EventKind(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ERROR = "error"


@dataclass
class ConnectionEvent:
    """Something that happened on the broker connection."""

    kind: EventKind
    detail: str = ""


class MQTTClient:
    """Thin wrapper around paho-mqtt with at-least-once publishing."""

    def __init__(self, config: Config):
        self.config = config
        self._client: Optional[mqtt.Client] = None
        self._connected = threading.Event()
        self._events: "Queue[ConnectionEvent]" = Queue()
        self._dry_run = False

        # Stats
        self._messages_published = 0
        self._messages_dropped = 0

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    @property
    def messages_published(self) -> int:
        return self._messages_published

    @property
    def messages_dropped(self) -> int:
        return self._messages_dropped

    def connect(self, dry_run: bool = False) -> None:
        """Start connecting to the broker in the background.

        Returns immediately; the CONNECTED event is emitted once the broker
        acknowledges. Connection failures are retried by paho.
        """
        self._dry_run = dry_run
        mqtt_config = self.config.mqtt

        if dry_run:
            logger.info("Dry run mode - not connecting to MQTT broker")
            self._connected.set()
            self._events.put(ConnectionEvent(EventKind.CONNECTED, "dry run"))
            return

        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id,
            clean_session=False,
        )

        if mqtt_config.username:
            self._client.username_pw_set(mqtt_config.username, mqtt_config.password)

        self._client.reconnect_delay_set(RECONNECT_MIN_DELAY_SECS, RECONNECT_MAX_DELAY_SECS)
        self._client.on_connect = self._on_connect
        self._client.on_connect_fail = self._on_connect_fail
        self._client.on_disconnect = self._on_disconnect
        self._client.on_publish = self._on_publish
        self._client.on_message = self._on_message

        logger.info(f"MQTT broker: {mqtt_config.broker}:{mqtt_config.port}")
        self._client.connect_async(
            mqtt_config.broker, mqtt_config.port, keepalive=mqtt_config.keep_alive_secs
        )
        self._client.loop_start()

    def disconnect(self) -> None:
        """Disconnect from the MQTT broker."""
        if self._client and not self._dry_run:
            self._client.disconnect()
            self._client.loop_stop()

        self._connected.clear()
        logger.info(
            f"Disconnected from MQTT broker "
            f"(published={self._messages_published}, dropped={self._messages_dropped})"
        )

    def publish(self, payload: Payload) -> None:
        """Publish one message with the configured QoS.

        Raises PublishError when the client refuses the message. Delivery
        after acceptance is paho's responsibility.
        """
        if self._dry_run:
            logger.debug(f"[DRY RUN] {payload.topic} (retain={payload.retain}): {payload.body[:100]}")
            self._messages_published += 1
            return

        if self._client is None:
            self._messages_dropped += 1
            raise PublishError(payload.topic, reason="client not started")

        try:
            result = self._client.publish(
                payload.topic, payload.body, qos=self.config.mqtt.qos, retain=payload.retain
            )
        except (ValueError, OSError) as e:
            self._messages_dropped += 1
            raise PublishError(payload.topic, reason=str(e)) from e

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self._messages_dropped += 1
            raise PublishError(payload.topic, rc=result.rc, reason=mqtt.error_string(result.rc))

        self._messages_published += 1
        logger.debug(f"Published to {payload.topic}: {payload.body[:100]}")

    def poll_event(self, timeout: Optional[float] = None) -> Optional[ConnectionEvent]:
        """Next connection event, or None if none arrived within ``timeout``."""
        try:
            return self._events.get(timeout=timeout)
        except Empty:
            return None

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """Handle connection callback."""
        if reason_code == 0:
            self._connected.set()
            self._events.put(ConnectionEvent(EventKind.CONNECTED))
        else:
            self._events.put(ConnectionEvent(EventKind.ERROR, f"Connection refused: {reason_code}"))

    def _on_connect_fail(self, client, userdata) -> None:
        self._events.put(ConnectionEvent(EventKind.ERROR, "Connection attempt failed"))

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """Handle disconnection callback."""
        self._connected.clear()
        if reason_code != 0:
            self._events.put(
                ConnectionEvent(EventKind.DISCONNECTED, f"Unexpected disconnection: {reason_code}")
            )

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None) -> None:
        self._events.put(ConnectionEvent(EventKind.OUTGOING, f"publish acknowledged (mid={mid})"))

    def _on_message(self, client, userdata, msg) -> None:
        self._events.put(ConnectionEvent(EventKind.INCOMING, msg.topic))
