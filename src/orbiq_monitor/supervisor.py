"""Watches the broker connection's event stream."""

import logging
import threading
from typing import Callable, Optional

from .mqtt_client import ConnectionEvent, EventKind, MQTTClient

logger = logging.getLogger(__name__)

ERROR_BACKOFF_SECS = 5.0
POLL_TIMEOUT_SECS = 0.5


class ConnectionSupervisor:
    """Logs connection activity and backs off after errors.

    Reconnecting is left to the transport; the supervisor only keeps
    polling so that errors never take the process down.
    """

    def __init__(
        self,
        client: MQTTClient,
        backoff_secs: float = ERROR_BACKOFF_SECS,
        poll_timeout_secs: float = POLL_TIMEOUT_SECS,
        on_exit: Optional[Callable[[], None]] = None,
    ):
        self.client = client
        self.backoff_secs = backoff_secs
        self.poll_timeout_secs = poll_timeout_secs
        self.on_exit = on_exit
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.errors_seen = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="connection-supervisor", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def run(self) -> None:
        try:
            while not self._stop.is_set():
                event = self.client.poll_event(timeout=self.poll_timeout_secs)
                if event is not None:
                    self.handle(event)
        finally:
            if self.on_exit:
                self.on_exit()

    def handle(self, event: ConnectionEvent) -> None:
        if event.kind is EventKind.CONNECTED:
            logger.info("Connected to MQTT broker")
        elif event.kind is EventKind.DISCONNECTED:
            self.errors_seen += 1
            logger.warning(f"Lost connection to MQTT broker ({event.detail})")
            self._back_off()
        elif event.kind is EventKind.ERROR:
            self.errors_seen += 1
            logger.error(f"MQTT Error: {event.detail}")
            self._back_off()
        else:
            logger.debug(f"MQTT {event.kind.value}: {event.detail}")

    def _back_off(self) -> None:
        logger.info(f"Attempting to reconnect in {self.backoff_secs:g} seconds...")
        self._stop.wait(self.backoff_secs)
