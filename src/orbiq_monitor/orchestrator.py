"""The publish loop.

Each cycle takes a fresh sensor snapshot and, per sensor, publishes:

1. discovery, only until it has succeeded once for that sensor identity,
   followed by availability(online) when it did;
2. the current state, always.

Every ``REFRESH_EVERY_CYCLES`` cycles availability(online) is republished for
the whole snapshot. When shutdown is requested the loop takes one more
snapshot, marks every sensor in it offline and returns.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set, Type

from .catalog import SensorCatalog
from .errors import (
    AvailabilityPublishError,
    DiscoveryPublishError,
    PublishError,
    SensorPublishError,
    StatePublishError,
)
from .homeassistant import (
    DeviceIdentity,
    Payload,
    SensorTopics,
    availability_payload,
    build_sensor_topics,
    sensor_identity,
)
from .mqtt_client import MQTTClient

logger = logging.getLogger(__name__)

REFRESH_EVERY_CYCLES = 20
REFRESH_DELAY_SECS = 0.02
OFFLINE_DELAY_SECS = 0.02
CYCLE_COUNTER_MODULUS = 2 ** 32


@dataclass
class PublishState:
    """What has been published so far in this process."""

    discovered: Set[str] = field(default_factory=set)
    cycle: int = 0

    def is_discovered(self, identity: str) -> bool:
        return identity in self.discovered

    def mark_discovered(self, identity: str) -> None:
        self.discovered.add(identity)

    def advance(self) -> int:
        self.cycle = (self.cycle + 1) % CYCLE_COUNTER_MODULUS
        return self.cycle

    def refresh_due(self, every: int = REFRESH_EVERY_CYCLES) -> bool:
        return self.cycle % every == 0


class PublishOrchestrator:
    """Runs publish cycles until shutdown is requested.

    The orchestrator is the only reader and writer of its ``PublishState``.
    """

    def __init__(
        self,
        catalog: SensorCatalog,
        client: MQTTClient,
        device: DeviceIdentity,
        update_interval_secs: float = 30,
        discovery_delay_secs: float = 0.1,
        startup_delay_secs: float = 0,
        shutdown: Optional[threading.Event] = None,
        state: Optional[PublishState] = None,
        refresh_every: int = REFRESH_EVERY_CYCLES,
        refresh_delay_secs: float = REFRESH_DELAY_SECS,
        offline_delay_secs: float = OFFLINE_DELAY_SECS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.catalog = catalog
        self.client = client
        self.device = device
        self.update_interval_secs = update_interval_secs
        self.discovery_delay_secs = discovery_delay_secs
        self.startup_delay_secs = startup_delay_secs
        self.shutdown = shutdown if shutdown is not None else threading.Event()
        self.state = state if state is not None else PublishState()
        self.refresh_every = refresh_every
        self.refresh_delay_secs = refresh_delay_secs
        self.offline_delay_secs = offline_delay_secs
        self._clock = clock
        self._sleep = sleep

    def run(self) -> None:
        """Loop until shutdown, then mark all sensors offline."""
        if self.startup_delay_secs > 0 and self.shutdown.wait(self.startup_delay_secs):
            self._on_shutdown()
            return

        while True:
            started = self._clock()
            self.run_cycle()
            remaining = max(0.0, self.update_interval_secs - (self._clock() - started))
            if self.shutdown.wait(remaining):
                self._on_shutdown()
                return

    def run_cycle(self) -> None:
        sensors = self.catalog.collect()
        if not sensors:
            logger.warning("No sensors found")

        all_topics = [build_sensor_topics(sensor, self.device) for sensor in sensors]

        for topics in all_topics:
            if not self.state.is_discovered(topics.sensor_identity):
                try:
                    self._discover(topics)
                except SensorPublishError as e:
                    logger.error(str(e))
                self._pause(self.discovery_delay_secs)
            try:
                self._send(topics.state, topics.sensor_identity, StatePublishError)
            except SensorPublishError as e:
                logger.error(str(e))

        self.state.advance()
        if self.state.refresh_due(self.refresh_every):
            self.refresh_availability(all_topics)

    def refresh_availability(self, all_topics: List[SensorTopics]) -> None:
        logger.info(f"Refreshing sensor availability status ({len(all_topics)} sensors)...")
        for topics in all_topics:
            try:
                self._send(topics.availability, topics.sensor_identity, AvailabilityPublishError)
            except SensorPublishError as e:
                logger.error(str(e))
            self._pause(self.refresh_delay_secs)

    def mark_offline(self) -> int:
        """Publish availability(offline) for every sensor visible right now.

        Not interruptible. Returns the number of sensors marked.
        """
        sensors = self.catalog.collect()
        for sensor in sensors:
            payload = availability_payload(sensor, self.device, online=False)
            try:
                self._send(payload, sensor_identity(sensor, self.device), AvailabilityPublishError)
            except SensorPublishError as e:
                logger.error(str(e))
            if self.offline_delay_secs > 0:
                self._sleep(self.offline_delay_secs)
        return len(sensors)

    def _on_shutdown(self) -> None:
        logger.info("Received shutdown signal, marking sensors as offline...")
        count = self.mark_offline()
        logger.info(f"Marked {count} sensors offline")

    def _discover(self, topics: SensorTopics) -> None:
        """Publish discovery then availability(online).

        The sensor counts as discovered once its config is accepted, even
        if the availability publish that follows fails.
        """
        self._send(topics.discovery, topics.sensor_identity, DiscoveryPublishError)
        self.state.mark_discovered(topics.sensor_identity)
        logger.info(f"Discovery config published for {topics.sensor_identity}")
        self._send(topics.availability, topics.sensor_identity, AvailabilityPublishError)

    def _send(self, payload: Payload, identity: str, error_cls: Type[SensorPublishError]) -> None:
        try:
            self.client.publish(payload)
        except PublishError as e:
            raise error_cls(identity, e) from e

    def _pause(self, seconds: float) -> None:
        # Returns at once when shutdown is already requested
        if seconds > 0:
            self.shutdown.wait(seconds)
