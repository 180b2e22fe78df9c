"""Shared fixtures."""

from typing import List, Optional, Set

import pytest

from orbiq_monitor.config import DeviceConfig
from orbiq_monitor.errors import PublishError
from orbiq_monitor.homeassistant import DeviceIdentity, Payload
from orbiq_monitor.sensors import Sensor, SensorKind


class RecordingClient:
    """Stand-in transport that records every publish call in order."""

    def __init__(self):
        self.published: List[Payload] = []
        self.attempts: List[Payload] = []
        self.fail_topics: Set[str] = set()
        self.connected = True

    def publish(self, payload: Payload) -> None:
        self.attempts.append(payload)
        if payload.topic in self.fail_topics:
            raise PublishError(payload.topic, rc=4, reason="no connection")
        self.published.append(payload)

    def topics(self, suffix: Optional[str] = None) -> List[str]:
        return [p.topic for p in self.published if suffix is None or p.topic.endswith(suffix)]

    def clear(self) -> None:
        self.published.clear()
        self.attempts.clear()


class StaticCatalog:
    """Catalog returning a configurable snapshot."""

    def __init__(self, sensors: Optional[List[Sensor]] = None):
        self.sensors = list(sensors or [])
        self.calls = 0

    def collect(self) -> List[Sensor]:
        self.calls += 1
        return list(self.sensors)


@pytest.fixture
def device():
    return DeviceIdentity.from_config(DeviceConfig(name="desk", sw_version="0.1.0", hw_version="1.0"))


@pytest.fixture
def cpu_temp():
    return Sensor(name="k10temp_1", value=42.5, unit="°C", kind=SensorKind.TEMPERATURE)


@pytest.fixture
def cpu_usage():
    return Sensor(name="cpu_usage", value=42.37, unit="%", kind=SensorKind.CPU_USAGE)


@pytest.fixture
def recording_client():
    return RecordingClient()


@pytest.fixture
def catalog_factory():
    return StaticCatalog
