"""Tests for discovery, state and availability payloads."""

import json

import pytest

from orbiq_monitor.config import DeviceConfig
from orbiq_monitor.homeassistant import (
    DeviceIdentity,
    availability_payload,
    build_sensor_topics,
    discovery_payload,
    state_payload,
    topic_safe,
)
from orbiq_monitor.sensors import Sensor, SensorKind


class TestDiscoveryPayload:
    """Tests for the discovery (config) message."""

    def test_cpu_temperature_scenario(self, cpu_temp, device):
        payload = discovery_payload(cpu_temp, device)
        body = json.loads(payload.body)

        assert payload.topic == "homeassistant/sensor/orbiq_desk/k10temp_1/config"
        assert payload.retain is True
        assert body["name"] == "CPU Temperature"
        assert body["device_class"] == "temperature"
        assert body["unit_of_measurement"] == "°C"

    def test_required_fields(self, cpu_temp, device):
        body = json.loads(discovery_payload(cpu_temp, device).body)

        assert body["unique_id"] == "orbiq_desk_k10temp_1"
        assert body["object_id"] == "orbiq_desk_k10temp_1"
        assert body["state_topic"] == "homeassistant/sensor/orbiq_desk/k10temp_1/state"
        assert body["state_class"] == "measurement"
        assert body["value_template"] == "{{ value_json.value }}"
        assert body["icon"] == "mdi:thermometer"
        assert body["availability"] == [
            {
                "topic": "homeassistant/sensor/orbiq_desk/k10temp_1/availability",
                "payload_available": "online",
                "payload_not_available": "offline",
            }
        ]

    def test_device_block(self, cpu_temp, device):
        body = json.loads(discovery_payload(cpu_temp, device).body)

        assert body["device"] == {
            "identifiers": ["orbiq_desk"],
            "name": "desk System Monitor",
            "model": "OrbIQ System Monitor",
            "manufacturer": "OrbIQ",
            "sw_version": "0.1.0",
            "hw_version": "1.0",
        }

    def test_device_block_omits_missing_versions(self, cpu_temp):
        device = DeviceIdentity.from_config(DeviceConfig(name="desk", sw_version=None, hw_version=None))

        body = json.loads(discovery_payload(cpu_temp, device).body)

        assert "sw_version" not in body["device"]
        assert "hw_version" not in body["device"]

    def test_deterministic(self, cpu_temp, device):
        first = discovery_payload(cpu_temp, device)
        second = discovery_payload(cpu_temp, device)

        assert first.topic == second.topic
        assert first.body == second.body

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (SensorKind.MEMORY_USED, "data_size"),
            (SensorKind.DISK_TOTAL, "data_size"),
            (SensorKind.CPU_USAGE, None),
            (SensorKind.FAN, None),
        ],
    )
    def test_device_class_by_kind(self, device, kind, expected):
        sensor = Sensor(name="x", value=1.0, unit="", kind=kind)

        body = json.loads(discovery_payload(sensor, device).body)

        assert body.get("device_class") == expected


class TestStatePayload:
    def test_temperature_state(self, cpu_temp, device):
        payload = state_payload(cpu_temp, device)

        assert payload.topic == "homeassistant/sensor/orbiq_desk/k10temp_1/state"
        assert payload.retain is False
        assert json.loads(payload.body) == {"value": 42.5}

    def test_cpu_usage_rounded(self, cpu_usage, device):
        assert json.loads(state_payload(cpu_usage, device).body) == {"value": 42.4}

    def test_memory_used_rounded(self, device):
        sensor = Sensor(name="memory_used", value=8589934592 / 1024 ** 3, unit="GB", kind=SensorKind.MEMORY_USED)

        assert json.loads(state_payload(sensor, device).body) == {"value": 8.0}


class TestAvailabilityPayload:
    def test_online(self, cpu_temp, device):
        payload = availability_payload(cpu_temp, device, online=True)

        assert payload.topic == "homeassistant/sensor/orbiq_desk/k10temp_1/availability"
        assert payload.body == "online"
        assert payload.retain is True

    def test_offline(self, cpu_temp, device):
        assert availability_payload(cpu_temp, device, online=False).body == "offline"


class TestTopics:
    def test_build_sensor_topics(self, cpu_temp, device):
        topics = build_sensor_topics(cpu_temp, device)

        assert topics.sensor_identity == "orbiq_desk_k10temp_1"
        assert topics.availability.body == "online"
        assert topics.discovery.topic.endswith("/config")

    def test_distinct_sensors_distinct_topics(self, device):
        names = ["k10temp_1", "k10temp_3", "cpu_usage", "disk_usage_root", "disk_used_root", "nct6775_1_fan"]
        sensors = [Sensor(name=n, value=1.0, unit="", kind=SensorKind.TEMPERATURE) for n in names]

        topics = {discovery_payload(s, device).topic for s in sensors}

        assert len(topics) == len(names)

    def test_topic_safe(self):
        assert topic_safe("my desk/#1+") == "my_desk__1_"

    def test_device_name_sanitized_in_topic(self, cpu_temp):
        device = DeviceIdentity.from_config(DeviceConfig(name="living room"))

        assert discovery_payload(cpu_temp, device).topic.startswith("homeassistant/sensor/orbiq_living_room/")
