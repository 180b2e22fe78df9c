"""Home Assistant MQTT discovery payloads.

Topics follow the discovery convention::

    homeassistant/sensor/orbiq_<device>/<sensor>/config        (retained)
    homeassistant/sensor/orbiq_<device>/<sensor>/state
    homeassistant/sensor/orbiq_<device>/<sensor>/availability  (retained)

All functions here are pure: identical inputs give byte-identical payloads.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from .config import DeviceConfig
from .sensors import Sensor, device_class, display_precision, friendly_name, icon, rounded_value

DISCOVERY_PREFIX = "homeassistant"
TOPIC_PREFIX = "orbiq"
PAYLOAD_AVAILABLE = "online"
PAYLOAD_NOT_AVAILABLE = "offline"

_UNSAFE_TOPIC_CHARS = re.compile(r"[/+#\s]")


@dataclass(frozen=True)
class DeviceIdentity:
    """The device block embedded in every discovery payload."""

    name: str
    identifiers: FrozenSet[str]
    display_name: str
    model: str
    manufacturer: str
    sw_version: Optional[str] = None
    hw_version: Optional[str] = None

    @classmethod
    def from_config(cls, device: DeviceConfig) -> "DeviceIdentity":
        return cls(
            name=device.name,
            identifiers=frozenset({f"{TOPIC_PREFIX}_{topic_safe(device.name)}"}),
            display_name=f"{device.name} System Monitor",
            model=device.model,
            manufacturer=device.manufacturer,
            sw_version=device.sw_version,
            hw_version=device.hw_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "identifiers": sorted(self.identifiers),
            "name": self.display_name,
            "model": self.model,
            "manufacturer": self.manufacturer,
        }
        if self.sw_version is not None:
            data["sw_version"] = self.sw_version
        if self.hw_version is not None:
            data["hw_version"] = self.hw_version
        return data


@dataclass(frozen=True)
class Payload:
    """One MQTT message."""

    topic: str
    body: str
    retain: bool


@dataclass(frozen=True)
class SensorTopics:
    """The three messages of one sensor for one cycle."""

    sensor_identity: str
    discovery: Payload
    state: Payload
    availability: Payload


def topic_safe(value: str) -> str:
    """Replace MQTT wildcard/separator characters and whitespace."""
    return _UNSAFE_TOPIC_CHARS.sub("_", value)


def node_id(device: DeviceIdentity) -> str:
    return f"{TOPIC_PREFIX}_{topic_safe(device.name)}"


def base_topic(sensor: Sensor, device: DeviceIdentity) -> str:
    return f"{DISCOVERY_PREFIX}/sensor/{node_id(device)}/{topic_safe(sensor.name)}"


def sensor_identity(sensor: Sensor, device: DeviceIdentity) -> str:
    """Unique id of a sensor under a device; also the discovery-tracking key."""
    return f"{node_id(device)}_{topic_safe(sensor.name)}"


def config_topic(sensor: Sensor, device: DeviceIdentity) -> str:
    return f"{base_topic(sensor, device)}/config"


def state_topic(sensor: Sensor, device: DeviceIdentity) -> str:
    return f"{base_topic(sensor, device)}/state"


def availability_topic(sensor: Sensor, device: DeviceIdentity) -> str:
    return f"{base_topic(sensor, device)}/availability"


def discovery_document(sensor: Sensor, device: DeviceIdentity) -> Dict[str, Any]:
    unique_id = sensor_identity(sensor, device)
    document: Dict[str, Any] = {
        "name": friendly_name(sensor),
        "unique_id": unique_id,
        "object_id": unique_id,
        "state_topic": state_topic(sensor, device),
        "unit_of_measurement": sensor.unit,
        "state_class": "measurement",
        "value_template": "{{ value_json.value }}",
        "suggested_display_precision": display_precision(sensor.kind),
        "availability": [
            {
                "topic": availability_topic(sensor, device),
                "payload_available": PAYLOAD_AVAILABLE,
                "payload_not_available": PAYLOAD_NOT_AVAILABLE,
            }
        ],
        "icon": icon(sensor.kind),
    }
    kind_class = device_class(sensor.kind)
    if kind_class is not None:
        document["device_class"] = kind_class
    document["device"] = device.to_dict()
    return document


def discovery_payload(sensor: Sensor, device: DeviceIdentity) -> Payload:
    return Payload(
        topic=config_topic(sensor, device),
        body=json.dumps(discovery_document(sensor, device)),
        retain=True,
    )


def state_payload(sensor: Sensor, device: DeviceIdentity) -> Payload:
    return Payload(
        topic=state_topic(sensor, device),
        body=json.dumps({"value": rounded_value(sensor)}),
        retain=False,
    )


def availability_payload(sensor: Sensor, device: DeviceIdentity, online: bool) -> Payload:
    return Payload(
        topic=availability_topic(sensor, device),
        body=PAYLOAD_AVAILABLE if online else PAYLOAD_NOT_AVAILABLE,
        retain=True,
    )


def build_sensor_topics(sensor: Sensor, device: DeviceIdentity) -> SensorTopics:
    return SensorTopics(
        sensor_identity=sensor_identity(sensor, device),
        discovery=discovery_payload(sensor, device),
        state=state_payload(sensor, device),
        availability=availability_payload(sensor, device, online=True),
    )
