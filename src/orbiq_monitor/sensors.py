"""Sensor model and the per-kind presentation rules.

Every property that depends on the sensor kind (device class, icon,
display precision) is a table keyed by ``SensorKind``. The tables are
checked for completeness at import time, so adding a kind without
extending them fails immediately.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class SensorKind(Enum):
    """Kinds of sensors the monitor knows how to publish."""

    TEMPERATURE = "temperature"
    FAN = "fan"
    CPU_USAGE = "cpu_usage"
    MEMORY_USAGE = "memory_usage"
    MEMORY_USED = "memory_used"
    MEMORY_TOTAL = "memory_total"
    DISK_USAGE = "disk_usage"
    DISK_USED = "disk_used"
    DISK_TOTAL = "disk_total"


@dataclass(frozen=True)
class Sensor:
    """One reading taken during a single snapshot."""

    name: str
    value: float
    unit: str
    kind: SensorKind
    label: Optional[str] = None


_DEVICE_CLASSES: Dict[SensorKind, Optional[str]] = {
    SensorKind.TEMPERATURE: "temperature",
    SensorKind.FAN: None,
    SensorKind.CPU_USAGE: None,
    SensorKind.MEMORY_USAGE: None,
    SensorKind.MEMORY_USED: "data_size",
    SensorKind.MEMORY_TOTAL: "data_size",
    SensorKind.DISK_USAGE: None,
    SensorKind.DISK_USED: "data_size",
    SensorKind.DISK_TOTAL: "data_size",
}

_ICONS: Dict[SensorKind, str] = {
    SensorKind.TEMPERATURE: "mdi:thermometer",
    SensorKind.FAN: "mdi:fan",
    SensorKind.CPU_USAGE: "mdi:cpu-64-bit",
    SensorKind.MEMORY_USAGE: "mdi:memory",
    SensorKind.MEMORY_USED: "mdi:memory",
    SensorKind.MEMORY_TOTAL: "mdi:memory",
    SensorKind.DISK_USAGE: "mdi:harddisk",
    SensorKind.DISK_USED: "mdi:harddisk",
    SensorKind.DISK_TOTAL: "mdi:harddisk",
}

# Decimal places kept in the state payload
_PRECISION: Dict[SensorKind, int] = {
    SensorKind.TEMPERATURE: 1,
    SensorKind.FAN: 0,
    SensorKind.CPU_USAGE: 1,
    SensorKind.MEMORY_USAGE: 1,
    SensorKind.MEMORY_USED: 2,
    SensorKind.MEMORY_TOTAL: 2,
    SensorKind.DISK_USAGE: 1,
    SensorKind.DISK_USED: 2,
    SensorKind.DISK_TOTAL: 2,
}

_FIXED_NAMES: Dict[SensorKind, str] = {
    SensorKind.CPU_USAGE: "CPU Usage",
    SensorKind.MEMORY_USAGE: "Memory Usage",
    SensorKind.MEMORY_USED: "Memory Used",
    SensorKind.MEMORY_TOTAL: "Memory Total",
}

_DISK_NAMES: Dict[SensorKind, str] = {
    SensorKind.DISK_USAGE: "Disk Usage",
    SensorKind.DISK_USED: "Disk Used",
    SensorKind.DISK_TOTAL: "Disk Total",
}

for _table in (_DEVICE_CLASSES, _ICONS, _PRECISION):
    _missing = set(SensorKind) - set(_table)
    if _missing:
        raise RuntimeError(f"Sensor kinds without a mapping: {sorted(k.name for k in _missing)}")


def device_class(kind: SensorKind) -> Optional[str]:
    """Home Assistant device class, or None when the kind has none."""
    return _DEVICE_CLASSES[kind]


def icon(kind: SensorKind) -> str:
    return _ICONS[kind]


def display_precision(kind: SensorKind) -> int:
    return _PRECISION[kind]


def rounded_value(sensor: Sensor) -> float:
    """Sensor value rounded to the precision of its kind."""
    digits = _PRECISION[sensor.kind]
    if digits == 0:
        return float(round(sensor.value))
    return round(sensor.value, digits)


def _last_segment(name: str) -> str:
    return name.split("_")[-1] or "Unknown"


def _temperature_name(name: str) -> str:
    if "k10temp" in name:
        return "CPU Temperature"
    if "nouveau" in name or "amdgpu" in name:
        return "GPU Temperature"
    if "nvme" in name:
        # nvme_1, or nvme_hwmon2_1 when several drives report "nvme"
        rest = name.split("nvme", 1)[1].strip("_").replace("_", " ")
        return f"NVMe {rest or 'Unknown'} Temperature"
    if "coretemp" in name:
        return f"Core {_last_segment(name)} Temperature"
    if "acpi" in name:
        return "System Temperature"
    return f"{name.replace('_', ' ')} Temperature"


def _fan_name(sensor: Sensor) -> str:
    if sensor.label:
        return sensor.label
    # <device>_<id>_fan
    parts = sensor.name.split("_")
    if len(parts) >= 3 and parts[-1] == "fan":
        return f"{' '.join(parts[:-2])} Fan {parts[-2]}"
    return f"{sensor.name.replace('_', ' ')} Fan"


def _disk_name(sensor: Sensor) -> str:
    base = _DISK_NAMES[sensor.kind]
    prefix = sensor.kind.value + "_"
    suffix = sensor.name[len(prefix):] if sensor.name.startswith(prefix) else sensor.name
    return f"{base} ({suffix.upper()})" if suffix else base


def friendly_name(sensor: Sensor) -> str:
    """Human readable entity name. Cosmetic only, never used for routing."""
    if sensor.kind is SensorKind.TEMPERATURE:
        return _temperature_name(sensor.name)
    if sensor.kind is SensorKind.FAN:
        return _fan_name(sensor)
    if sensor.kind in _DISK_NAMES:
        return _disk_name(sensor)
    if sensor.kind in _FIXED_NAMES:
        return _FIXED_NAMES[sensor.kind]
    return sensor.name.replace("_", " ")
