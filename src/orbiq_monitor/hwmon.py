"""Readers for the Linux hwmon sysfs interface (temperatures and fans)."""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import SensorReadError
from .sensors import Sensor, SensorKind

logger = logging.getLogger(__name__)

HWMON_BASE_PATH = Path("/sys/class/hwmon")
MILLIDEGREE_TO_CELSIUS = 1000.0

_TEMP_FILE = re.compile(r"^temp(\d+)_input$")
_FAN_FILE = re.compile(r"^fan(\d+)_input$")


@dataclass
class HwmonDevice:
    """A hwmon chip directory and its reported name.

    ``prefix`` starts every sensor name of the device. It is the chip name,
    plus the directory name when another chip reports the same name.
    """

    path: Path
    name: str
    prefix: str = ""

    def __post_init__(self):
        if not self.prefix:
            self.prefix = self.name


def read_device_name(hwmon_path: Path) -> Optional[str]:
    try:
        name = (hwmon_path / "name").read_text().strip()
    except OSError:
        return None
    return name or None


def discover_hwmon_devices(base_path: Path = HWMON_BASE_PATH) -> List[HwmonDevice]:
    """List hwmon devices sorted by directory name.

    Raises OSError if the base directory itself cannot be listed.
    """
    devices = []
    for entry in sorted(base_path.iterdir()):
        devices.append(HwmonDevice(path=entry, name=read_device_name(entry) or entry.name))

    counts = Counter(device.name for device in devices)
    for device in devices:
        # e.g. two NVMe drives that both report "nvme"
        if counts[device.name] > 1:
            device.prefix = f"{device.name}_{device.path.name}"
    return devices


def read_value(path: Path) -> float:
    """Read a numeric sysfs attribute."""
    try:
        raw = path.read_text()
    except OSError as e:
        raise SensorReadError(str(path), str(e)) from e
    try:
        return float(raw.strip())
    except ValueError as e:
        raise SensorReadError(str(path), f"not a number: {raw.strip()!r}") from e


def read_label(input_path: Path) -> Optional[str]:
    """Read the ``*_label`` companion of an ``*_input`` file, if any."""
    label_path = input_path.with_name(input_path.name.replace("_input", "_label"))
    try:
        label = label_path.read_text().strip()
    except OSError:
        return None
    return label or None


def _list_files(device: HwmonDevice) -> List[Path]:
    try:
        return sorted(p for p in device.path.iterdir())
    except OSError as e:
        logger.error(f"Failed to read device directory {device.path}: {e}")
        return []


def scan_device_temperatures(device: HwmonDevice) -> List[Sensor]:
    sensors = []
    for path in _list_files(device):
        match = _TEMP_FILE.match(path.name)
        if not match:
            continue
        try:
            millidegrees = read_value(path)
        except SensorReadError as e:
            logger.debug(str(e))
            continue
        sensor = Sensor(
            name=f"{device.prefix}_{match.group(1)}",
            value=millidegrees / MILLIDEGREE_TO_CELSIUS,
            unit="°C",
            kind=SensorKind.TEMPERATURE,
            label=read_label(path),
        )
        logger.debug(f"Found temperature: {sensor.name} = {sensor.value:.2f}°C (from {path})")
        sensors.append(sensor)
    return sensors


def scan_device_fans(device: HwmonDevice) -> List[Sensor]:
    sensors = []
    for path in _list_files(device):
        match = _FAN_FILE.match(path.name)
        if not match:
            continue
        try:
            rpm = read_value(path)
        except SensorReadError as e:
            logger.debug(str(e))
            continue
        sensors.append(
            Sensor(
                name=f"{device.prefix}_{match.group(1)}_fan",
                value=rpm,
                unit="RPM",
                kind=SensorKind.FAN,
                label=read_label(path),
            )
        )
    return sensors


def collect_temperatures(base_path: Path = HWMON_BASE_PATH) -> List[Sensor]:
    sensors: List[Sensor] = []
    try:
        devices = discover_hwmon_devices(base_path)
    except OSError as e:
        logger.error(f"Failed to discover hwmon devices: {e}")
        return sensors
    for device in devices:
        sensors.extend(scan_device_temperatures(device))
    return sensors


def collect_fans(base_path: Path = HWMON_BASE_PATH) -> List[Sensor]:
    sensors: List[Sensor] = []
    try:
        devices = discover_hwmon_devices(base_path)
    except OSError as e:
        logger.error(f"Failed to discover hwmon devices: {e}")
        return sensors
    for device in devices:
        sensors.extend(scan_device_fans(device))
    return sensors
