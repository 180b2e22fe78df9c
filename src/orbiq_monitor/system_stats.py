"""CPU, memory and disk statistics via psutil."""

import logging
from typing import List

import psutil

from .sensors import Sensor, SensorKind

logger = logging.getLogger(__name__)

BYTES_PER_GB = 1024.0 * 1024.0 * 1024.0


def bytes_to_gb(value: float) -> float:
    return value / BYTES_PER_GB


def percent(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return (part / whole) * 100.0


def mount_suffix(mount_point: str) -> str:
    """Sensor name suffix for a mount point ("/" -> "root", "/mnt/data" -> "mnt_data")."""
    if mount_point == "/":
        return "root"
    return mount_point.replace("/", "_").replace(" ", "_").strip("_")


def collect_cpu(interval: float = 0.5) -> List[Sensor]:
    usage = psutil.cpu_percent(interval=interval)
    return [Sensor(name="cpu_usage", value=float(usage), unit="%", kind=SensorKind.CPU_USAGE)]


def collect_memory() -> List[Sensor]:
    memory = psutil.virtual_memory()
    used = memory.total - memory.available
    return [
        Sensor(
            name="memory_usage",
            value=percent(used, memory.total),
            unit="%",
            kind=SensorKind.MEMORY_USAGE,
        ),
        Sensor(name="memory_used", value=bytes_to_gb(used), unit="GB", kind=SensorKind.MEMORY_USED),
        Sensor(
            name="memory_total",
            value=bytes_to_gb(memory.total),
            unit="GB",
            kind=SensorKind.MEMORY_TOTAL,
        ),
    ]


def collect_disks() -> List[Sensor]:
    sensors = []
    seen = set()
    for partition in psutil.disk_partitions(all=False):
        suffix = mount_suffix(partition.mountpoint)
        if suffix in seen:
            continue
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError as e:
            logger.debug(f"Skipping disk {partition.mountpoint}: {e}")
            continue
        seen.add(suffix)

        used = usage.total - usage.free
        sensors.extend(
            [
                Sensor(
                    name=f"disk_usage_{suffix}",
                    value=percent(used, usage.total),
                    unit="%",
                    kind=SensorKind.DISK_USAGE,
                ),
                Sensor(
                    name=f"disk_used_{suffix}",
                    value=bytes_to_gb(used),
                    unit="GB",
                    kind=SensorKind.DISK_USED,
                ),
                Sensor(
                    name=f"disk_total_{suffix}",
                    value=bytes_to_gb(usage.total),
                    unit="GB",
                    kind=SensorKind.DISK_TOTAL,
                ),
            ]
        )
    return sensors


def collect_system_stats(cpu_interval: float = 0.5) -> List[Sensor]:
    """CPU usage, then memory, then one group per mounted disk."""
    return collect_cpu(cpu_interval) + collect_memory() + collect_disks()
