"""Snapshot of every sensor currently visible on this machine."""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from . import hwmon, system_stats
from .sensors import Sensor

logger = logging.getLogger(__name__)

Collector = Callable[[], List[Sensor]]


class SensorCatalog:
    """Collects temperatures, system statistics and fans on every call.

    Nothing is cached between calls. A collector that fails only drops
    its own sensors from the snapshot.
    """

    def __init__(
        self,
        hwmon_path: Path = hwmon.HWMON_BASE_PATH,
        cpu_interval: float = 0.5,
        collectors: Optional[Sequence[Tuple[str, Collector]]] = None,
    ):
        if collectors is None:
            collectors = [
                ("temperature", lambda: hwmon.collect_temperatures(hwmon_path)),
                ("system", lambda: system_stats.collect_system_stats(cpu_interval)),
                ("fan", lambda: hwmon.collect_fans(hwmon_path)),
            ]
        self._collectors = list(collectors)

    def collect(self) -> List[Sensor]:
        sensors: List[Sensor] = []
        for name, collector in self._collectors:
            try:
                sensors.extend(collector())
            except Exception as e:
                logger.error(f"Failed to collect {name} sensors: {e}")
        return sensors
