"""OrbIQ System Monitor - hardware sensors published to Home Assistant over MQTT."""

__version__ = "0.1.0"

from .config import Config
from .daemon import Daemon
from .sensors import Sensor, SensorKind

__all__ = ["Config", "Daemon", "Sensor", "SensorKind", "__version__"]
