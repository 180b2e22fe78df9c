"""Configuration management for the monitor."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml

from . import __version__
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "OrbIQ System Monitor"
DEFAULT_MANUFACTURER = "OrbIQ"

CONFIG_SEARCH_PATHS = (
    Path("/etc/orbiq_system_monitor/config.yaml"),
    Path("/etc/orbiq/config.yaml"),
    Path("./orbiq_system_monitor.yaml"),
    Path("./config.yaml"),
)


@dataclass
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: Optional[str] = None  # derived from the device name when unset
    keep_alive_secs: int = 30
    qos: int = 1


@dataclass
class DeviceConfig:
    """Identity of the machine being monitored."""

    name: str = "system-monitor"
    model: str = DEFAULT_MODEL
    manufacturer: str = DEFAULT_MANUFACTURER
    sw_version: Optional[str] = __version__
    hw_version: Optional[str] = "1.0"


@dataclass
class Config:
    """Main configuration container."""

    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    update_interval_secs: float = 30
    discovery_delay_ms: int = 100
    startup_delay_secs: float = 5
    hwmon_path: str = "/sys/class/hwmon"

    @property
    def client_id(self) -> str:
        return self.mqtt.client_id or f"orbiq-{self.device.name}"

    @classmethod
    def default(cls) -> "Config":
        return cls()

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Config":
        """Load configuration from a YAML file.

        Raises ConfigError when the file cannot be read or is not a mapping.
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        try:
            return cls._from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in {config_path}: {e}") from e

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        search_paths: Sequence[Path] = CONFIG_SEARCH_PATHS,
    ) -> "Config":
        """Load from an explicit path or the first usable search path.

        Falls back to defaults; environment overrides are applied last.
        """
        candidates = [config_path] if config_path else list(search_paths)
        config = None
        for path in candidates:
            if not path.exists():
                if config_path:
                    logger.warning(f"Config file not found: {path}")
                continue
            try:
                config = cls.from_yaml(path)
            except ConfigError as e:
                logger.error(str(e))
                continue
            logger.info(f"Loaded configuration from: {path}")
            break

        if config is None:
            logger.info("No configuration file found, using defaults")
            config = cls.default()

        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override settings from environment variables.

        Values that do not parse are logged and the current setting kept.
        """
        self.mqtt.broker = os.getenv("MQTT_BROKER", self.mqtt.broker)
        self.mqtt.username = os.getenv("MQTT_USERNAME", self.mqtt.username)
        self.mqtt.password = os.getenv("MQTT_PASSWORD", self.mqtt.password)
        self.device.name = os.getenv("DEVICE_NAME", self.device.name)

        port = os.getenv("MQTT_PORT")
        if port:
            try:
                self.mqtt.port = int(port)
            except ValueError:
                logger.error(f"Ignoring invalid MQTT_PORT {port!r}, using {self.mqtt.port}")

        interval = os.getenv("UPDATE_INTERVAL_SECS")
        if interval:
            try:
                value = float(interval)
            except ValueError:
                value = 0
            if value > 0:
                self.update_interval_secs = value
            else:
                logger.error(
                    f"Ignoring invalid UPDATE_INTERVAL_SECS {interval!r}, "
                    f"using {self.update_interval_secs:g}"
                )

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls.default()

        if "mqtt" in data:
            mqtt_data = data["mqtt"] or {}
            config.mqtt = MQTTConfig(
                broker=mqtt_data.get("broker", config.mqtt.broker),
                port=int(mqtt_data.get("port", config.mqtt.port)),
                username=mqtt_data.get("username", config.mqtt.username),
                password=mqtt_data.get("password", config.mqtt.password),
                client_id=mqtt_data.get("client_id", config.mqtt.client_id),
                keep_alive_secs=int(mqtt_data.get("keep_alive_secs", config.mqtt.keep_alive_secs)),
                qos=int(mqtt_data.get("qos", config.mqtt.qos)),
            )

        if "device" in data:
            device_data = data["device"] or {}
            config.device = DeviceConfig(
                name=str(device_data.get("name", config.device.name)),
                model=device_data.get("model", config.device.model),
                manufacturer=device_data.get("manufacturer", config.device.manufacturer),
                sw_version=device_data.get("sw_version", config.device.sw_version),
                hw_version=device_data.get("hw_version", config.device.hw_version),
            )

        config.update_interval_secs = float(
            data.get("update_interval_secs", config.update_interval_secs)
        )
        config.discovery_delay_ms = int(data.get("discovery_delay_ms", config.discovery_delay_ms))
        config.startup_delay_secs = float(data.get("startup_delay_secs", config.startup_delay_secs))
        config.hwmon_path = str(data.get("hwmon_path", config.hwmon_path))

        if config.update_interval_secs <= 0:
            raise ValueError("update_interval_secs must be positive")

        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mqtt": {
                "broker": self.mqtt.broker,
                "port": self.mqtt.port,
                "username": self.mqtt.username,
                "password": self.mqtt.password,
                "client_id": self.mqtt.client_id,
                "keep_alive_secs": self.mqtt.keep_alive_secs,
                "qos": self.mqtt.qos,
            },
            "device": {
                "name": self.device.name,
                "model": self.device.model,
                "manufacturer": self.device.manufacturer,
                "sw_version": self.device.sw_version,
                "hw_version": self.device.hw_version,
            },
            "update_interval_secs": self.update_interval_secs,
            "discovery_delay_ms": self.discovery_delay_ms,
            "startup_delay_secs": self.startup_delay_secs,
            "hwmon_path": self.hwmon_path,
        }

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
