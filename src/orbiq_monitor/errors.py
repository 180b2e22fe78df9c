"""Exception types raised by the monitor."""

from typing import Optional


class MonitorError(Exception):
    """Base class for all monitor errors."""


class ConfigError(MonitorError):
    """Configuration file could not be read or parsed."""


class SensorReadError(MonitorError):
    """A single sensor value could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read sensor {path}: {reason}")


class DaemonError(MonitorError):
    """Fatal startup failure."""


class PublishError(MonitorError):
    """The transport refused a publish call."""

    def __init__(self, topic: str, rc: Optional[int] = None, reason: str = ""):
        self.topic = topic
        self.rc = rc
        self.reason = reason
        detail = reason or f"rc={rc}"
        super().__init__(f"Failed to publish to {topic}: {detail}")


class SensorPublishError(PublishError):
    """Publish failure attributed to one sensor."""

    kind = "Publish"

    def __init__(self, sensor_identity: str, cause: PublishError):
        self.sensor_identity = sensor_identity
        self.cause = cause
        super().__init__(cause.topic, rc=cause.rc, reason=cause.reason)

    def __str__(self) -> str:
        return f"{self.kind} error for {self.sensor_identity}: {self.cause}"


class DiscoveryPublishError(SensorPublishError):
    kind = "Discovery config"


class StatePublishError(SensorPublishError):
    kind = "State publish"


class AvailabilityPublishError(SensorPublishError):
    kind = "Availability publish"
