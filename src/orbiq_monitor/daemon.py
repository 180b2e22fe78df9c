"""Wires the monitor together and coordinates shutdown.

Three things run at once: the publish loop (its own thread), the
connection supervisor (its own thread) and the signal handlers (main
thread). The daemon stops as soon as the first of them finishes; the
publish loop always gets to mark sensors offline before the process exits.
"""

import logging
import signal
import threading
from pathlib import Path
from typing import Dict, Optional

from .catalog import SensorCatalog
from .config import Config
from .errors import DaemonError
from .homeassistant import DeviceIdentity
from .mqtt_client import MQTTClient
from .orchestrator import PublishOrchestrator
from .supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)
# Upper bound on waiting for the offline pass after shutdown is requested
OFFLINE_PASS_TIMEOUT_SECS = 30.0


class Daemon:
    """Runs the monitor until a signal arrives or a task exits."""

    def __init__(
        self,
        config: Config,
        client: Optional[MQTTClient] = None,
        catalog: Optional[SensorCatalog] = None,
        dry_run: bool = False,
    ):
        self.config = config
        self.dry_run = dry_run
        self.client = client or MQTTClient(config)
        self.catalog = catalog or SensorCatalog(hwmon_path=Path(config.hwmon_path))
        self.device = DeviceIdentity.from_config(config.device)

        self.shutdown = threading.Event()
        self._finished = threading.Event()
        self._previous_handlers: Dict[int, object] = {}

        self.orchestrator = PublishOrchestrator(
            catalog=self.catalog,
            client=self.client,
            device=self.device,
            update_interval_secs=config.update_interval_secs,
            discovery_delay_secs=config.discovery_delay_ms / 1000.0,
            startup_delay_secs=config.startup_delay_secs,
            shutdown=self.shutdown,
        )
        self.supervisor = ConnectionSupervisor(self.client, on_exit=self._finished.set)
        self._publish_thread: Optional[threading.Thread] = None

    def request_shutdown(self, reason: str = "requested") -> None:
        if not self.shutdown.is_set():
            logger.info(f"Shutting down ({reason})...")
        self.shutdown.set()

    def install_signal_handlers(self) -> None:
        """Route SIGINT/SIGTERM to shutdown. Failing here is fatal."""
        try:
            for sig in SHUTDOWN_SIGNALS:
                self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)
        except (ValueError, OSError) as e:
            raise DaemonError(f"Failed to install signal handlers: {e}") from e

    def restore_signal_handlers(self) -> None:
        for sig, handler in self._previous_handlers.items():
            # None means the previous handler was not installed from Python
            if handler is not None:
                signal.signal(sig, handler)
        self._previous_handlers.clear()

    def _handle_signal(self, signum, frame) -> None:
        self.request_shutdown(signal.Signals(signum).name)

    def _run_publisher(self) -> None:
        try:
            self.orchestrator.run()
        except Exception:
            logger.exception("Publish loop failed")
        finally:
            self._finished.set()

    def run(self) -> None:
        """Block until shutdown has completed."""
        self.install_signal_handlers()
        logger.info(f"Starting system monitor with device: {self.config.device.name}")

        try:
            self.client.connect(dry_run=self.dry_run)
            self.supervisor.start()
            self._publish_thread = threading.Thread(
                target=self._run_publisher, name="publish-loop", daemon=True
            )
            self._publish_thread.start()

            self._finished.wait()
            # First task to finish wins; let the publish loop do its offline pass
            self.request_shutdown("task finished")
            self._publish_thread.join(timeout=OFFLINE_PASS_TIMEOUT_SECS)
            if self._publish_thread.is_alive():
                logger.warning("Publish loop did not finish marking sensors offline in time")
        finally:
            self.supervisor.stop()
            self.client.disconnect()
            self.restore_signal_handlers()
            logger.info("Shutdown complete")
