"""Tests for daemon wiring and shutdown coordination."""

import signal
import threading

import pytest

from orbiq_monitor.config import Config, DeviceConfig
from orbiq_monitor.daemon import Daemon
from orbiq_monitor.errors import DaemonError
from orbiq_monitor.mqtt_client import MQTTClient


class RecordingDryRunClient(MQTTClient):
    """Dry-run transport that remembers what it published."""

    def __init__(self, config):
        super().__init__(config)
        self.payloads = []
        self.disconnected = False

    def publish(self, payload):
        self.payloads.append(payload)
        super().publish(payload)

    def disconnect(self):
        self.disconnected = True
        super().disconnect()


@pytest.fixture
def config():
    return Config(
        device=DeviceConfig(name="desk"),
        update_interval_secs=60,
        discovery_delay_ms=0,
        startup_delay_secs=0,
    )


@pytest.fixture
def daemon(config, cpu_temp, catalog_factory):
    client = RecordingDryRunClient(config)
    return Daemon(config, client=client, catalog=catalog_factory([cpu_temp]), dry_run=True)


def run_in_background(daemon):
    errors = []

    def target():
        try:
            daemon.run()
        except Exception as e:  # surfaced by the assertions below
            errors.append(e)

    thread = threading.Thread(target=target)
    return thread, errors


class TestDaemon:
    def test_wiring(self, daemon, config):
        assert daemon.device.name == "desk"
        assert daemon.orchestrator.update_interval_secs == 60
        assert daemon.orchestrator.shutdown is daemon.shutdown

    def test_shutdown_marks_sensors_offline(self, daemon, monkeypatch):
        monkeypatch.setattr(daemon, "install_signal_handlers", lambda: None)
        monkeypatch.setattr(daemon, "restore_signal_handlers", lambda: None)
        thread, errors = run_in_background(daemon)

        thread.start()
        threading.Timer(0.2, daemon.request_shutdown).start()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert errors == []
        bodies = [p.body for p in daemon.client.payloads if p.topic.endswith("/availability")]
        assert bodies == ["online", "offline"]
        assert daemon.client.disconnected
        assert not daemon.supervisor.running

    def test_supervisor_exit_stops_daemon(self, daemon, monkeypatch):
        monkeypatch.setattr(daemon, "install_signal_handlers", lambda: None)
        monkeypatch.setattr(daemon, "restore_signal_handlers", lambda: None)
        thread, errors = run_in_background(daemon)

        thread.start()
        threading.Timer(0.2, daemon.supervisor.stop).start()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert daemon.shutdown.is_set()
        assert daemon.client.payloads[-1].body == "offline"

    def test_publish_loop_crash_stops_daemon(self, daemon, monkeypatch):
        monkeypatch.setattr(daemon, "install_signal_handlers", lambda: None)
        monkeypatch.setattr(daemon, "restore_signal_handlers", lambda: None)

        def crash():
            raise RuntimeError("boom")

        monkeypatch.setattr(daemon.orchestrator, "run", crash)
        thread, errors = run_in_background(daemon)

        thread.start()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert errors == []


class TestSignals:
    def test_handler_requests_shutdown(self, daemon):
        daemon._handle_signal(signal.SIGTERM, None)

        assert daemon.shutdown.is_set()

    def test_install_and_restore(self, daemon):
        original = signal.getsignal(signal.SIGTERM)

        daemon.install_signal_handlers()
        try:
            assert signal.getsignal(signal.SIGTERM) == daemon._handle_signal
        finally:
            daemon.restore_signal_handlers()

        assert signal.getsignal(signal.SIGTERM) == original

    def test_install_outside_main_thread_is_fatal(self, daemon):
        errors = []

        def target():
            try:
                daemon.install_signal_handlers()
            except DaemonError as e:
                errors.append(e)

        thread = threading.Thread(target=target)
        thread.start()
        thread.join()

        assert len(errors) == 1
        assert "signal handlers" in str(errors[0])
