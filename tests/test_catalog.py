"""Tests for SensorCatalog."""

import logging

from orbiq_monitor.catalog import SensorCatalog
from orbiq_monitor.sensors import Sensor, SensorKind


def temp(name):
    return Sensor(name=name, value=40.0, unit="°C", kind=SensorKind.TEMPERATURE)


class TestSensorCatalog:
    def test_concatenates_collectors_in_order(self):
        catalog = SensorCatalog(
            collectors=[("a", lambda: [temp("a_1")]), ("b", lambda: [temp("b_1"), temp("b_2")])]
        )

        assert [s.name for s in catalog.collect()] == ["a_1", "b_1", "b_2"]

    def test_failing_collector_only_drops_its_sensors(self, caplog):
        def broken():
            raise OSError("sysfs gone")

        catalog = SensorCatalog(collectors=[("broken", broken), ("ok", lambda: [temp("ok_1")])])

        with caplog.at_level(logging.ERROR):
            sensors = catalog.collect()

        assert [s.name for s in sensors] == ["ok_1"]
        assert "Failed to collect broken sensors" in caplog.text

    def test_no_state_between_calls(self):
        readings = iter([[temp("x_1")], []])
        catalog = SensorCatalog(collectors=[("x", lambda: next(readings))])

        assert len(catalog.collect()) == 1
        assert catalog.collect() == []

    def test_default_collectors_read_hwmon(self, tmp_path, monkeypatch):
        chip = tmp_path / "hwmon0"
        chip.mkdir()
        (chip / "name").write_text("k10temp")
        (chip / "temp1_input").write_text("50000")
        monkeypatch.setattr("orbiq_monitor.system_stats.collect_system_stats", lambda interval: [])

        sensors = SensorCatalog(hwmon_path=tmp_path).collect()

        assert [s.name for s in sensors] == ["k10temp_1"]
