"""Command-line interface for the OrbIQ system monitor."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .catalog import SensorCatalog
from .config import Config
from .daemon import Daemon
from .errors import DaemonError
from .sensors import friendly_name, rounded_value

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx):
    """OrbIQ System Monitor - hardware sensors to Home Assistant over MQTT.

    Publishes temperatures, fan speeds and CPU/memory/disk usage with
    MQTT discovery metadata. Runs the monitor when no command is given.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: search standard locations)",
)
@click.option("--broker", "-b", default=None, help="MQTT broker address")
@click.option("--port", "-p", type=int, default=None, help="MQTT broker port")
@click.option("--device-name", "-n", default=None, help="Device name used in topics")
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Log messages instead of sending them",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Logging verbosity",
)
def run(config_path, broker, port, device_name, dry_run, log_level):
    """Run the monitor until SIGINT or SIGTERM."""
    setup_logging(log_level)

    config = Config.load(config_path)
    if broker:
        config.mqtt.broker = broker
    if port:
        config.mqtt.port = port
    if device_name:
        config.device.name = device_name

    try:
        Daemon(config, dry_run=dry_run).run()
    except DaemonError as e:
        logger.error(str(e))
        sys.exit(1)


@main.command("generate-config")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path("orbiq_system_monitor.yaml"),
    help="Where to write the example config",
)
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file")
def generate_config(output, force):
    """Write an example configuration file."""
    if output.exists() and not force:
        click.echo(f"Error: {output} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    Config.default().to_yaml(output)

    click.echo(f"Created: {output}")
    click.echo()
    click.echo("Edit the config file to customize:")
    click.echo("  - MQTT broker settings")
    click.echo("  - Device name and versions")
    click.echo("  - Update interval")
    click.echo()
    click.echo(f"Run with: orbiq-monitor run --config {output}")


@main.command("list-sensors")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: search standard locations)",
)
@click.option(
    "--hwmon-path",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="hwmon sysfs directory (default: from config)",
)
def list_sensors(config_path, hwmon_path):
    """Show the sensors that would be published right now."""
    if hwmon_path is None:
        hwmon_path = Path(Config.load(config_path).hwmon_path)

    sensors = SensorCatalog(hwmon_path=hwmon_path).collect()
    if not sensors:
        click.echo("No sensors found")
        return

    width = max(len(s.name) for s in sensors)
    for sensor in sensors:
        click.echo(
            f"{sensor.name:<{width}}  {rounded_value(sensor):>10} {sensor.unit:<4} "
            f"{friendly_name(sensor)}"
        )


if __name__ == "__main__":
    main()
