"""OANDA stream bridge CLI."""

import asyncio
import sys

import click

from oandabridge.app import BridgeApp
from oandabridge.config_loader import load_config
from oandabridge.constants import LogLevel, SinkType
from oandabridge.errors import BridgeError


@click.group()
def cli():
    """OANDA pricing stream to ZeroMQ bridge."""
    pass


@cli.command()
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Optional YAML configuration file (defaults to environment variables)",
)
@click.option(
    "--sink",
    type=click.Choice([s.value for s in SinkType], case_sensitive=False),
    help="Override publish sink",
)
@click.option(
    "--log-level",
    type=click.Choice([lvl.value for lvl in LogLevel], case_sensitive=False),
    help="Override log level",
)
def run(config, sink, log_level):
    """Stream prices and republish them until the server closes the stream."""
    app = BridgeApp(config_path=config, sink=sink, log_level=log_level)
    try:
        stats = asyncio.run(app.run())
    except KeyboardInterrupt:
        click.echo("Interrupted", err=True)
        sys.exit(130)
    except BridgeError as e:
        click.echo(f"Fatal error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Stream ended: {stats.records} records, {stats.published} published")


@cli.command("check-config")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Optional YAML configuration file (defaults to environment variables)",
)
def check_config(config):
    """Resolve configuration and print it with the token masked."""
    try:
        cfg = load_config(config)
    except BridgeError as e:
        click.echo(f"Configuration invalid: {e}", err=True)
        sys.exit(1)

    for key, value in cfg.redacted().items():
        click.echo(f"{key}: {value}")
    click.echo(f"stream_url: {cfg.stream_url}?instruments={cfg.instruments_param}")


if __name__ == "__main__":
    cli()

# Alias for __main__.py
main = cli
