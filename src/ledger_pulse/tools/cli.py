import asyncio
import json
from typing import Optional

import typer

from ledger_pulse.adapters.cache import InMemoryCounterStore, RedisCounterStore
from ledger_pulse.config import ReporterConfig, load_config
from ledger_pulse.messaging.bus import bus
from ledger_pulse.messaging.renderer import CliRenderer, JsonRenderer
from ledger_pulse.providers.registry import registry
from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.runtime.exceptions import ConfigError
from ledger_pulse.runtime.subscribers import HumanReadableLogSubscriber
from ledger_pulse.status.counters import WindowedCounterReader
from ledger_pulse.status.publisher import StatusPublisher
from ledger_pulse.status.reporter import Reporter
from ledger_pulse.status.snapshot import PublishContext
from ledger_pulse.status.tasks import build_status_tasks
from ledger_pulse.tools.visualize import visualize

app = typer.Typer(help="Publish ledger node status snapshots to a collector.")

PLACEHOLDER_NODE_ID = "urn:uuid:00000000-0000-0000-0000-000000000000"


def _setup_logging(log_level: str, log_format: str):
    if log_format == "json":
        bus.set_renderer(JsonRenderer(min_level=log_level))
    else:
        bus.set_renderer(CliRenderer(store=bus.store, min_level=log_level))


@app.callback()
def main_options(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Minimum level for console logging (DEBUG, INFO, WARNING, ERROR).",
    ),
    log_format: str = typer.Option(
        "human", "--log-format", help="Format for logging ('human' or 'json')."
    ),
):
    _setup_logging(log_level, log_format)


async def _send_status(config: ReporterConfig, interval: Optional[float]) -> None:
    """Runs one reporting cycle, or one every `interval` seconds."""
    if not config.ledger_provider:
        raise ConfigError("Missing required configuration value 'ledger.provider'.")

    event_bus = MessageBus()
    HumanReadableLogSubscriber(event_bus)

    reporter = Reporter(
        config,
        store=RedisCounterStore.from_url(config.redis_url),
        ledger_nodes=registry.create(config.ledger_provider, config.ledger_options),
        bus=event_bus,
    )

    while True:
        try:
            await reporter.send_status()
        except Exception as e:
            if interval is None:
                raise
            # The next cycle is the retry
            bus.error("cycle.failed", error=f"{type(e).__name__}: {e}")

        if interval is None:
            return
        await asyncio.sleep(interval)


async def _fetch_genesis(primary: str, verify_ssl: bool, timeout: Optional[float]):
    event_bus = MessageBus()
    HumanReadableLogSubscriber(event_bus)
    publisher = StatusPublisher(bus=event_bus, verify_ssl=verify_ssl, request_timeout=timeout)
    return await publisher.fetch_genesis(primary)


@app.command("send-status")
def send_status(
    config_path: str = typer.Option(..., "--config", "-c", help="Path to the YAML configuration."),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Repeat every N seconds instead of running once."
    ),
):
    """
    Collect this node's status and publish it to the collector.
    """
    try:
        config = load_config(config_path)
        asyncio.run(_send_status(config=config, interval=interval))
    except KeyboardInterrupt:
        bus.info("cli.shutdown")
    except Exception as e:
        bus.error("cli.error", error=f"{type(e).__name__}: {e}")
        raise typer.Exit(code=1)


@app.command()
def genesis(
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the YAML configuration."
    ),
    primary: Optional[str] = typer.Option(
        None, "--primary", help="Base URL of the primary node (overrides the config)."
    ),
):
    """
    Fetch the genesis block from the primary node and print it as JSON.
    """
    verify_ssl, timeout = False, None
    try:
        if config_path:
            config = load_config(config_path)
            primary = primary or config.primary_base_url
            verify_ssl, timeout = config.verify_ssl, config.request_timeout
        if not primary:
            raise ConfigError("Either --config or --primary is required.")

        block = asyncio.run(
            _fetch_genesis(primary=primary, verify_ssl=verify_ssl, timeout=timeout)
        )
    except Exception as e:
        bus.error("cli.error", error=f"{type(e).__name__}: {e}")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(block, indent=2))


@app.command()
def graph(
    ledger_node_id: str = typer.Option(
        PLACEHOLDER_NODE_ID, "--ledger-node-id", help="Node identifier used to name the tasks."
    ),
):
    """
    Print the reporting task graph in Graphviz DOT format.
    """
    # The tasks are only inspected here, never run
    tasks = build_status_tasks(
        ledger_node_id,
        reader=WindowedCounterReader(InMemoryCounterStore()),
        ledger_nodes=None,
        publisher=StatusPublisher(),
        context=PublishContext("", "", ledger_node_id, "", "", 0),
        collector_url="",
    )
    typer.echo(visualize(tasks))


def main():
    app()


if __name__ == "__main__":
    main()
