import os
from typing import Any, Callable, Optional, Tuple

from ledger_pulse.config import ReporterConfig
from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.runtime.engine import Engine
from ledger_pulse.spec.protocols import CounterStore, LedgerNodeProvider
from ledger_pulse.status.counters import WindowedCounterReader
from ledger_pulse.status.publisher import StatusPublisher
from ledger_pulse.status.snapshot import PublishContext, StatusSnapshot
from ledger_pulse.status.tasks import build_status_tasks


class Reporter:
    """
    Runs reporting cycles for one ledger node.

    A cycle either publishes a complete snapshot or raises the first error;
    partial snapshots are never published.
    """

    def __init__(
        self,
        config: ReporterConfig,
        store: CounterStore,
        ledger_nodes: LedgerNodeProvider,
        bus: Optional[MessageBus] = None,
        load_average: Callable[[], Tuple[float, float, float]] = os.getloadavg,
    ):
        self.config = config
        self.bus = bus or MessageBus()
        self.engine = Engine(bus=self.bus)
        self.reader = WindowedCounterReader(store)
        self.ledger_nodes = ledger_nodes
        self.publisher = StatusPublisher(
            bus=self.bus,
            verify_ssl=config.verify_ssl,
            request_timeout=config.request_timeout,
        )
        self._load_average = load_average

    @property
    def context(self) -> PublishContext:
        cfg = self.config
        return PublishContext(
            base_uri=cfg.base_uri,
            label=cfg.label,
            ledger_node_id=cfg.ledger_node_id,
            public_hostname=cfg.public_hostname,
            private_hostname=cfg.domain,
            port=cfg.port,
        )

    def tasks(self):
        return build_status_tasks(
            self.config.ledger_node_id,
            reader=self.reader,
            ledger_nodes=self.ledger_nodes,
            publisher=self.publisher,
            context=self.context,
            collector_url=self.config.collector_url,
            load_average=self._load_average,
        )

    async def send_status(self) -> StatusSnapshot:
        results = await self.engine.run(self.tasks(), timeout=self.config.cycle_timeout)
        return results["sendStatus"]

    async def get_genesis(self) -> Any:
        return await self.publisher.fetch_genesis(self.config.primary_base_url)
