from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.runtime.events import Event


class SpySubscriber:
    def __init__(self, bus: MessageBus):
        self.events = []
        bus.subscribe(Event, self.collect)

    def collect(self, event: Event):
        self.events.append(event)

    def events_of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]


@dataclass
class MockVoter:
    id: str


class MockEventStore:
    """
    Records every query and answers counts from a caller-supplied function.
    By default every count is 0 and aggregations return no rows.
    """

    def __init__(
        self,
        count_fn: Optional[Callable[[Dict[str, Any]], int]] = None,
        aggregate_rows: Optional[List[Dict[str, Any]]] = None,
    ):
        self._count_fn = count_fn or (lambda query: 0)
        self._aggregate_rows = aggregate_rows or []
        self.count_log: List[Dict[str, Any]] = []
        self.aggregate_log: List[List[Dict[str, Any]]] = []

    async def count(self, query: Dict[str, Any]) -> int:
        self.count_log.append(query)
        return self._count_fn(query)

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.aggregate_log.append(pipeline)
        return list(self._aggregate_rows)


@dataclass
class MockBlockStore:
    summary: Dict[str, Any] = field(default_factory=dict)

    async def get_latest_summary(self) -> Dict[str, Any]:
        return self.summary


@dataclass
class MockLedgerNode:
    id: str
    voter: MockVoter
    events: MockEventStore = field(default_factory=MockEventStore)
    blocks: MockBlockStore = field(default_factory=MockBlockStore)

    async def get_voter(self) -> MockVoter:
        return self.voter


class MockLedgerNodeProvider:
    def __init__(self, *nodes: MockLedgerNode):
        self.nodes = {node.id: node for node in nodes}
        self.lookups: List[str] = []

    async def get(self, ledger_node_id: str) -> MockLedgerNode:
        self.lookups.append(ledger_node_id)
        try:
            return self.nodes[ledger_node_id]
        except KeyError:
            raise LookupError(f"Ledger node '{ledger_node_id}' not found.")
