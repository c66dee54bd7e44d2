import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ledger_pulse.runtime.exceptions import MissingResult

# Results every snapshot is built from, keyed by reporting task name
REQUIRED_RESULTS = (
    "avgConsensusTime",
    "duration",
    "eventsOutstanding",
    "eventsPerSecondLocal",
    "eventsPerSecondPeer",
    "eventsTotal",
    "latestSummary",
    "mergeEventsOutstanding",
    "mergeEventsTotal",
    "opsPerSecond",
)


@dataclass(frozen=True)
class PublishContext:
    """Static facts about the reporting node, merged into every snapshot."""

    base_uri: str
    label: str
    ledger_node_id: str
    public_hostname: str
    private_hostname: str
    port: int

    @property
    def log_url(self) -> str:
        return f"https://{self.public_hostname}:{self.port}/log/app"

    @property
    def mongo_url(self) -> str:
        return f"https://{self.public_hostname}:{self.port}/mongo"


@dataclass(frozen=True)
class Durations:
    aggregate: int = 0
    find_consensus: int = 0
    recent_history_merge_only: int = 0

    def to_payload(self) -> Dict[str, int]:
        return {
            "aggregate": self.aggregate,
            "findConsensus": self.find_consensus,
            "recentHistoryMergeOnly": self.recent_history_merge_only,
        }


@dataclass(frozen=True)
class OpsPerSecond:
    local: int = 0
    peer: int = 0

    def to_payload(self) -> Dict[str, int]:
        return {"local": self.local, "peer": self.peer}


@dataclass(frozen=True)
class EventMetrics:
    avg_consensus_time: float
    events_per_second_local: int
    events_per_second_peer: int
    merge_events_outstanding: int
    merge_events_total: int
    outstanding: int
    total: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "avgConsensusTime": self.avg_consensus_time,
            "eventsPerSecondLocal": self.events_per_second_local,
            "eventsPerSecondPeer": self.events_per_second_peer,
            "mergeEventsOutstanding": self.merge_events_outstanding,
            "mergeEventsTotal": self.merge_events_total,
            "outstanding": self.outstanding,
            "total": self.total,
        }


@dataclass(frozen=True)
class StatusSnapshot:
    context: PublishContext
    latest_summary: Any
    duration: Durations
    events: EventMetrics
    ops_per_second: OpsPerSecond
    load_average: Tuple[float, float, float]
    target_node: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """The JSON body posted to the collector."""
        status: Dict[str, Any] = {
            "latestSummary": self.latest_summary,
            "duration": self.duration.to_payload(),
            "events": self.events.to_payload(),
            "loadAverage": list(self.load_average),
            "opsPerSecond": self.ops_per_second.to_payload(),
        }
        if self.target_node is not None:
            status["targetNode"] = self.target_node

        ctx = self.context
        return {
            "baseUri": ctx.base_uri,
            "label": ctx.label,
            "ledgerNodeId": ctx.ledger_node_id,
            "logUrl": ctx.log_url,
            "mongoUrl": ctx.mongo_url,
            "privateHostname": ctx.private_hostname,
            "publicHostname": ctx.public_hostname,
            "status": status,
        }


def assemble(
    results: Mapping[str, Any],
    context: PublishContext,
    load_average: Callable[[], Tuple[float, float, float]] = os.getloadavg,
) -> StatusSnapshot:
    """
    Builds a StatusSnapshot from a completed reporting result map.

    The load average is sampled here, at assembly time. `creator` is optional;
    when present its id is reported as the target node.
    """
    for name in REQUIRED_RESULTS:
        if name not in results:
            raise MissingResult(name)

    creator = results.get("creator")
    target_node = getattr(creator, "id", None) if creator is not None else None

    events = EventMetrics(
        avg_consensus_time=results["avgConsensusTime"],
        events_per_second_local=results["eventsPerSecondLocal"],
        events_per_second_peer=results["eventsPerSecondPeer"],
        merge_events_outstanding=results["mergeEventsOutstanding"],
        merge_events_total=results["mergeEventsTotal"],
        outstanding=results["eventsOutstanding"],
        total=results["eventsTotal"],
    )

    return StatusSnapshot(
        context=context,
        latest_summary=results["latestSummary"],
        duration=results["duration"],
        events=events,
        ops_per_second=results["opsPerSecond"],
        load_average=tuple(float(x) for x in load_average()),
        target_node=target_node,
    )
