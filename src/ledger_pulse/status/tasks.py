"""
The reporting cycle expressed as a task graph.

    duration, opsPerSecond, eventsPerSecondLocal, eventsPerSecondPeer  (cache)
    ledgerNode -> creator -> avgConsensusTime                          (storage)
    ledgerNode -> latestSummary, eventsOutstanding, eventsTotal,
                  mergeEventsTotal, mergeEventsOutstanding              (storage)
    all of the above -> sendStatus
"""
import os
from typing import Any, Callable, Dict, List, Mapping, Tuple

from ledger_pulse.spec.task import Task, task
from ledger_pulse.spec.protocols import LedgerNodeProvider
from ledger_pulse.status import keys
from ledger_pulse.status.counters import WindowedCounterReader
from ledger_pulse.status.publisher import StatusPublisher
from ledger_pulse.status.snapshot import (
    REQUIRED_RESULTS,
    Durations,
    OpsPerSecond,
    PublishContext,
    assemble,
)

MERGE_EVENT = {"meta.continuity2017.type": "m"}
# "Not yet reached consensus" means the consensus field is absent
NO_CONSENSUS = {"meta.consensus": {"$exists": False}}

CONSENSUS_SAMPLE_SIZE = 100


def consensus_time_pipeline(creator_id: str) -> List[Dict[str, Any]]:
    """
    Average time from creation to consensus over the creator's latest merge
    events that reached consensus.
    """
    return [
        {
            "$match": {
                "meta.consensus": {"$exists": True},
                "meta.continuity2017.type": "m",
                "meta.continuity2017.creator": creator_id,
            }
        },
        {"$sort": {"meta.continuity2017.generation": -1}},
        {"$limit": CONSENSUS_SAMPLE_SIZE},
        {
            "$project": {
                "consensusTime": {"$subtract": ["$meta.consensusDate", "$meta.created"]}
            }
        },
        {"$group": {"_id": None, "avgConsensusTime": {"$avg": "$consensusTime"}}},
    ]


def build_status_tasks(
    ledger_node_id: str,
    reader: WindowedCounterReader,
    ledger_nodes: LedgerNodeProvider,
    publisher: StatusPublisher,
    context: PublishContext,
    collector_url: str,
    load_average: Callable[[], Tuple[float, float, float]] = os.getloadavg,
) -> List[Task]:
    namer = keys.KeyNamer(ledger_node_id)
    # Fails fast on a malformed identifier, before any task is built
    token = namer.token

    @task
    async def duration(_: Mapping[str, Any]) -> Durations:
        values = await reader.read_scalars(namer.duration_keys())
        return Durations(*values)

    @task(name="opsPerSecond")
    async def ops_per_second(_: Mapping[str, Any]) -> OpsPerSecond:
        local, peer = await reader.read_dual_average(keys.OPS_LOCAL, keys.OPS_PEER, token)
        return OpsPerSecond(local=local, peer=peer)

    @task(name="eventsPerSecondLocal")
    async def events_per_second_local(_: Mapping[str, Any]) -> int:
        return await reader.read_average(keys.EVENTS_LOCAL, token)

    @task(name="eventsPerSecondPeer")
    async def events_per_second_peer(_: Mapping[str, Any]) -> int:
        return await reader.read_average(keys.EVENTS_PEER, token)

    @task(name="ledgerNode")
    async def ledger_node(_: Mapping[str, Any]):
        return await ledger_nodes.get(ledger_node_id)

    @task(depends_on=["ledgerNode"])
    async def creator(results: Mapping[str, Any]):
        return await results["ledgerNode"].get_voter()

    @task(name="avgConsensusTime", depends_on=["ledgerNode", "creator"])
    async def avg_consensus_time(results: Mapping[str, Any]) -> float:
        pipeline = consensus_time_pipeline(results["creator"].id)
        rows = await results["ledgerNode"].events.aggregate(pipeline)
        if not rows:
            return 0
        return rows[0]["avgConsensusTime"]

    @task(name="latestSummary", depends_on=["ledgerNode"])
    async def latest_summary(results: Mapping[str, Any]):
        return await results["ledgerNode"].blocks.get_latest_summary()

    @task(name="eventsOutstanding", depends_on=["ledgerNode"])
    async def events_outstanding(results: Mapping[str, Any]) -> int:
        return await results["ledgerNode"].events.count(dict(NO_CONSENSUS))

    @task(name="eventsTotal", depends_on=["ledgerNode"])
    async def events_total(results: Mapping[str, Any]) -> int:
        return await results["ledgerNode"].events.count({})

    @task(name="mergeEventsTotal", depends_on=["ledgerNode"])
    async def merge_events_total(results: Mapping[str, Any]) -> int:
        return await results["ledgerNode"].events.count(dict(MERGE_EVENT))

    @task(name="mergeEventsOutstanding", depends_on=["ledgerNode"])
    async def merge_events_outstanding(results: Mapping[str, Any]) -> int:
        return await results["ledgerNode"].events.count({**MERGE_EVENT, **NO_CONSENSUS})

    @task(name="sendStatus", depends_on=[*REQUIRED_RESULTS, "creator"])
    async def send_status(results: Mapping[str, Any]):
        snapshot = assemble(results, context, load_average=load_average)
        await publisher.publish(snapshot, collector_url)
        return snapshot

    return [
        duration,
        ops_per_second,
        events_per_second_local,
        events_per_second_peer,
        ledger_node,
        creator,
        avg_consensus_time,
        latest_summary,
        events_outstanding,
        events_total,
        merge_events_total,
        merge_events_outstanding,
        send_status,
    ]
