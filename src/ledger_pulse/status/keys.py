"""
Cache key naming for a ledger node.

Counters are namespaced by the node token: the trailing segment of the node's
canonical identifier (a UUID) with its hyphens removed.
"""
from dataclasses import dataclass
from typing import List

from ledger_pulse.runtime.exceptions import InvalidIdentifier

# Scalar duration counters, in milliseconds
DURATION_COUNTERS = ("aggregate", "findConsensus", "recentHistoryMergeOnly")

# Per-second counter prefixes
OPS_LOCAL = "ocl"
OPS_PEER = "ocp"
EVENTS_LOCAL = "ecl"
EVENTS_PEER = "ecp"


def token_for(identifier: str) -> str:
    """
    Returns the last colon-delimited segment of `identifier` without hyphens.

    Trailing colons are ignored, so 'urn:uuid:ab-cd:' yields 'abcd'.
    """
    segment = identifier.rstrip(":").rpartition(":")[2]
    token = segment.replace("-", "")
    if not token:
        raise InvalidIdentifier(identifier)
    return token


def duration_key(name: str, token: str) -> str:
    return f"t|{name}|{token}"


def counter_key(prefix: str, token: str, second: int) -> str:
    return f"{prefix}|{token}|{second}"


@dataclass(frozen=True)
class KeyNamer:
    """Key builders bound to a single ledger node identifier."""

    ledger_node_id: str

    @property
    def token(self) -> str:
        return token_for(self.ledger_node_id)

    def duration_keys(self) -> List[str]:
        token = self.token
        return [duration_key(name, token) for name in DURATION_COUNTERS]

    def counter_key(self, prefix: str, second: int) -> str:
        return counter_key(prefix, self.token, second)
