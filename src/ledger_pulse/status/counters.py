"""
Windowed per-second counters.

Other parts of a ledger node increment one cache key per second, e.g.
`ecl|<token>|<epoch second>` for locally created events. A reading covers the
fixed trailing window of the last 600 whole seconds (the current, still
filling second is excluded) and reduces it to a sum or a per-second average.
"""
import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ledger_pulse.spec.protocols import CounterStore
from ledger_pulse.runtime.exceptions import CacheUnavailable
from ledger_pulse.status.keys import counter_key

WINDOW_SECONDS = 600


@dataclass(frozen=True)
class CounterWindow:
    key_prefix: str
    node_token: str
    now_epoch_seconds: int
    window_seconds: int = WINDOW_SECONDS

    def keys(self) -> List[str]:
        """One key per second offset, newest first."""
        return [
            counter_key(self.key_prefix, self.node_token, self.now_epoch_seconds - i)
            for i in range(1, self.window_seconds + 1)
        ]


def parse_counter(value) -> int:
    """
    Parses a raw cache value into an integer, 0 when missing or non-numeric.

    Like the counters' writers, only a leading integer is considered:
    b'12' -> 12, '7ms' -> 7, '1.9' -> 1, 'abc' -> 0, None -> 0.
    Only ASCII digits count.
    """
    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).lstrip()

    end = 1 if text[:1] in ("+", "-") else 0
    while end < len(text) and "0" <= text[end] <= "9":
        end += 1
    try:
        return int(text[:end])
    except ValueError:
        return 0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def total(values: Sequence[int]) -> int:
    return sum(values)


def average(values: Sequence[int], window_seconds: int = WINDOW_SECONDS) -> int:
    """
    Per-second average over the whole window, rounded half up.

    The divisor is always the window size, never the number of recorded
    samples, so an empty window averages to 0.
    """
    return round_half_up(total(values) / window_seconds)


class WindowedCounterReader:
    """Reads counters from a CounterStore in one round trip per call."""

    def __init__(
        self,
        store: CounterStore,
        window_seconds: int = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.window_seconds = window_seconds
        self._clock = clock

    def now(self) -> int:
        return round_half_up(self._clock())

    async def _mget(self, keys: List[str]) -> List[int]:
        try:
            raw = await self.store.mget(keys)
        except CacheUnavailable:
            raise
        except (OSError, asyncio.TimeoutError) as e:
            raise CacheUnavailable(f"Counter cache read failed: {e}") from e

        if len(raw) != len(keys):
            raise CacheUnavailable(
                f"Counter cache returned {len(raw)} values for {len(keys)} keys."
            )
        return [parse_counter(v) for v in raw]

    async def read_scalars(self, keys: Sequence[str]) -> List[int]:
        return await self._mget(list(keys))

    async def read_window(
        self, prefixes: Sequence[str], token: str, now: Optional[int] = None
    ) -> Dict[str, List[int]]:
        """
        Reads the full window of every prefix with a single batched read.
        Returns, per prefix, `window_seconds` integers, newest second first.
        """
        if now is None:
            now = self.now()

        windows = [
            CounterWindow(p, token, now, self.window_seconds) for p in prefixes
        ]
        keys: List[str] = []
        for window in windows:
            keys.extend(window.keys())

        values = await self._mget(keys)

        size = self.window_seconds
        return {
            window.key_prefix: values[i * size:(i + 1) * size]
            for i, window in enumerate(windows)
        }

    async def read_average(
        self, prefix: str, token: str, now: Optional[int] = None
    ) -> int:
        series = await self.read_window([prefix], token, now)
        return average(series[prefix], self.window_seconds)

    async def read_dual_average(
        self,
        local_prefix: str,
        peer_prefix: str,
        token: str,
        now: Optional[int] = None,
    ) -> Tuple[int, int]:
        """Averages two series independently over the same window."""
        series = await self.read_window([local_prefix, peer_prefix], token, now)
        return (
            average(series[local_prefix], self.window_seconds),
            average(series[peer_prefix], self.window_seconds),
        )
