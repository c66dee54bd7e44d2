import pytest
from unittest.mock import AsyncMock

from ledger_pulse.adapters.cache.in_memory import InMemoryCounterStore
from ledger_pulse.runtime.exceptions import CacheUnavailable
from ledger_pulse.status.counters import (
    CounterWindow,
    WindowedCounterReader,
    average,
    parse_counter,
    round_half_up,
    total,
)

NOW = 1_700_000_000
TOKEN = "abcd"


def test_counter_window_covers_trailing_seconds():
    keys = CounterWindow("ecl", TOKEN, NOW).keys()

    assert len(keys) == 600
    assert len(set(keys)) == 600
    assert keys[0] == f"ecl|{TOKEN}|{NOW - 1}"
    assert keys[-1] == f"ecl|{TOKEN}|{NOW - 600}"
    # The current, still filling second is not part of the window
    assert f"ecl|{TOKEN}|{NOW}" not in keys


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0),
        (b"12", 12),
        ("7", 7),
        ("7ms", 7),
        ("1.9", 1),
        (" 42", 42),
        ("-3", -3),
        ("abc", 0),
        ("\u0661\u0662", 0),
        ("1\u00b2", 1),
        ("", 0),
        (b"+", 0),
    ],
)
def test_parse_counter(raw, expected):
    assert parse_counter(raw) == expected


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(0.49) == 0


def test_average_of_empty_window_is_zero():
    assert average([0] * 600) == 0


def test_sum_and_average_with_sparse_samples():
    values = [5] * 10 + [0] * 590

    assert total(values) == 50
    # 50 / 600 = 0.083.. rounds down
    assert average(values) == 0


def test_average_divides_by_window_not_by_samples():
    values = [600] * 300 + [0] * 300
    assert average(values) == 300


@pytest.mark.asyncio
async def test_read_window_uses_one_round_trip_for_all_prefixes():
    store = InMemoryCounterStore(
        {
            f"ocl|{TOKEN}|{NOW - 1}": "30",
            f"ocl|{TOKEN}|{NOW - 600}": "30",
            f"ocp|{TOKEN}|{NOW - 2}": b"1200",
            # Outside the window
            f"ocl|{TOKEN}|{NOW}": "999",
            f"ocl|{TOKEN}|{NOW - 601}": "999",
        }
    )
    reader = WindowedCounterReader(store)

    series = await reader.read_window(["ocl", "ocp"], TOKEN, now=NOW)

    assert store.mget_calls == 1
    assert set(series) == {"ocl", "ocp"}
    assert len(series["ocl"]) == 600
    assert len(series["ocp"]) == 600
    assert total(series["ocl"]) == 60
    assert series["ocp"][1] == 1200


@pytest.mark.asyncio
async def test_read_window_with_nothing_recorded():
    reader = WindowedCounterReader(InMemoryCounterStore())

    series = await reader.read_window(["ecl"], TOKEN, now=NOW)

    assert series["ecl"] == [0] * 600
    assert average(series["ecl"]) == 0


@pytest.mark.asyncio
async def test_read_dual_average_averages_series_independently():
    store = InMemoryCounterStore()
    for i in range(1, 601):
        store.set(f"ocl|{TOKEN}|{NOW - i}", 3)
    for i in range(1, 301):
        store.set(f"ocp|{TOKEN}|{NOW - i}", 2)
    reader = WindowedCounterReader(store)

    local, peer = await reader.read_dual_average("ocl", "ocp", TOKEN, now=NOW)

    assert local == 3
    assert peer == 1
    assert store.mget_calls == 1


@pytest.mark.asyncio
async def test_reader_uses_clock_when_now_is_omitted():
    store = InMemoryCounterStore({f"ecl|{TOKEN}|{NOW - 1}": "600"})
    reader = WindowedCounterReader(store, clock=lambda: NOW + 0.4)

    assert await reader.read_average("ecl", TOKEN) == 1


@pytest.mark.asyncio
async def test_read_scalars_coerces_missing_values():
    store = InMemoryCounterStore({"t|aggregate|abcd": "15", "t|findConsensus|abcd": "x"})
    reader = WindowedCounterReader(store)

    values = await reader.read_scalars(
        ["t|aggregate|abcd", "t|findConsensus|abcd", "t|recentHistoryMergeOnly|abcd"]
    )

    assert values == [15, 0, 0]


@pytest.mark.asyncio
async def test_connection_errors_become_cache_unavailable():
    store = AsyncMock()
    store.mget.side_effect = ConnectionRefusedError("refused")
    reader = WindowedCounterReader(store)

    with pytest.raises(CacheUnavailable):
        await reader.read_window(["ecl"], TOKEN, now=NOW)


@pytest.mark.asyncio
async def test_short_reply_is_treated_as_unavailable():
    store = AsyncMock()
    store.mget.return_value = [b"1"]
    reader = WindowedCounterReader(store)

    with pytest.raises(CacheUnavailable):
        await reader.read_window(["ecl"], TOKEN, now=NOW)
