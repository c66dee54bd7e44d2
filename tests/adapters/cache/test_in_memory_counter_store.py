import pytest

from ledger_pulse.adapters.cache.in_memory import InMemoryCounterStore


@pytest.mark.asyncio
async def test_mget_returns_values_in_key_order():
    store = InMemoryCounterStore({"a": 1, "b": "two"})

    assert await store.mget(["b", "missing", "a"]) == ["two", None, "1"]
    assert store.mget_calls == 1


@pytest.mark.asyncio
async def test_set_stores_values_as_the_cache_would_return_them():
    store = InMemoryCounterStore()

    store.set("ecl|abcd|100", 5)
    store.set("ecl|abcd|101", b"6")

    assert await store.mget(["ecl|abcd|100", "ecl|abcd|101"]) == ["5", b"6"]
