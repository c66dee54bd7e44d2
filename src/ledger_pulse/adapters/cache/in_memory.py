from typing import Dict, List, Optional, Sequence, Union


class InMemoryCounterStore:
    def __init__(self, initial: Optional[Dict[str, Union[bytes, str, int]]] = None):
        self._store: Dict[str, Union[bytes, str]] = {}
        self.mget_calls = 0
        for key, value in (initial or {}).items():
            self.set(key, value)

    def set(self, key: str, value: Union[bytes, str, int]) -> None:
        # Redis hands back strings/bytes, never ints
        self._store[key] = value if isinstance(value, (bytes, str)) else str(value)

    async def mget(self, keys: Sequence[str]) -> List[Optional[Union[bytes, str]]]:
        self.mget_calls += 1
        return [self._store.get(key) for key in keys]
