import importlib
import importlib.metadata
from typing import Any, Callable, Dict, Mapping, Optional

from ledger_pulse.runtime.exceptions import ConfigError
from ledger_pulse.spec.protocols import LedgerNodeProvider

ENTRY_POINT_GROUP = "ledger_pulse.ledger_nodes"

# A factory receives the `ledger.options` mapping from the configuration
LedgerNodeFactory = Callable[[Mapping[str, Any]], LedgerNodeProvider]


class LedgerProviderRegistry:
    """
    Resolves ledger storage integrations by name.

    Integrations are registered explicitly, discovered from the
    'ledger_pulse.ledger_nodes' entry point group, or referenced directly as
    'package.module:factory'.
    """

    _instance = None

    def __init__(self):
        self._factories: Dict[str, LedgerNodeFactory] = {}
        self._loaded = False

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, name: str, factory: LedgerNodeFactory):
        self._factories[name] = factory

    def get(self, name: str) -> LedgerNodeFactory:
        if not self._loaded:
            self._discover_entry_points()
            self._loaded = True

        if name in self._factories:
            return self._factories[name]

        if ":" in name:
            return _import_factory(name)

        raise ConfigError(f"Ledger node provider '{name}' not found.")

    def create(
        self, name: str, options: Optional[Mapping[str, Any]] = None
    ) -> LedgerNodeProvider:
        return self.get(name)(options or {})

    def _discover_entry_points(self):
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            self._factories.setdefault(ep.name, ep.load())


def _import_factory(path: str) -> LedgerNodeFactory:
    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot load ledger node provider '{path}': {e}") from e


# Global registry accessor
registry = LedgerProviderRegistry.instance()
