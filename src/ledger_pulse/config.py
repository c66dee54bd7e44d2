from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import yaml

from ledger_pulse.runtime.exceptions import ConfigError

_MISSING = object()


def lookup(source: Dict[str, Any], key: str, default: Any = _MISSING) -> Any:
    """
    Resolves a dotted key such as 'server.port' inside nested mappings/lists.
    Returns `default` when a segment is absent and a default was given.
    """
    parts = key.split(".")
    current = source

    for part in parts:
        if isinstance(current, dict):
            if part in current:
                current = current[part]
            elif default is not _MISSING:
                return default
            else:
                raise KeyError(
                    f"Configuration key segment '{part}' not found in path: {key}"
                )
        elif isinstance(current, list):
            try:
                index = int(part)
                current = current[index]
            except (ValueError, IndexError):
                if default is not _MISSING:
                    return default
                raise KeyError(
                    f"Configuration key segment '{part}' is not a valid list index or list is exhausted in path: {key}"
                )
        else:
            raise TypeError(
                f"Cannot access segment '{part}' on non-container type '{type(current).__name__}' at path: {key}"
            )

    return current


@dataclass(frozen=True)
class ReporterConfig:
    base_uri: str
    domain: str
    port: int
    primary_base_url: str
    collector_url: str
    ledger_node_id: str
    label: str
    public_hostname: str
    redis_url: str = "redis://localhost:6379/0"
    verify_ssl: bool = False
    request_timeout: Optional[float] = None
    cycle_timeout: Optional[float] = None
    ledger_provider: Optional[str] = None
    ledger_options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ReporterConfig":
        def required(key: str) -> Any:
            try:
                value = lookup(raw, key)
            except (KeyError, TypeError) as e:
                raise ConfigError(f"Missing required configuration value '{key}'.") from e
            if value is None or value == "":
                raise ConfigError(f"Missing required configuration value '{key}'.")
            return value

        primary = required("ledger.primaryBaseUrl")
        return cls(
            base_uri=required("server.baseUri"),
            domain=required("server.domain"),
            port=int(required("server.port")),
            primary_base_url=primary,
            collector_url=lookup(raw, "ledger.collectorUrl", None) or primary,
            ledger_node_id=required("node.ledgerNodeId"),
            label=required("node.label"),
            public_hostname=required("node.publicHostname"),
            redis_url=lookup(raw, "redis.url", cls.redis_url),
            verify_ssl=bool(lookup(raw, "publisher.verifySsl", cls.verify_ssl)),
            request_timeout=_optional_float(lookup(raw, "publisher.requestTimeout", None)),
            cycle_timeout=_optional_float(lookup(raw, "cycle.timeout", None)),
            ledger_provider=lookup(raw, "ledger.provider", None),
            ledger_options=lookup(raw, "ledger.options", None) or {},
        )


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def load_config(path: str) -> ReporterConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping.")
    return ReporterConfig.from_dict(raw)
