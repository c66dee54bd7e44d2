from .spec.task import Task, task
from .runtime.engine import Engine
from .runtime.bus import MessageBus
from .runtime.subscribers import HumanReadableLogSubscriber
from .status.keys import KeyNamer, token_for
from .status.counters import WindowedCounterReader, CounterWindow, average, total
from .status.snapshot import PublishContext, StatusSnapshot, assemble
from .status.publisher import StatusPublisher
from .status.reporter import Reporter
from .tools.visualize import visualize

__all__ = [
    "Task",
    "task",
    "Engine",
    "MessageBus",
    "HumanReadableLogSubscriber",
    "KeyNamer",
    "token_for",
    "WindowedCounterReader",
    "CounterWindow",
    "average",
    "total",
    "PublishContext",
    "StatusSnapshot",
    "assemble",
    "StatusPublisher",
    "Reporter",
    "visualize",
]
