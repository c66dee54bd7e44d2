from dataclasses import dataclass, field
from typing import List, Optional
import time
import itertools

# Fast, thread-safe counter for event IDs
_event_id_gen = itertools.count()


@dataclass(frozen=True)
class Event:
    event_id: str = field(default_factory=lambda: str(next(_event_id_gen)))
    timestamp: float = field(default_factory=time.time)

    # Injected by the Engine for every event belonging to a run
    run_id: Optional[str] = None


@dataclass(frozen=True)
class RunStarted(Event):
    # Must provide defaults because base class has defaults
    task_names: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunFinished(Event):
    status: str = "Unknown"  # "Succeeded", "Failed", "TimedOut"
    duration: float = 0.0
    error: Optional[str] = None


@dataclass(frozen=True)
class TaskEvent(Event):
    task_name: str = ""


@dataclass(frozen=True)
class TaskExecutionStarted(TaskEvent):
    pass


@dataclass(frozen=True)
class TaskExecutionFinished(TaskEvent):
    status: str = "Unknown"  # "Succeeded", "Failed"
    duration: float = 0.0
    result_preview: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TaskDiscarded(TaskEvent):
    """Fired when a task finishes after its graph already failed."""

    reason: str = "GraphFailed"


@dataclass(frozen=True)
class StatusPublished(Event):
    url: str = ""
    status: int = 0
    duration: float = 0.0


@dataclass(frozen=True)
class GenesisFetched(Event):
    url: str = ""
