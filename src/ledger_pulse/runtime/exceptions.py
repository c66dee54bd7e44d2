from typing import Any, List, Optional


class LedgerPulseError(Exception):
    """Base class for all errors raised by ledger-pulse."""

    pass


class InvalidIdentifier(LedgerPulseError):
    """Raised when a node identifier has no extractable trailing segment."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"Cannot derive a node token from identifier {identifier!r}: "
            "no trailing segment found."
        )


class CacheUnavailable(LedgerPulseError):
    """Raised when the counter cache cannot be read."""

    pass


class GraphDefinitionError(LedgerPulseError):
    """Base class for errors in the structure of a task graph."""

    pass


class DuplicateTask(GraphDefinitionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Task '{name}' is registered more than once.")


class UnknownDependency(GraphDefinitionError):
    def __init__(self, task_name: str, dependency: str):
        self.task_name = task_name
        self.dependency = dependency
        super().__init__(
            f"Task '{task_name}' depends on '{dependency}', "
            "which is not part of the graph."
        )


class CyclicDependency(GraphDefinitionError):
    """
    Raised when the dependency relation of a graph contains a cycle.
    `cycle` lists the task names along the cycle, first name repeated last.
    """

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Cycle detected in the task graph: {' -> '.join(cycle)}")


class GraphTimeout(LedgerPulseError):
    """Raised when a graph run exceeds its deadline."""

    def __init__(self, timeout: float, running: List[str]):
        self.timeout = timeout
        self.running = running
        super().__init__(
            f"Task graph did not complete within {timeout}s "
            f"(still running: {', '.join(running) or 'none'})."
        )


class TaskCancelled(LedgerPulseError):
    """Raised when a task's own coroutine was cancelled instead of finishing."""

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Task '{task_name}' was cancelled.")


class MissingResult(LedgerPulseError):
    """
    Raised by the snapshot assembler when a required task result is absent.
    This indicates the task graph contract was not honored.
    """

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Required result '{task_name}' is missing from the result map.")


class GenesisUnavailable(LedgerPulseError):
    """Raised when the genesis block cannot be retrieved from the primary."""

    def __init__(
        self,
        url: str,
        status: Optional[int] = None,
        body: Any = None,
    ):
        self.url = url
        self.status = status
        self.body = body
        super().__init__("Could not retrieve genesis block.")


class PublishFailed(LedgerPulseError):
    """Raised when a status snapshot could not be delivered to the collector."""

    def __init__(
        self,
        url: str,
        status: Optional[int] = None,
        body: Any = None,
        reason: Optional[str] = None,
    ):
        self.url = url
        self.status = status
        self.body = body
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "transport error")
        super().__init__(f"Could not publish status to '{url}': {detail}.")


class ConfigError(LedgerPulseError):
    """Raised when the reporter configuration is missing a required value."""

    pass
