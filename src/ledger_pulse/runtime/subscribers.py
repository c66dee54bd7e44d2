from .bus import MessageBus
from ..messaging.bus import bus as messaging_bus
from .events import (
    RunStarted,
    RunFinished,
    TaskExecutionStarted,
    TaskExecutionFinished,
    TaskDiscarded,
    StatusPublished,
    GenesisFetched,
)


class HumanReadableLogSubscriber:
    """
    Listens to runtime events and translates them into semantic messages
    on the messaging bus. It acts as a bridge between the event domain
    and the operator-facing message domain.
    """

    def __init__(self, event_bus: MessageBus):
        event_bus.subscribe(RunStarted, self.on_run_started)
        event_bus.subscribe(RunFinished, self.on_run_finished)
        event_bus.subscribe(TaskExecutionStarted, self.on_task_started)
        event_bus.subscribe(TaskExecutionFinished, self.on_task_finished)
        event_bus.subscribe(TaskDiscarded, self.on_task_discarded)
        event_bus.subscribe(StatusPublished, self.on_status_published)
        event_bus.subscribe(GenesisFetched, self.on_genesis_fetched)

    def on_run_started(self, event: RunStarted):
        messaging_bus.info(
            "run.started",
            count=len(event.task_names),
            tasks=", ".join(event.task_names),
        )

    def on_run_finished(self, event: RunFinished):
        if event.status == "Succeeded":
            messaging_bus.info("run.finished_success", duration=event.duration)
        else:
            messaging_bus.error(
                "run.finished_failure",
                status=event.status,
                duration=event.duration,
                error=event.error,
            )

    def on_task_started(self, event: TaskExecutionStarted):
        messaging_bus.debug("task.started", task_name=event.task_name)

    def on_task_finished(self, event: TaskExecutionFinished):
        if event.status == "Succeeded":
            messaging_bus.debug(
                "task.finished_success",
                task_name=event.task_name,
                duration=event.duration,
            )
        else:
            messaging_bus.error(
                "task.finished_failure",
                task_name=event.task_name,
                duration=event.duration,
                error=event.error,
            )

    def on_task_discarded(self, event: TaskDiscarded):
        messaging_bus.warning(
            "task.discarded", task_name=event.task_name, reason=event.reason
        )

    def on_status_published(self, event: StatusPublished):
        messaging_bus.info(
            "status.published",
            url=event.url,
            status=event.status,
            duration=event.duration,
        )

    def on_genesis_fetched(self, event: GenesisFetched):
        messaging_bus.info("genesis.fetched", url=event.url)
