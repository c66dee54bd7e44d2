from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Iterable, Mapping, Optional, Union
import inspect

# A unit of work receives the read-only results of its dependencies.
TaskFunc = Callable[[Mapping[str, Any]], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Task:
    """
    A named unit of work with declared dependencies on other named tasks.

    `run` is invoked with a read-only mapping holding exactly the results of
    the tasks named in `depends_on`. It may be a plain function or a coroutine
    function.
    """

    name: str
    run: TaskFunc
    depends_on: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of names for convenience
        if not isinstance(self.depends_on, frozenset):
            object.__setattr__(self, "depends_on", frozenset(self.depends_on))

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.run)

    def __repr__(self):
        deps = ", ".join(sorted(self.depends_on))
        return f"<Task {self.name} <- [{deps}]>"


def task(
    func: Optional[TaskFunc] = None,
    *,
    name: Optional[str] = None,
    depends_on: Iterable[str] = (),
) -> Union[Task, Callable[[TaskFunc], Task]]:
    """
    Decorator to convert a function into a Task.
    Can be used as a simple decorator (`@task`) or as a factory with
    arguments (`@task(name='custom_name', depends_on=['other'])`).
    """

    def wrapper(f: TaskFunc) -> Task:
        return Task(name=name or f.__name__, run=f, depends_on=frozenset(depends_on))

    if func:
        # Used as @task
        return wrapper(func)
    else:
        # Used as @task(name="...")
        return wrapper
