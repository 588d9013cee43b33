from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from closewatch.errors import ClosewatchError
from closewatch.log import getLogger


@dataclass(frozen=True)
class Task:
    name: str
    func: Callable[..., Any]
    deps: tuple[str, ...]


class TaskGraph:
    """
    A directed acyclic graph of named tasks. Each task is called with the
    results of its dependencies as keyword arguments. Tasks whose dependencies
    are finished run concurrently.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._logger = getLogger(self.__module__)

    def add(
        self, name: str, func: Callable[..., Any], deps: Iterable[str] = ()
    ) -> None:
        if name in self._tasks:
            raise ValueError(f"task '{name}' already added")

        self._tasks[name] = Task(name, func, tuple(deps))

    def _validate(self) -> None:
        for task in self._tasks.values():
            for dep in task.deps:
                if dep not in self._tasks:
                    raise ValueError(
                        f"unknown dependency '{dep}' of task '{task.name}'"
                    )

        resolved: set[str] = set()
        remaining = dict(self._tasks)
        while remaining:
            ready = [n for n, t in remaining.items() if resolved.issuperset(t.deps)]
            if not ready:
                raise ValueError(f"cyclic dependencies between {sorted(remaining)}")

            for name in ready:
                resolved.add(name)
                del remaining[name]

    def _run_task(self, task: Task, kwargs: dict[str, Any]) -> Any:
        self._logger.debug(f"Starting task '{task.name}'")
        res = task.func(**kwargs)
        self._logger.debug(f"Finished task '{task.name}'")
        return res

    def run(self, max_workers: int | None = None) -> dict[str, Any]:
        """
        Runs all tasks and returns their results by name.

        The first failing task aborts the run. Tasks not started yet are
        cancelled, running tasks are awaited, and the exception is raised. A
        ClosewatchError without stage gets the name of the failed task.
        """

        self._validate()

        results: dict[str, Any] = {}
        pending = dict(self._tasks)

        with ThreadPoolExecutor(max_workers) as executor:
            running: dict[Future, str] = {}

            def submit_ready() -> None:
                for name, task in list(pending.items()):
                    if not all(dep in results for dep in task.deps):
                        continue

                    del pending[name]
                    kwargs = {dep: results[dep] for dep in task.deps}
                    future = executor.submit(self._run_task, task, kwargs)
                    running[future] = name

            submit_ready()

            while running:
                done, _ = wait(running, return_when=FIRST_COMPLETED)

                for future in done:
                    name = running.pop(future)
                    try:
                        results[name] = future.result()
                    except Exception as e:
                        self._logger.debug(f"Task '{name}' failed: {e}")
                        executor.shutdown(wait=True, cancel_futures=True)

                        if isinstance(e, ClosewatchError) and e.stage is None:
                            e.stage = name
                        raise e

                submit_ready()

        return results
