"""Invocation of registered tasks within a single run."""

from __future__ import annotations

from typing import Callable, List, Optional, Set

from ..config import RunnerConfig
from ..console import StatusPrinter
from ..environment import Environment
from ..errors import CircularDependencyError
from ..logging import get_logger
from ..models import TaskName, TaskNameLike
from ..shell import Shell
from ..tasks.registry import TaskRegistry
from .context import ExecutionContext
from .report import CIReport

log = get_logger("specrunner.runner")


class TaskRunner:
    """Runs tasks and their prerequisites, each at most once per run.

    A task counts as invoked as soon as it starts, so a task that failed is
    not retried by a later invocation unless it is re-enabled first.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        config: Optional[RunnerConfig] = None,
        environment: Optional[Environment] = None,
        shell: Optional[Shell] = None,
        printer: Optional[StatusPrinter] = None,
    ) -> None:
        self.registry = registry
        self.config = config or RunnerConfig()
        self.environment = environment if environment is not None else Environment.from_process()
        self.shell = shell or Shell()
        self.printer = printer or StatusPrinter(prefix=self.config.ci.prefix)
        self.events: List[str] = []
        self.reports: List[CIReport] = []
        self._invoked: Set[TaskName] = set()
        self._stack: List[TaskName] = []

    def invoke(self, name: TaskNameLike) -> None:
        definition = self.registry.get(name)
        task = definition.name

        if task in self._stack:
            chain = " => ".join(str(item) for item in [*self._stack[self._stack.index(task):], task])
            raise CircularDependencyError(f"Circular dependency detected: {chain}")
        if task in self._invoked:
            log.debug("Already invoked: %s", task)
            return

        self._invoked.add(task)
        self._stack.append(task)
        try:
            for prerequisite in definition.prerequisites:
                self.invoke(prerequisite)
            log.info("Execute: %s", task)
            definition.run(ExecutionContext(task=task, runner=self))
        finally:
            self._stack.pop()

    def reenable(self, name: TaskNameLike) -> None:
        task = self.registry.get(name).name
        self._invoked.discard(task)

    def guard(self, block: Callable[[], object]) -> bool:
        """Run ``block`` and reduce its outcome to a boolean.

        Any ``Exception`` raised by the block is logged and absorbed.
        """

        try:
            block()
        except Exception as exc:  # noqa: BLE001
            log.warning("Guarded step failed: %s", exc)
            return False
        return True


__all__ = ["TaskRunner"]
