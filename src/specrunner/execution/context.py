"""Execution context objects passed to task actions."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Callable, List

from ..config import RunnerConfig
from ..console import StatusPrinter
from ..environment import Environment
from ..models import TaskName, TaskNameLike
from ..shell import Command, Shell

if TYPE_CHECKING:  # pragma: no cover
    from .report import CIReport
    from .runner import TaskRunner


@dataclasses.dataclass(slots=True)
class ExecutionContext:
    """Runtime information handed to task actions."""

    task: TaskName
    runner: "TaskRunner"

    @property
    def config(self) -> RunnerConfig:
        return self.runner.config

    @property
    def environment(self) -> Environment:
        return self.runner.environment

    @property
    def shell(self) -> Shell:
        return self.runner.shell

    @property
    def printer(self) -> StatusPrinter:
        return self.runner.printer

    @property
    def reports(self) -> List["CIReport"]:
        return self.runner.reports

    def invoke(self, name: TaskNameLike) -> None:
        self.runner.invoke(name)

    def reenable(self, name: TaskNameLike) -> None:
        self.runner.reenable(name)

    def guard(self, block: Callable[[], object]) -> bool:
        return self.runner.guard(block)

    def sh(self, command: Command, **kwargs) -> None:
        self.shell.sh(command, env=self.environment.as_process_env(), **kwargs)

    def system(self, command: Command, **kwargs) -> bool:
        return self.shell.system(command, env=self.environment.as_process_env(), **kwargs)

    def capture(self, command: Command, **kwargs) -> str:
        return self.shell.capture(command, env=self.environment.as_process_env(), **kwargs)

    def record(self, message: str) -> None:
        entry = f"[{self.task}] {message}"
        self.runner.events.append(entry)
        self.printer.info(entry)
