import dataclasses
import io
import pathlib
import sys
from typing import Callable, List, Mapping, Optional

import pytest
from rich.console import Console

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from specrunner.config import MatrixSettings, RunnerConfig  # noqa: E402
from specrunner.console import StatusPrinter  # noqa: E402
from specrunner.environment import Environment  # noqa: E402
from specrunner.execution.runner import TaskRunner  # noqa: E402
from specrunner.shell import CommandResult, Shell, render  # noqa: E402
from specrunner.tasks import build_registry  # noqa: E402


@dataclasses.dataclass(slots=True)
class Call:
    command: str
    cwd: Optional[pathlib.Path]
    env: Mapping[str, str]


class FakeShell(Shell):
    """Records commands instead of running them.

    ``fail_when`` receives the rendered command and its environment and
    decides whether the command exits non-zero.
    """

    def __init__(self, fail_when: Optional[Callable[[str, Mapping[str, str]], bool]] = None) -> None:
        super().__init__()
        self.calls: List[Call] = []
        self.outputs: dict[str, str] = {}
        self.fail_when = fail_when or (lambda command, env: False)

    def run(self, command, *, env, cwd=None, capture=False) -> CommandResult:
        text = render(command)
        self.calls.append(Call(command=text, cwd=cwd, env=dict(env)))
        code = 1 if self.fail_when(text, env) else 0
        return CommandResult(command=(text,), returncode=code, stdout=self.outputs.get(text, ""))

    @property
    def commands(self) -> List[str]:
        return [call.command for call in self.calls]


@pytest.fixture()
def shell() -> FakeShell:
    shell = FakeShell()
    shell.outputs["git rev-parse HEAD"] = "abc123\n"
    return shell


@pytest.fixture()
def config(tmp_path: pathlib.Path) -> RunnerConfig:
    return RunnerConfig(
        root=tmp_path,
        matrix=MatrixSettings(branches=["master"], releases=["v2.1.11"]),
    )


@pytest.fixture()
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def runner(config: RunnerConfig, shell: FakeShell, output: io.StringIO) -> TaskRunner:
    printer = StatusPrinter(Console(file=output, width=200, color_system=None), prefix="CI")
    return TaskRunner(
        build_registry(config),
        config=config,
        environment=Environment({"PATH": "/usr/bin", "USER": "tester"}),
        shell=shell,
        printer=printer,
    )
