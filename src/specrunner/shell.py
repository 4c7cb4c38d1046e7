"""Subprocess invocation used by task actions."""

from __future__ import annotations

import dataclasses
import pathlib
import shlex
import subprocess
from typing import Mapping, Optional, Sequence, Tuple, Union

from .console import StatusPrinter
from .errors import TaskExecutionError
from .logging import get_logger

Command = Union[str, Sequence[str]]

log = get_logger("specrunner.shell")


@dataclasses.dataclass(slots=True)
class CommandResult:
    command: Tuple[str, ...]
    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def render(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


class Shell:
    """Runs external commands and reports success through the exit status.

    String commands go through the system shell so that pipes and redirects in
    provisioning steps work; sequences are executed directly.
    """

    def __init__(self, *, dry_run: bool = False, printer: Optional[StatusPrinter] = None) -> None:
        self._dry_run = dry_run
        self._printer = printer

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def run(
        self,
        command: Command,
        *,
        env: Mapping[str, str],
        cwd: Optional[pathlib.Path] = None,
        capture: bool = False,
    ) -> CommandResult:
        text = render(command)
        parts = (text,) if isinstance(command, str) else tuple(command)
        where = f" (in {cwd})" if cwd else ""
        if self._dry_run:
            log.info("dry-run: %s%s", text, where)
            if self._printer is not None:
                self._printer.info(f"{text}{where}")
            return CommandResult(command=parts, returncode=0)

        log.info("run: %s%s", text, where)
        try:
            completed = subprocess.run(
                command,
                shell=isinstance(command, str),
                env=dict(env),
                cwd=str(cwd) if cwd else None,
                stdout=subprocess.PIPE if capture else None,
                text=True,
                check=False,
            )
        except OSError as exc:
            log.warning("Unable to start '%s': %s", text, exc)
            return CommandResult(command=parts, returncode=127)

        if completed.returncode != 0:
            log.info("exit %d: %s", completed.returncode, text)
        return CommandResult(
            command=parts,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
        )

    def sh(self, command: Command, *, env: Mapping[str, str], cwd: Optional[pathlib.Path] = None) -> None:
        """Run ``command`` and raise ``TaskExecutionError`` on a non-zero exit."""

        result = self.run(command, env=env, cwd=cwd)
        if not result.ok:
            raise TaskExecutionError(
                f"Command failed with status {result.returncode}: {render(command)}"
            )

    def system(self, command: Command, *, env: Mapping[str, str], cwd: Optional[pathlib.Path] = None) -> bool:
        return self.run(command, env=env, cwd=cwd).ok

    def capture(self, command: Command, *, env: Mapping[str, str], cwd: Optional[pathlib.Path] = None) -> str:
        result = self.run(command, env=env, cwd=cwd, capture=True)
        if not result.ok:
            raise TaskExecutionError(
                f"Command failed with status {result.returncode}: {render(command)}"
            )
        return result.stdout.strip()


__all__ = ["Command", "CommandResult", "Shell", "render"]
