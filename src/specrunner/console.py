"""Colored status output for interactive runs."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape


class StatusPrinter:
    """Prints phase headers and pass/fail lines with a fixed prefix."""

    def __init__(self, console: Optional[Console] = None, *, prefix: str = "CI") -> None:
        self._console = console or Console(highlight=False)
        self._prefix = prefix

    @property
    def console(self) -> Console:
        return self._console

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(f"[bold yellow]\\[{escape(self._prefix)}] {escape(message)}[/]")
        self._console.print()

    def status(self, name: str, passed: bool) -> None:
        if passed:
            self._console.print(f"[green]\\[{escape(self._prefix)}] {escape(name)} passed[/]")
        else:
            self._console.print(f"[red]\\[{escape(self._prefix)}] {escape(name)} failed[/]")

    def info(self, message: str) -> None:
        self._console.print(escape(message), soft_wrap=True)


__all__ = ["StatusPrinter"]
