"""Command line interface for specrunner."""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import List, Optional

from .config import ConfigurationError, load_config
from .console import StatusPrinter
from .environment import Environment, is_assignment
from .errors import RegistryError, TaskExecutionError
from .execution.runner import TaskRunner
from .shell import Shell
from .tasks import TaskRegistry, build_registry

DEFAULT_TASK = "spec"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="specrunner", description="Run the project's spec tasks")
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="TASK",
        help=f"Tasks to invoke (default: {DEFAULT_TASK}); NAME=VALUE arguments set environment flags",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="config",
        help="Path to the task configuration (defaults to ./specrunner.yaml when present)",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print the commands that would run without executing them",
    )
    parser.add_argument(
        "-T",
        "--tasks",
        action="store_true",
        help="List tasks that have a description and exit",
    )
    parser.add_argument(
        "-P",
        "--prereqs",
        action="store_true",
        help="List every task with its prerequisites and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit CI reports and task events as JSON once the run finishes",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(pathlib.Path(args.config) if args.config else None)
    except ConfigurationError as exc:
        parser.error(str(exc))
        return 2

    registry = build_registry(config)

    if args.tasks:
        _print_tasks(registry)
        return 0
    if args.prereqs:
        _print_prereqs(registry)
        return 0

    assignments = [item for item in args.targets if is_assignment(item)]
    tasks = [item for item in args.targets if not is_assignment(item)] or [DEFAULT_TASK]

    printer = StatusPrinter(prefix=config.ci.prefix)
    runner = TaskRunner(
        registry,
        config=config,
        environment=Environment.from_process(assignments),
        shell=Shell(dry_run=args.dry_run, printer=printer),
        printer=printer,
    )
    status = _invoke_all(runner, tasks)

    if args.json:
        payload = {
            "reports": [report.as_dict() for report in runner.reports],
            "events": list(runner.events),
        }
        print(json.dumps(payload, indent=2))
    return status


def _invoke_all(runner: TaskRunner, tasks: List[str]) -> int:
    for name in tasks:
        try:
            runner.invoke(name)
        except RegistryError as exc:
            print("specrunner aborted!", file=sys.stderr)
            print(exc, file=sys.stderr)
            return 2
        except TaskExecutionError as exc:
            print("specrunner aborted!", file=sys.stderr)
            print(exc, file=sys.stderr)
            if exc.__cause__ is not None:
                print(f"  caused by: {exc.__cause__}", file=sys.stderr)
            return 1
    return 0


def _print_tasks(registry: TaskRegistry) -> None:
    described = [definition for definition in registry if definition.description]
    if not described:
        print("No documented tasks.")
        return
    width = max(len(str(definition.name)) for definition in described)
    for definition in sorted(described, key=lambda item: str(item.name)):
        print(f"specrunner {str(definition.name):<{width}}  # {definition.description}")


def _print_prereqs(registry: TaskRegistry) -> None:
    for name in registry.names():
        print(f"specrunner {name}")
        for prerequisite in registry.get(name).prerequisites:
            print(f"    {prerequisite}")


__all__ = ["build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
