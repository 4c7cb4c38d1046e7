"""Built-in tasks for running the project's spec suites."""

from __future__ import annotations

import getpass
import shlex
import shutil
import sys
from typing import List, Sequence

from ..config import Command, RunnerConfig
from ..errors import TaskExecutionError
from ..execution.context import ExecutionContext
from ..execution.report import CIReport
from ..models import TaskName
from .checkout import prepare_checkout, record_checkout
from .registry import TaskRegistry

SPEC = TaskName(("spec",))


def _with_options(command: Command, options: Sequence[str]) -> Command:
    if not options:
        return command
    if isinstance(command, str):
        return f"{command} {shlex.join(options)}"
    return [*command, *options]


def _format(arguments: Sequence[str], **values: str) -> List[str]:
    return [argument.format(**values) for argument in arguments]


def define_tasks(registry: TaskRegistry, config: RunnerConfig) -> TaskRegistry:
    """Register every built-in task on ``registry``."""

    _define_suite_tasks(registry, config)
    _define_dependency_tasks(registry, config)
    _define_matrix_tasks(registry, config)
    _define_ci_task(registry, config)
    return registry


def _define_suite_tasks(registry: TaskRegistry, config: RunnerConfig) -> None:
    flags = config.flags

    @registry.task("lint", description="Run the linter")
    def lint(context: ExecutionContext) -> None:
        context.sh(context.config.lint.command)

    @registry.task(SPEC, description="Run specs")
    def spec(context: ExecutionContext) -> None:
        settings = context.config.test
        context.sh(_with_options(settings.command, settings.options))

    @registry.task(SPEC.child("clean"), description="Remove the scratch directory")
    def clean(context: ExecutionContext) -> None:
        scratch = context.config.scratch_path
        if context.shell.dry_run:
            context.record(f"would remove {scratch}")
            return
        shutil.rmtree(scratch, ignore_errors=True)
        context.record(f"removed {scratch}")

    @registry.task(SPEC.child("set_realworld"))
    def set_realworld(context: ExecutionContext) -> None:
        context.environment[flags.realworld] = "1"

    @registry.task(SPEC.child("set_sudo"))
    def set_sudo(context: ExecutionContext) -> None:
        context.environment[flags.sudo] = "1"

    @registry.task(SPEC.child("set_prerecorded"))
    def set_prerecorded(context: ExecutionContext) -> None:
        context.environment[flags.prerecorded] = "1"

    @registry.task(SPEC.child("realworld", "set_record"), prerequisites=[SPEC.child("set_realworld")])
    def set_record(context: ExecutionContext) -> None:
        context.environment[flags.record] = "1"

    @registry.task(SPEC.child("clean_sudo"))
    def clean_sudo(context: ExecutionContext) -> None:
        context.printer.info("Cleaning up sudo test files...")
        sudo_home = context.config.resolve(context.config.ci.sudo_home)
        context.system([*context.config.ci.sudo_command, "rm", "-rf", str(sudo_home)])

    registry.register(
        SPEC.child("realworld"),
        [SPEC.child("set_realworld"), SPEC],
        description="Run the real-world spec suite (requires internet)",
    )
    registry.register(
        SPEC.child("realworld", "record"),
        [SPEC.child("realworld", "set_record"), SPEC.child("realworld")],
        description="Re-record the fixtures used by the real-world specs",
    )
    registry.register(
        SPEC.child("realworld", "prerecorded"),
        [SPEC.child("set_prerecorded"), SPEC.child("realworld")],
        description="Run the real-world specs against recorded fixtures",
    )
    registry.register(
        SPEC.child("sudo"),
        [SPEC.child("set_sudo"), SPEC, SPEC.child("clean_sudo")],
        description="Run the spec suite with the sudo tests",
    )


def _define_dependency_tasks(registry: TaskRegistry, config: RunnerConfig) -> None:
    @registry.task(SPEC.child("deps"), description="Ensure spec dependencies are installed")
    def deps(context: ExecutionContext) -> None:
        settings = context.config.dependencies
        for name, requirement in sorted(settings.packages.items()):
            if settings.check_command is not None:
                check = _format(settings.check_command, name=name, requirement=requirement)
                if context.system(check):
                    context.record(f"{name} already installed")
                    continue
            context.sh(_format(settings.install_command, name=name, requirement=requirement))
            context.record(f"installed {name}{requirement}")

    @registry.task(SPEC.child("travis", "deps"), description="Prepare a CI machine for the spec suites")
    def ci_deps(context: ExecutionContext) -> None:
        for step in context.config.ci.provision:
            if step.required:
                context.sh(step.command)
            elif not context.system(step.command):
                context.record(f"ignored failure: {step.command}")
        context.invoke(SPEC.child("deps"))


def _define_matrix_tasks(registry: TaskRegistry, config: RunnerConfig) -> None:
    matrix = SPEC.child(config.matrix.namespace)
    aggregate = matrix.child("all")
    registry.register(aggregate, description=f"Run specs against every {config.matrix.namespace} version")

    def run_matrix_suite(context: ExecutionContext) -> None:
        settings = context.config.test
        context.sh(_with_options(settings.command, settings.matrix_options))

    for version in config.matrix.versions:
        task = matrix.child(version)
        clone = matrix.child(f"clone_{version}")

        def checkout(context: ExecutionContext, ref: str = version) -> None:
            prepare_checkout(context, ref)

        registry.register(clone, action=checkout)
        registry.register(
            task,
            [clone],
            run_matrix_suite,
            description=f"Run specs with {config.matrix.namespace} {version}",
        )
        registry.register(task.child("sudo"), [SPEC.child("set_sudo"), task, SPEC.child("clean_sudo")])
        registry.register(task.child("realworld"), [SPEC.child("set_realworld"), task])
        registry.register(aggregate, [task])

    @registry.task(matrix.child("setup_co"))
    def setup_co(context: ExecutionContext) -> None:
        variable = context.config.checkout.override_variable
        location = context.environment.get(variable)
        if not location:
            raise TaskExecutionError(f"Set {variable} to the path of a {context.config.matrix.namespace} checkout")
        directory = context.config.resolve(location)
        context.printer.info(f"Running specs against {context.config.matrix.namespace} in {directory}")
        record_checkout(context, directory, ref=location, revision="")

    registry.register(
        matrix.child("co"),
        [matrix.child("setup_co")],
        run_matrix_suite,
        description=f"Run specs under a {config.matrix.namespace} checkout (set {config.checkout.override_variable}=path)",
    )
    registry.register(aggregate, [matrix.child("co")])


def _define_ci_task(registry: TaskRegistry, config: RunnerConfig) -> None:
    matrix = SPEC.child(config.matrix.namespace)

    @registry.task(
        SPEC.child("travis"),
        description=f"Run the CI suites against a {config.matrix.namespace} version (set {config.ci.version_variable})",
    )
    def ci(context: ExecutionContext) -> None:
        settings = context.config
        version = context.environment.get(settings.ci.version_variable)
        if not version:
            raise TaskExecutionError(f"{settings.ci.version_variable} must name the version to test on CI")

        if tuple(sys.version_info[:3]) >= settings.lint.min_python:
            context.printer.header("Running linter")
            context.invoke("lint")

        task = matrix.child(version)
        if task not in context.runner.registry:
            raise TaskExecutionError(f"No spec tasks are defined for {settings.matrix.namespace} {version}")
        report = CIReport(version=version)

        context.printer.header(f"Running specs against {settings.matrix.namespace} {version}")
        report.add("specs", context.guard(lambda: context.invoke(task)))
        context.reenable(task)

        context.printer.header(f"Running sudo specs against {settings.matrix.namespace} {version}")
        command = [*settings.ci.sudo_command, sys.executable, "-m", "specrunner"]
        if settings.source is not None:
            command += ["-f", str(settings.source)]
        report.add("sudo", context.system([*command, str(task.child("sudo"))]))
        user = context.environment.get("USER") or getpass.getuser()
        context.system([*settings.ci.sudo_command, "chown", "-R", user, str(settings.scratch_path)])
        context.reenable(task)

        context.printer.header(f"Running real world specs against {settings.matrix.namespace} {version}")
        report.add("realworld", context.guard(lambda: context.invoke(task.child("realworld"))))

        for phase in report.phases:
            context.printer.status(phase.name, phase.passed)
        context.reports.append(report)

        if not report.passed:
            raise TaskExecutionError("Spec run failed, please review the log for more information")


__all__ = ["SPEC", "define_tasks"]
