"""Clone and update the external repository used by the matrix specs."""

from __future__ import annotations

import pathlib

from ..errors import CheckoutError
from ..execution.context import ExecutionContext
from ..logging import get_logger

REVISION_VARIABLE = "CHECKOUT_REVISION"
REF_VARIABLE = "CHECKOUT_REF"

log = get_logger("specrunner.checkout")


def _is_within(path: pathlib.Path, root: pathlib.Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def prepare_checkout(context: ExecutionContext, ref: str) -> str:
    """Make the checkout directory point at ``ref`` and return the commit hash.

    A missing directory is cloned (at ``ref`` when it is not the default
    branch) without a follow-up checkout. An existing clone under the working
    directory is refreshed and switched to ``ref``. A clone elsewhere is
    treated as externally managed and may only be used for the default branch.
    """

    settings = context.config.checkout
    directory = context.config.resolve(settings.directory)
    default = ref == settings.default_branch
    revision = ""

    if not directory.is_dir():
        command = ["git", "clone"]
        if not default:
            command += ["--branch", ref]
        command += [settings.repository, str(directory)]
        if not context.system(command):
            raise CheckoutError(f"Unable to clone {settings.repository} into {directory}")
        revision = context.capture(["git", "rev-parse", "HEAD"], cwd=directory)
    elif _is_within(directory, pathlib.Path.cwd().resolve()):
        context.system(["git", "remote", "update"], cwd=directory)
        target = f"origin/{ref}" if default else ref
        if not context.system(["git", "checkout", target], cwd=directory):
            raise CheckoutError(f"Unknown ref '{ref}' in {settings.repository}")
        revision = context.capture(["git", "rev-parse", "HEAD"], cwd=directory)
    elif not default:
        raise CheckoutError(
            f"Checkout at {directory} is outside the working directory; it must be on {settings.default_branch}"
        )

    context.printer.info(f"Checked out {context.config.matrix.namespace} '{ref}' at {revision or 'unknown'}")
    record_checkout(context, directory / settings.library_dir, ref=ref, revision=revision)
    return revision


def record_checkout(context: ExecutionContext, library: pathlib.Path, *, ref: str, revision: str) -> None:
    settings = context.config.checkout
    environment = context.environment
    environment[REF_VARIABLE] = ref
    environment[REVISION_VARIABLE] = revision
    value = environment.prepend_path(settings.path_variable, str(library))
    log.info("%s=%s", settings.path_variable, value)
    context.record(f"{settings.path_variable}={value}")


__all__ = ["REF_VARIABLE", "REVISION_VARIABLE", "prepare_checkout", "record_checkout"]
