import os

import pytest

from specrunner.errors import CheckoutError, TaskExecutionError
from specrunner.tasks.checkout import REF_VARIABLE, REVISION_VARIABLE


@pytest.fixture(autouse=True)
def _inside_project(config, monkeypatch):
    monkeypatch.chdir(config.root)


def _git(shell):
    return [command for command in shell.commands if command.startswith("git ")]


def test_missing_directory_is_cloned_without_ref_checkout(runner, shell, config):
    runner.invoke("spec:rubygems:clone_master")

    target = config.root / "tmp" / "rubygems"
    assert _git(shell) == [
        f"git clone https://github.com/rubygems/rubygems.git {target}",
        "git rev-parse HEAD",
    ]
    assert not any(command.startswith("git checkout") for command in shell.commands)
    assert runner.environment[REVISION_VARIABLE] == "abc123"
    assert runner.environment[REF_VARIABLE] == "master"
    assert runner.environment["PYTHONPATH"] == str(target / "lib")


def test_missing_directory_is_cloned_at_release_branch(runner, shell, config):
    runner.invoke("spec:rubygems:clone_v2.1.11")

    target = config.root / "tmp" / "rubygems"
    assert shell.commands[0] == f"git clone --branch v2.1.11 https://github.com/rubygems/rubygems.git {target}"
    assert not any(command.startswith("git checkout") for command in shell.commands)


def test_failed_clone_is_fatal(runner, shell):
    shell.fail_when = lambda command, env: command.startswith("git clone")

    with pytest.raises(CheckoutError):
        runner.invoke("spec:rubygems:clone_master")


def test_existing_checkout_is_updated_and_switched(runner, shell, config):
    target = config.root / "tmp" / "rubygems"
    target.mkdir(parents=True)

    runner.invoke("spec:rubygems:clone_v2.1.11")

    assert _git(shell) == ["git remote update", "git checkout v2.1.11", "git rev-parse HEAD"]
    assert all(call.cwd == target for call in shell.calls)
    assert runner.environment[REF_VARIABLE] == "v2.1.11"


def test_existing_checkout_uses_remote_default_branch(runner, shell, config):
    (config.root / "tmp" / "rubygems").mkdir(parents=True)

    runner.invoke("spec:rubygems:clone_master")

    assert "git checkout origin/master" in shell.commands
    assert not any(command.startswith("git clone") for command in shell.commands)


def test_unknown_ref_is_fatal(runner, shell, config):
    (config.root / "tmp" / "rubygems").mkdir(parents=True)
    shell.fail_when = lambda command, env: command == "git checkout v2.1.11"

    with pytest.raises(CheckoutError) as excinfo:
        runner.invoke("spec:rubygems:clone_v2.1.11")

    assert isinstance(excinfo.value, TaskExecutionError)
    assert "Unknown ref 'v2.1.11'" in str(excinfo.value)


def test_external_checkout_must_be_on_default_branch(runner, shell, config, tmp_path_factory):
    external = tmp_path_factory.mktemp("external")
    config.checkout.directory = str(external)

    runner.invoke("spec:rubygems:clone_master")
    assert shell.commands == []
    assert runner.environment["PYTHONPATH"] == str(external / "lib")

    with pytest.raises(CheckoutError):
        runner.invoke("spec:rubygems:clone_v2.1.11")


def test_library_path_is_prepended_once(runner, shell, config):
    runner.environment = type(runner.environment)({"PYTHONPATH": "/site"})
    (config.root / "tmp" / "rubygems").mkdir(parents=True)

    runner.invoke("spec:rubygems:clone_master")
    runner.invoke("spec:rubygems:clone_v2.1.11")

    expected = os.pathsep.join([str(config.root / "tmp" / "rubygems" / "lib"), "/site"])
    assert runner.environment["PYTHONPATH"] == expected


def test_checkout_outside_working_directory_is_external(runner, shell, config, tmp_path_factory, monkeypatch):
    (config.root / "tmp" / "rubygems").mkdir(parents=True)
    monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))

    runner.invoke("spec:rubygems:clone_master")
    assert shell.commands == []

    with pytest.raises(CheckoutError) as excinfo:
        runner.invoke("spec:rubygems:clone_v2.1.11")

    assert "outside the working directory" in str(excinfo.value)
    assert shell.commands == []
