import pathlib

import pytest

from specrunner.config import RunnerConfig, load_config
from specrunner.errors import ConfigurationError


def _write(path: pathlib.Path, text: str) -> pathlib.Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_applies_overrides_and_keeps_defaults(tmp_path):
    path = _write(
        tmp_path / "specrunner.yaml",
        """
scratch_dir: build/tmp
test:
  command: [python, -m, pytest, tests]
lint:
  min_python: "3.10"
flags:
  sudo: MY_SUDO
checkout:
  repository: https://example.invalid/lib.git
matrix:
  namespace: lib
  branches: [main]
  releases: [v1.0]
dependencies:
  packages:
    pytest: ">=7"
    rich:
ci:
  provision:
    - apt-get install groff -y
    - command: [sudo, sed, -i, /secure_path/d, /etc/sudoers]
      required: false
""",
    )

    config = RunnerConfig.load(path)

    assert config.root == tmp_path.resolve()
    assert config.source == path.resolve()
    assert config.scratch_path == (tmp_path / "build" / "tmp").resolve()
    assert config.test.command == ["python", "-m", "pytest", "tests"]
    assert config.test.matrix_options == ["-v", "--color=yes"]
    assert config.lint.min_python == (3, 10)
    assert config.flags.sudo == "MY_SUDO"
    assert config.flags.realworld == "SPEC_REALWORLD_TESTS"
    assert config.checkout.repository == "https://example.invalid/lib.git"
    assert config.checkout.default_branch == "master"
    assert config.matrix.versions == ["main", "v1.0"]
    assert config.dependencies.packages == {"pytest": ">=7", "rich": ""}
    assert [step.required for step in config.ci.provision] == [True, False]
    assert config.ci.provision[0].command == "apt-get install groff -y"


def test_empty_file_means_defaults(tmp_path):
    config = RunnerConfig.load(_write(tmp_path / "specrunner.yaml", ""))

    assert config.matrix.versions[0] == "master"
    assert config.ci.version_variable == "RGV"


def test_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError):
        RunnerConfig.load(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    "text",
    [
        "- a\n- b\n",
        "test: [python]\n",
        "matrix:\n  branches: [master, master]\n",
        "matrix:\n  releases: [all]\n",
        "matrix:\n  namespace: a:b\n",
        "lint:\n  min_python: three\n",
        "ci:\n  provision:\n    - required: false\n",
        "ci:\n  provision:\n    - command: ls\n      required: 'false'\n",
        "test:\n  command: [python\n",
    ],
)
def test_invalid_payloads_are_rejected(tmp_path, text):
    with pytest.raises(ConfigurationError):
        RunnerConfig.load(_write(tmp_path / "specrunner.yaml", text))


def test_load_config_falls_back_to_defaults(tmp_path):
    config = load_config(None, root=tmp_path)

    assert config.root == tmp_path
    assert config.source is None


def test_load_config_prefers_project_file(tmp_path):
    _write(tmp_path / "specrunner.yaml", "scratch_dir: scratch\n")

    config = load_config(None, root=tmp_path)

    assert config.scratch_dir == "scratch"
