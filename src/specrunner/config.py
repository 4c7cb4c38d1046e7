"""Configuration utilities for specrunner."""

from __future__ import annotations

import dataclasses
import pathlib
from typing import Iterable, List, Mapping, Optional, Tuple, Union

import yaml

from .errors import ConfigurationError

Command = Union[str, List[str]]

DEFAULT_CONFIG_FILE = "specrunner.yaml"

RESERVED_MATRIX_NAMES = frozenset({"all", "co", "setup_co"})


@dataclasses.dataclass(slots=True)
class SuiteSettings:
    """How the test runner is invoked."""

    command: Command = dataclasses.field(default_factory=lambda: ["python", "-m", "pytest"])
    options: List[str] = dataclasses.field(default_factory=list)
    matrix_options: List[str] = dataclasses.field(default_factory=lambda: ["-v", "--color=yes"])

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "SuiteSettings":
        defaults = cls()
        return cls(
            command=_ensure_command(data.get("command", defaults.command), field="test.command"),
            options=_ensure_str_list(data.get("options", defaults.options), field="test.options"),
            matrix_options=_ensure_str_list(
                data.get("matrix_options", defaults.matrix_options), field="test.matrix_options"
            ),
        )


@dataclasses.dataclass(slots=True)
class LintSettings:
    command: Command = dataclasses.field(default_factory=lambda: ["ruff", "check", "."])
    min_python: Tuple[int, ...] = (3, 9)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "LintSettings":
        defaults = cls()
        return cls(
            command=_ensure_command(data.get("command", defaults.command), field="lint.command"),
            min_python=_parse_version(data.get("min_python", defaults.min_python), field="lint.min_python"),
        )


@dataclasses.dataclass(slots=True)
class FlagNames:
    """Environment variables toggling the test modes."""

    realworld: str = "SPEC_REALWORLD_TESTS"
    sudo: str = "SPEC_SUDO_TESTS"
    record: str = "SPEC_FORCE_RECORD"
    prerecorded: str = "SPEC_PRE_RECORDED"

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "FlagNames":
        defaults = cls()
        values = {}
        for field in dataclasses.fields(cls):
            raw = data.get(field.name, getattr(defaults, field.name))
            if not isinstance(raw, str) or not raw:
                raise ConfigurationError(f"Flag '{field.name}' must be a non-empty variable name")
            values[field.name] = raw
        return cls(**values)


@dataclasses.dataclass(slots=True)
class CheckoutSettings:
    """Where the external repository comes from and how it is exposed."""

    repository: str = "https://github.com/rubygems/rubygems.git"
    directory: str = "tmp/rubygems"
    default_branch: str = "master"
    library_dir: str = "lib"
    path_variable: str = "PYTHONPATH"
    override_variable: str = "RG"

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "CheckoutSettings":
        defaults = cls()
        values = {}
        for field in dataclasses.fields(cls):
            raw = data.get(field.name, getattr(defaults, field.name))
            if not isinstance(raw, str) or not raw:
                raise ConfigurationError(f"Checkout setting '{field.name}' must be a non-empty string")
            values[field.name] = raw
        return cls(**values)


@dataclasses.dataclass(slots=True)
class MatrixSettings:
    """Version identifiers that expand into per-version tasks."""

    namespace: str = "rubygems"
    branches: List[str] = dataclasses.field(default_factory=lambda: ["master"])
    releases: List[str] = dataclasses.field(
        default_factory=lambda: [
            "v1.3.6",
            "v1.3.7",
            "v1.4.2",
            "v1.5.3",
            "v1.6.2",
            "v1.7.2",
            "v1.8.29",
            "v2.0.14",
            "v2.1.11",
            "v2.2.2",
        ]
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "MatrixSettings":
        defaults = cls()
        namespace = data.get("namespace", defaults.namespace)
        if not isinstance(namespace, str) or not namespace or ":" in namespace:
            raise ConfigurationError("Matrix namespace must be a single task name segment")
        settings = cls(
            namespace=namespace,
            branches=_ensure_str_list(data.get("branches", defaults.branches), field="matrix.branches"),
            releases=_ensure_str_list(data.get("releases", defaults.releases), field="matrix.releases"),
        )
        for version in settings.versions:
            if not version or ":" in version:
                raise ConfigurationError(f"Invalid matrix version identifier '{version}'")
            if version in RESERVED_MATRIX_NAMES or version.startswith("clone_"):
                raise ConfigurationError(f"Matrix version identifier '{version}' clashes with a built-in task")
        if len(set(settings.versions)) != len(settings.versions):
            raise ConfigurationError("Matrix version identifiers must be unique")
        return settings

    @property
    def versions(self) -> List[str]:
        return [*self.branches, *self.releases]


@dataclasses.dataclass(slots=True)
class DependencySettings:
    """Development dependencies installed by ``spec:deps``.

    ``{name}`` and ``{requirement}`` are substituted into each argument of the
    check and install commands.
    """

    packages: Mapping[str, str] = dataclasses.field(default_factory=dict)
    check_command: Optional[List[str]] = dataclasses.field(
        default_factory=lambda: ["python", "-m", "pip", "show", "--quiet", "{name}"]
    )
    install_command: List[str] = dataclasses.field(
        default_factory=lambda: ["python", "-m", "pip", "install", "{name}{requirement}"]
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "DependencySettings":
        defaults = cls()
        packages_raw = data.get("packages", {}) or {}
        if not isinstance(packages_raw, Mapping):
            raise ConfigurationError("dependencies.packages must map package names to requirements")
        packages = {str(name): "" if req is None else str(req) for name, req in packages_raw.items()}

        check_raw = data.get("check_command", defaults.check_command)
        check_command = (
            None if check_raw is None else _ensure_str_list(check_raw, field="dependencies.check_command")
        )
        install_command = _ensure_str_list(
            data.get("install_command", defaults.install_command), field="dependencies.install_command"
        )
        if not install_command:
            raise ConfigurationError("dependencies.install_command must not be empty")
        return cls(packages=packages, check_command=check_command, install_command=install_command)


@dataclasses.dataclass(slots=True)
class ProvisionStep:
    """A command run while preparing a CI machine."""

    command: Command
    required: bool = True

    @classmethod
    def from_obj(cls, obj: object, *, index: int) -> "ProvisionStep":
        if isinstance(obj, (str, list)):
            return cls(command=_ensure_command(obj, field=f"ci.provision[{index}]"))
        if not isinstance(obj, Mapping):
            raise ConfigurationError(f"ci.provision[{index}] must be a command or a mapping")
        if "command" not in obj:
            raise ConfigurationError(f"ci.provision[{index}] is missing 'command'")
        required = obj.get("required", True)
        if not isinstance(required, bool):
            raise ConfigurationError(f"ci.provision[{index}].required must be true or false")
        return cls(
            command=_ensure_command(obj["command"], field=f"ci.provision[{index}].command"),
            required=required,
        )


@dataclasses.dataclass(slots=True)
class CISettings:
    version_variable: str = "RGV"
    prefix: str = "CI"
    sudo_command: List[str] = dataclasses.field(default_factory=lambda: ["sudo", "-E"])
    sudo_home: str = "tmp/sudo_home"
    provision: List[ProvisionStep] = dataclasses.field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "CISettings":
        defaults = cls()
        provision_raw = data.get("provision", []) or []
        if not isinstance(provision_raw, list):
            raise ConfigurationError("ci.provision must be a list")
        return cls(
            version_variable=str(data.get("version_variable", defaults.version_variable)),
            prefix=str(data.get("prefix", defaults.prefix)),
            sudo_command=_ensure_str_list(data.get("sudo_command", defaults.sudo_command), field="ci.sudo_command"),
            sudo_home=str(data.get("sudo_home", defaults.sudo_home)),
            provision=[ProvisionStep.from_obj(item, index=index) for index, item in enumerate(provision_raw)],
        )


@dataclasses.dataclass(slots=True)
class RunnerConfig:
    """Everything the built-in task catalog needs to know about the project."""

    root: pathlib.Path = dataclasses.field(default_factory=pathlib.Path.cwd)
    scratch_dir: str = "tmp"
    test: SuiteSettings = dataclasses.field(default_factory=SuiteSettings)
    lint: LintSettings = dataclasses.field(default_factory=LintSettings)
    flags: FlagNames = dataclasses.field(default_factory=FlagNames)
    checkout: CheckoutSettings = dataclasses.field(default_factory=CheckoutSettings)
    matrix: MatrixSettings = dataclasses.field(default_factory=MatrixSettings)
    dependencies: DependencySettings = dataclasses.field(default_factory=DependencySettings)
    ci: CISettings = dataclasses.field(default_factory=CISettings)
    source: Optional[pathlib.Path] = None

    @classmethod
    def load(cls, path: pathlib.Path) -> "RunnerConfig":
        if not path.exists():
            raise ConfigurationError(f"Configuration file does not exist: {path}")

        with path.open("r", encoding="utf-8") as handle:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")
        config = cls.from_mapping(payload, root=path.resolve().parent)
        config.source = path.resolve()
        return config

    @classmethod
    def from_mapping(cls, data: Mapping[str, object], *, root: Optional[pathlib.Path] = None) -> "RunnerConfig":
        return cls(
            root=root or pathlib.Path.cwd(),
            scratch_dir=str(data.get("scratch_dir", "tmp")),
            test=SuiteSettings.from_mapping(_section(data, "test")),
            lint=LintSettings.from_mapping(_section(data, "lint")),
            flags=FlagNames.from_mapping(_section(data, "flags")),
            checkout=CheckoutSettings.from_mapping(_section(data, "checkout")),
            matrix=MatrixSettings.from_mapping(_section(data, "matrix")),
            dependencies=DependencySettings.from_mapping(_section(data, "dependencies")),
            ci=CISettings.from_mapping(_section(data, "ci")),
        )

    def resolve(self, relative: str) -> pathlib.Path:
        path = pathlib.Path(relative).expanduser()
        if path.is_absolute():
            return path
        return (self.root / path).resolve()

    @property
    def scratch_path(self) -> pathlib.Path:
        return self.resolve(self.scratch_dir)


def load_config(path: Optional[pathlib.Path], *, root: Optional[pathlib.Path] = None) -> RunnerConfig:
    """Load ``path`` or fall back to ``specrunner.yaml`` and then to defaults."""

    if path is not None:
        return RunnerConfig.load(path)
    base = root or pathlib.Path.cwd()
    candidate = base / DEFAULT_CONFIG_FILE
    if candidate.exists():
        return RunnerConfig.load(candidate)
    return RunnerConfig(root=base)


def _section(data: Mapping[str, object], name: str) -> Mapping[str, object]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return value


def _ensure_str_list(value: object, *, field: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray, Mapping)):
        result: List[str] = []
        for item in value:
            if not isinstance(item, (str, int, float)):
                raise ConfigurationError(f"Field '{field}' must contain only strings")
            result.append(str(item))
        return result
    raise ConfigurationError(f"Field '{field}' must be a list of strings")


def _ensure_command(value: object, *, field: str) -> Command:
    if isinstance(value, str):
        if not value.strip():
            raise ConfigurationError(f"Field '{field}' must not be empty")
        return value
    command = _ensure_str_list(value, field=field)
    if not command:
        raise ConfigurationError(f"Field '{field}' must not be empty")
    return command


def _parse_version(value: object, *, field: str) -> Tuple[int, ...]:
    if isinstance(value, tuple) and all(isinstance(part, int) for part in value):
        return value
    text = str(value).strip()
    try:
        return tuple(int(part) for part in text.split("."))
    except ValueError as exc:
        raise ConfigurationError(f"Field '{field}' must be a dotted version, got '{value}'") from exc


__all__ = [
    "CISettings",
    "CheckoutSettings",
    "DEFAULT_CONFIG_FILE",
    "DependencySettings",
    "FlagNames",
    "LintSettings",
    "MatrixSettings",
    "ProvisionStep",
    "RunnerConfig",
    "SuiteSettings",
    "load_config",
]
