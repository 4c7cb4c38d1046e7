"""Explicit environment passed between task actions."""

from __future__ import annotations

import os
from typing import Dict, Iterable, Iterator, Mapping, MutableMapping, Optional


class Environment(MutableMapping[str, str]):
    """String flags shared by the tasks of one run.

    The runner owns a single instance and hands it to every action through the
    execution context. Subprocesses receive it as their complete environment;
    ``os.environ`` itself is never modified.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = {}
        for key, value in (values or {}).items():
            self[key] = value
        self._initial = dict(self._values)

    @classmethod
    def from_process(cls, overrides: Iterable[str] = ()) -> "Environment":
        """Snapshot ``os.environ`` and apply ``NAME=VALUE`` overrides."""

        values = dict(os.environ)
        for item in overrides:
            key, value = parse_assignment(item)
            values[key] = value
        return cls(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not key:
            raise TypeError("Environment keys must be non-empty strings")
        self._values[key] = str(value)

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Environment({len(self._values)} entries)"

    def initial(self, key: str) -> Optional[str]:
        """Return the value ``key`` had when the environment was created."""

        return self._initial.get(key)

    def prepend_path(self, key: str, entry: str) -> str:
        """Set ``key`` to ``entry`` followed by its initial value.

        Repeated calls replace the previous entry instead of stacking up.
        """

        current = self.initial(key) or ""
        value = entry if not current else f"{entry}{os.pathsep}{current}"
        self._values[key] = value
        return value

    def as_process_env(self) -> Dict[str, str]:
        return dict(self._values)


def is_assignment(value: str) -> bool:
    name, sep, _ = value.partition("=")
    return bool(sep) and bool(name) and name.replace("_", "").isalnum()


def parse_assignment(value: str) -> tuple[str, str]:
    if not is_assignment(value):
        raise ValueError(f"Expected NAME=VALUE, got '{value}'")
    name, _, content = value.partition("=")
    return name, content


__all__ = ["Environment", "is_assignment", "parse_assignment"]
