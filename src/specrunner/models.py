"""Value types shared by the registry and the runner."""

from __future__ import annotations

import dataclasses
from typing import Tuple, Union

SEPARATOR = ":"


@dataclasses.dataclass(frozen=True, slots=True)
class TaskName:
    """Namespaced task identifier such as ``spec:rubygems:master:sudo``."""

    parts: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.parts or any(not part or SEPARATOR in part for part in self.parts):
            raise ValueError(f"Invalid task name parts: {self.parts!r}")

    @classmethod
    def parse(cls, value: "TaskNameLike") -> "TaskName":
        if isinstance(value, TaskName):
            return value
        text = str(value).strip()
        return cls(tuple(text.split(SEPARATOR)))

    @property
    def leaf(self) -> str:
        return self.parts[-1]

    def child(self, *names: str) -> "TaskName":
        return TaskName(self.parts + tuple(names))

    def startswith(self, prefix: "TaskNameLike") -> bool:
        other = TaskName.parse(prefix)
        return self.parts[: len(other.parts)] == other.parts

    def __str__(self) -> str:
        return SEPARATOR.join(self.parts)


TaskNameLike = Union[TaskName, str]


__all__ = ["TaskName", "TaskNameLike", "SEPARATOR"]
