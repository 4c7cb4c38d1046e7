"""Task registry used by the runner."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Iterator, List, Optional

from ..errors import TaskExecutionError, UnknownTaskError
from ..models import TaskName, TaskNameLike

if TYPE_CHECKING:  # pragma: no cover
    from ..execution.context import ExecutionContext

TaskAction = Callable[["ExecutionContext"], None]


@dataclasses.dataclass(slots=True)
class TaskDefinition:
    name: TaskName
    description: Optional[str] = None
    prerequisites: List[TaskName] = dataclasses.field(default_factory=list)
    actions: List[TaskAction] = dataclasses.field(default_factory=list)

    def merge(
        self,
        prerequisites: Iterable[TaskNameLike],
        action: Optional[TaskAction],
        description: Optional[str],
    ) -> None:
        for prerequisite in prerequisites:
            parsed = TaskName.parse(prerequisite)
            if parsed not in self.prerequisites:
                self.prerequisites.append(parsed)
        if action is not None:
            self.actions.append(action)
        if description:
            self.description = description

    def run(self, context: "ExecutionContext") -> None:
        for action in self.actions:
            try:
                action(context)
            except TaskExecutionError:
                raise
            except Exception as exc:
                raise TaskExecutionError(f"Task '{self.name}' failed: {exc}") from exc


class TaskRegistry:
    """Book-keeping for task definitions keyed by :class:`TaskName`."""

    def __init__(self) -> None:
        self._tasks: Dict[TaskName, TaskDefinition] = {}

    def register(
        self,
        name: TaskNameLike,
        prerequisites: Iterable[TaskNameLike] = (),
        action: Optional[TaskAction] = None,
        description: Optional[str] = None,
    ) -> TaskDefinition:
        """Add a task or augment an existing one.

        Registering the same name again never replaces what is already there:
        prerequisites and actions accumulate in registration order.
        """

        parsed = TaskName.parse(name)
        definition = self._tasks.get(parsed)
        if definition is None:
            definition = TaskDefinition(name=parsed)
            self._tasks[parsed] = definition
        definition.merge(prerequisites, action, description)
        return definition

    def task(
        self,
        name: TaskNameLike,
        *,
        prerequisites: Iterable[TaskNameLike] = (),
        description: Optional[str] = None,
    ) -> Callable[[TaskAction], TaskAction]:
        prerequisites = tuple(prerequisites)

        def decorator(func: TaskAction) -> TaskAction:
            self.register(name, prerequisites, func, description)
            return func

        return decorator

    def get(self, name: TaskNameLike) -> TaskDefinition:
        try:
            parsed = TaskName.parse(name)
        except ValueError as exc:
            raise UnknownTaskError(f"Don't know how to build task '{name}'") from exc
        try:
            return self._tasks[parsed]
        except KeyError as exc:
            raise UnknownTaskError(f"Don't know how to build task '{name}'") from exc

    def names(self, prefix: Optional[TaskNameLike] = None) -> List[TaskName]:
        names = sorted(self._tasks, key=str)
        if prefix is None:
            return names
        return [name for name in names if name.startswith(prefix)]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, (str, TaskName)):
            return False
        try:
            return TaskName.parse(name) in self._tasks
        except ValueError:
            return False

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)


__all__ = ["TaskAction", "TaskDefinition", "TaskRegistry"]
