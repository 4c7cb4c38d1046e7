"""Task definitions and the registry that holds them."""

from ..config import RunnerConfig
from .catalog import SPEC, define_tasks
from .registry import TaskAction, TaskDefinition, TaskRegistry

__all__ = ["SPEC", "TaskAction", "TaskDefinition", "TaskRegistry", "define_tasks", "build_registry"]


def build_registry(config: RunnerConfig) -> TaskRegistry:
    """Return a registry populated with the built-in tasks for ``config``."""

    return define_tasks(TaskRegistry(), config)
