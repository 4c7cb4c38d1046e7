"""Custom exceptions for specrunner."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the task configuration file is invalid."""


class RegistryError(RuntimeError):
    """Raised when the task registry encounters an invalid operation."""


class UnknownTaskError(RegistryError):
    """Raised when a task name is not registered."""


class CircularDependencyError(RegistryError):
    """Raised when a task transitively depends on itself."""


class TaskExecutionError(RuntimeError):
    """Raised when a task action or one of its subprocesses fails."""


class CheckoutError(TaskExecutionError):
    """Raised when the external repository checkout cannot be prepared."""
