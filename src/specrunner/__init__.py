"""Build-task runner for the project's spec suites."""

from importlib import metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return metadata.version("specrunner")
    raise AttributeError(name)
