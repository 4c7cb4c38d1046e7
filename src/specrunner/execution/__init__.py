"""Runtime support for task execution."""
