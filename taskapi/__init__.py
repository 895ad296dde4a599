"""Task manager backend: users own tasks, tasks own subtasks."""

__version__ = "0.1.0"
