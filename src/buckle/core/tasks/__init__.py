"""Task Catalog: scripts de setup de um pacote."""

from .catalog import TaskEntry, enumerate_tasks, run_task, task_environment

__all__ = ["TaskEntry", "enumerate_tasks", "run_task", "task_environment"]
