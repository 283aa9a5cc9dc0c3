"""
Catálogo de tasks de um pacote.

Tasks são os scripts diretamente dentro de `<pacote>/scripts/`, executados
em ordem lexicográfica de nome. Cada task roda com o interpretador da
tabela de extensões, recebendo o próprio arquivo como único argumento e
a config mesclada (e os secrets) como variáveis de ambiente, nunca como
argumentos de linha de comando.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping

from buckle.core.exceptions import SourceReadError
from buckle.core.interpreters import CmdResult, interpreter_for, run_script

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskEntry:
    name: str
    path: Path


def enumerate_tasks(scripts_dir: Path) -> List[TaskEntry]:
    if not scripts_dir.exists():
        return []

    try:
        entries = list(scripts_dir.iterdir())
    except OSError as e:
        raise SourceReadError(
            f"Failed to read the list of tasks in '{scripts_dir}'.",
            details={"directory": str(scripts_dir), "os_error": str(e)},
            hint="Read the internal error message and take the appropriate steps to resolve the issue.",
        ) from e

    tasks = [TaskEntry(name=entry.name, path=entry) for entry in entries if entry.is_file()]
    return sorted(tasks, key=lambda t: t.name)


def task_environment(config: Mapping[str, str], secrets: Mapping[str, str]) -> dict:
    env = dict(config)
    env.update(secrets)
    return env


def run_task(
    task: TaskEntry,
    config: Mapping[str, str],
    secrets: Mapping[str, str],
    interpreters: Mapping[str, str],
) -> CmdResult:
    """
    Executa uma task com config e secrets exportados como ambiente.

    Raises:
        UnsupportedExtensionError: extensão da task fora da tabela.
        InterpreterSpawnError: interpretador ausente ou sem permissão.
        ScriptExecutionError: status de saída diferente de zero.
    """
    interpreter = interpreter_for(task.path, interpreters, purpose="task")
    logger.info("Running task %s with %s", task.name, interpreter)
    return run_script(
        interpreter,
        task.path,
        env=task_environment(config, secrets),
        failure_message=f"Failed to run task '{task.name}'.",
    )
