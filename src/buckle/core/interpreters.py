"""
Tabela de interpretadores e execução de scripts.

A mesma tabela estática (extensão → executável) é usada para carregar
config/secrets a partir de scripts e para executar tasks. A escolha do
interpretador é uma consulta simples, feita uma única vez no ponto de uso;
extensões desconhecidas são erro declarado, nunca um fallback.

A execução é síncrona: o processo filho é aguardado e stdout/stderr são
drenados por completo antes do retorno.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from .exceptions import InterpreterSpawnError, ScriptExecutionError, UnsupportedExtensionError

logger = logging.getLogger(__name__)

REDACTED = "<redacted>"


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def unsupported_extension(path: Path, *, purpose: str, supported: Iterable[str]) -> UnsupportedExtensionError:
    supported_list = sorted(set(supported))
    if not path.suffix:
        return UnsupportedExtensionError(
            f"Could not determine how to handle the {purpose} file '{path}' because it did not have a file extension.",
            details={"path": str(path), "supported": supported_list},
            hint=f"Use one of the supported file extensions ({', '.join(supported_list)}) to tell buckle how to handle this {purpose} file.",
        )
    return UnsupportedExtensionError(
        f"The '{path.suffix}' extension is not supported for {purpose} files.",
        details={"path": str(path), "extension": path.suffix, "supported": supported_list},
        hint=f"Try using a file extension that is supported by buckle: {', '.join(supported_list)}.",
    )


def interpreter_for(path: Path, interpreters: Mapping[str, str], *, purpose: str) -> str:
    """Retorna o interpretador para `path` ou levanta UnsupportedExtensionError."""
    interpreter = interpreters.get(path.suffix.lower()) if path.suffix else None
    if interpreter is None:
        raise unsupported_extension(path, purpose=purpose, supported=interpreters.keys())
    return interpreter


def run_script(
    interpreter: str,
    path: Path,
    *,
    env: Optional[Mapping[str, str]] = None,
    failure_message: str = "Failed to run script.",
    sensitive: bool = False,
) -> CmdResult:
    """Executa `interpreter path` e retorna a saída capturada.

    - `env` é somado ao ambiente do processo atual (sobrescrevendo chaves).
    - `sensitive` impede que stdout e stderr sejam logados ou anexados a
      erros (usado por scripts de secrets).

    Raises:
        InterpreterSpawnError: o processo não pôde ser iniciado.
        ScriptExecutionError: o processo terminou com status diferente de zero.
    """

    argv = [interpreter, str(path)]
    logger.info("CMD %s", _fmt_argv(argv))

    try:
        p = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(os.environ, **(env or {})),
            check=False,
        )
    except OSError as e:
        raise InterpreterSpawnError(
            f"Failed to execute the command '{_fmt_argv(argv)}'.",
            details={"interpreter": interpreter, "path": str(path), "os_error": str(e)},
            hint=f"Make sure that '{interpreter}' is installed and present on your path and that you have permission to access it.",
        ) from e

    stdout = p.stdout.decode("utf-8", errors="replace")
    stderr = p.stderr.decode("utf-8", errors="replace")

    if stdout and not sensitive:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr and not sensitive:
        logger.debug("STDERR %s", stderr.strip())

    if p.returncode != 0:
        raise ScriptExecutionError(
            failure_message,
            details={
                "command": _fmt_argv(argv),
                "returncode": p.returncode,
                "stdout": REDACTED if sensitive else stdout,
                "stderr": REDACTED if sensitive else stderr,
            },
            hint="Read the captured STDOUT/STDERR and take the appropriate steps to resolve the issue.",
        )

    return CmdResult(argv=argv, returncode=p.returncode, stdout=stdout, stderr=stderr)
