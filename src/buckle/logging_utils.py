# src/buckle/logging_utils.py
"""
Configuração de logging do processo (usada apenas pela CLI).

O core nunca configura handlers: cada módulo usa `logging.getLogger(__name__)`
e a CLI decide nível e destino aqui.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def parse_level(level: Union[str, int]) -> int:
    """Converte "debug"/"INFO"/... (ou um int) em nível de logging."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: Union[str, int] = logging.WARNING,
    log_path: Optional[str] = None,
) -> Optional[str]:
    """
    Configura o logger raiz.

    Chamadas repetidas apenas atualizam o nível; handlers nunca são
    duplicados. Quando `log_path` é informado, um FileHandler é adicionado
    além do console (stderr).

    Returns:
        Optional[str]: Caminho do arquivo de log em uso, se houver.
    """
    logger = logging.getLogger()
    logger.setLevel(parse_level(level))

    if getattr(logger, "_buckle_configured", False):
        return getattr(logger, "_buckle_log_path", None)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_path:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for h in handlers:
        h.setFormatter(fmt)
        logger.addHandler(h)

    setattr(logger, "_buckle_configured", True)
    setattr(logger, "_buckle_log_path", log_path)

    logging.getLogger(__name__).debug("Logging initialized (level=%s, file=%s)", level, log_path)
    return log_path
