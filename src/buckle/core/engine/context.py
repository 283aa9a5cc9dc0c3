# src/buckle/core/engine/context.py
"""
Contexto de execução de uma run do buckle.

O RunContext é o colaborador de rastreamento injetado no Engine: ele
registra eventos estruturados (log de eventos ordenado) e spans com
duração, encaminhando cada evento para o logging padrão e, opcionalmente,
para um `sink` (a CLI usa o sink para imprimir o progresso).

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Nenhum estado global de tracing
    - Os contratos do core são observáveis com ou sem sink

Invariantes:
    - Eventos sempre incluem `run_id`, `package_id`, `level`, `event` e `timestamp`
    - A ordem de `events` reflete a ordem real de execução
    - Valores de secrets nunca são registrados, apenas suas chaves
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

PLAN = "plan"
APPLY = "apply"

EventSink = Callable[[Dict[str, Any]], None]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class RunContext:
    """
    Contexto de execução compartilhado de uma run.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - mode: "plan" ou "apply"
    - sink: callable opcional que recebe cada evento registrado
    - events: log estruturado de eventos
    - warnings: warnings por package_id
    """

    run_id: str
    created_at: datetime
    mode: str = APPLY
    sink: Optional[EventSink] = field(default=None, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def create(cls, *, mode: str = APPLY, sink: Optional[EventSink] = None) -> "RunContext":
        return cls(
            run_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            mode=mode,
            sink=sink,
        )

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(
        self,
        *,
        package_id: Optional[str],
        level: str,
        event: str,
        message: str,
        **extra: Any,
    ) -> Dict[str, Any]:
        record = {
            "run_id": self.run_id,
            "package_id": package_id,
            "level": level,
            "event": event,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        record.update(extra)
        self.events.append(record)

        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s", package_id or "-", message)
        if self.sink is not None:
            self.sink(record)
        return record

    def add_warning(self, *, package_id: str, message: str) -> None:
        if package_id not in self.warnings:
            self.warnings[package_id] = []
        self.warnings[package_id].append(message)
        self.log(package_id=package_id, level="warning", event="warning", message=message)

    # -----------------------------
    # Spans
    # -----------------------------
    @contextmanager
    def span(self, name: str, *, package_id: Optional[str] = None, **fields: Any) -> Iterator[None]:
        """Registra início, fim (com duração) ou falha de uma operação."""
        started = time.monotonic()
        self.log(package_id=package_id, level="debug", event=name, message=f"{name} started", phase="start", **fields)
        try:
            yield
        except Exception as e:
            self.log(
                package_id=package_id,
                level="error",
                event=name,
                message=f"{name} failed: {e}",
                phase="error",
                duration_ms=int((time.monotonic() - started) * 1000),
                error_type=e.__class__.__name__,
                **fields,
            )
            raise
        self.log(
            package_id=package_id,
            level="debug",
            event=name,
            message=f"{name} finished",
            phase="end",
            duration_ms=int((time.monotonic() - started) * 1000),
            **fields,
        )

    def events_for(self, event: str, *, phase: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            e for e in self.events
            if e["event"] == event and (phase is None or e.get("phase") == phase)
        ]
