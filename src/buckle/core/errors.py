"""
buckle — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros reportados pelo buckle.
Erros são artefatos de primeira classe do bootstrap e devem ser:

- explícitos
- serializáveis
- acionáveis (sempre acompanhados de um hint)
- livres de valores secretos

A CLI e qualquer outro consumidor do core recebem erros exclusivamente
através de `BuckleErrorPayload`, nunca através de stack traces crus.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .exceptions import BuckleException


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BuckleErrorPayload:
    """
    Payload canônico de erro do buckle.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    - system: indica falha de sistema operacional (em oposição a erro de usuário)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    system: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Dependências
DEPENDENCY_CYCLE = "DEPENDENCY_CYCLE"
DEPENDENCY_UNKNOWN = "DEPENDENCY_UNKNOWN"

# Execução
RUN_UNEXPECTED_ERROR = "RUN_UNEXPECTED_ERROR"
RUN_INVALID_INVOCATION = "RUN_INVALID_INVOCATION"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def dependency_cycle(
    *,
    packages: List[str],
    hint: str = "Make sure that your packages specify valid dependencies and that there are no circular references.",
) -> BuckleErrorPayload:
    return BuckleErrorPayload(
        type=DEPENDENCY_CYCLE,
        message="Failed to calculate a valid execution graph based on the dependencies specified in your packages.",
        details={"packages": list(packages)},
        hint=hint,
    )


def dependency_unknown(
    *,
    package: str,
    missing: str,
    hint: str = "Make sure that this package is present, or remove the dependency from any packages which currently need it.",
) -> BuckleErrorPayload:
    return BuckleErrorPayload(
        type=DEPENDENCY_UNKNOWN,
        message=f"Package '{package}' needs '{missing}', which does not exist.",
        details={"package": package, "missing": missing},
        hint=hint,
    )


def invalid_invocation(
    *,
    message: str,
    hint: str = "Provide the --config directory (or set BUCKLE_CONFIG) when running this command.",
) -> BuckleErrorPayload:
    return BuckleErrorPayload(
        type=RUN_INVALID_INVOCATION,
        message=message,
        details={},
        hint=hint,
    )


def exception_to_error(exc: BaseException) -> BuckleErrorPayload:
    """Converte exceções em BuckleErrorPayload (serializável, acionável).

    Regras:
    - BuckleException: já vem com message/details/hint; o código é o nome da classe.
    - Outras exceções: encapsuladas como RUN_UNEXPECTED_ERROR sem expor stack trace.
    """
    if isinstance(exc, BuckleException):
        return BuckleErrorPayload(
            type=exc.__class__.__name__,
            message=str(exc) or "Unexpected error",
            details=dict(exc.details or {}),
            hint=exc.hint,
            system=bool(exc.is_system),
        )

    return BuckleErrorPayload(
        type=RUN_UNEXPECTED_ERROR,
        message=str(exc) or "Unexpected error while applying the configuration",
        details={"exception_class": exc.__class__.__name__},
        hint="Re-run with --log-level DEBUG and review the technical log.",
        system=False,
    )
