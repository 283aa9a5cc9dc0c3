# src/buckle/core/engine/__init__.py
"""
Engine do buckle.

Este pacote percorre a ordem resolvida de pacotes em dois modos:

    - plan  → descreve config, secrets (apenas chaves), arquivos e tasks
              de cada pacote, sem escrever arquivos nem iniciar processos
    - apply → materializa arquivos e executa tasks, pacote a pacote,
              aplicando a política de retry de cada pacote

Componentes principais:
    - context → RunContext (eventos estruturados e spans)
    - plan    → descritores do plano (RunPlan, PackagePlan, ...)
    - engine  → Engine (plan/apply) e resultados de apply

Invariantes:
    - Pacotes são aplicados estritamente em sequência, na ordem do resolver
    - A falha definitiva de um pacote aborta a run
"""

from .context import APPLY, PLAN, RunContext
from .engine import Engine, PackageResult, RunResult
from .plan import FilePlan, PackagePlan, RunPlan, SourcePlan, TaskPlan, plan_package

__all__ = [
    "APPLY",
    "PLAN",
    "Engine",
    "FilePlan",
    "PackagePlan",
    "PackageResult",
    "RunContext",
    "RunPlan",
    "RunResult",
    "SourcePlan",
    "TaskPlan",
    "plan_package",
]
