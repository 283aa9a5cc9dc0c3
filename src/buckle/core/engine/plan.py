# src/buckle/core/engine/plan.py
"""
Plano de execução (dry-run) do buckle.

O plano percorre a ordem resolvida de pacotes exatamente como o apply
faria, mas apenas descreve as ações: nenhum arquivo é escrito e nenhum
processo é iniciado. Fontes de config/secrets baseadas em script são
listadas como pendentes (seus valores só existem quando executadas).

O `fingerprint` identifica o plano: mesma árvore de configuração e mesmos
settings ⇒ mesmo fingerprint. Valores de secrets não participam dele.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from buckle.core.interpreters import interpreter_for
from buckle.core.package import Package
from buckle.core.settings import Settings, canonical_digest
from buckle.core.values import ValueSource


@dataclass(frozen=True)
class SourcePlan:
    path: str
    purpose: str
    interpreter: Optional[str]


@dataclass(frozen=True)
class FilePlan:
    group: str
    relative_path: str
    destination: str
    kind: str


@dataclass(frozen=True)
class TaskPlan:
    name: str
    path: str
    interpreter: str


@dataclass(frozen=True)
class PackagePlan:
    id: str
    description: str
    needs: List[str]
    config: Dict[str, str]
    secret_keys: List[str]
    pending_sources: List[SourcePlan]
    files: List[FilePlan]
    tasks: List[TaskPlan]
    retry_limit: int
    retry_delay_ms: int


@dataclass(frozen=True)
class RunPlan:
    config: Dict[str, str]
    secret_keys: List[str]
    pending_sources: List[SourcePlan]
    packages: List[PackagePlan] = field(default_factory=list)
    settings_digest: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def fingerprint(self) -> str:
        return canonical_digest(self.to_dict())

    @property
    def package_ids(self) -> List[str]:
        return [p.id for p in self.packages]


def describe_sources(sources: Sequence[ValueSource], purpose: str) -> List[SourcePlan]:
    return [
        SourcePlan(path=str(s.path), purpose=purpose, interpreter=s.interpreter)
        for s in sources
        if s.is_script
    ]


def plan_package(package: Package, settings: Settings) -> PackagePlan:
    """Descreve um pacote sem efeitos colaterais."""
    config = package.get_config(settings, run_scripts=False)
    secrets = package.get_secrets(settings, run_scripts=False)

    pending = [
        SourcePlan(
            path=str(s.path),
            purpose="config" if s.path.parent == package.config_dir else "secret",
            interpreter=s.interpreter,
        )
        for s in package.get_value_scripts(settings)
    ]

    default_target = Path(settings.default_target)
    files = [
        FilePlan(
            group=entry.group,
            relative_path=entry.relative_path.as_posix(),
            destination=str(entry.destination(package.target_for(entry.group, default_target))),
            kind=entry.kind,
        )
        for entry in package.get_files(settings)
    ]

    tasks = [
        TaskPlan(
            name=task.name,
            path=str(task.path),
            interpreter=interpreter_for(task.path, settings.interpreters, purpose="task"),
        )
        for task in package.get_tasks()
    ]

    return PackagePlan(
        id=package.id,
        description=package.description,
        needs=list(package.needs),
        config=dict(sorted(config.items())),
        secret_keys=sorted(secrets),
        pending_sources=pending,
        files=files,
        tasks=tasks,
        retry_limit=package.retry.limit,
        retry_delay_ms=package.retry.delay_ms,
    )
