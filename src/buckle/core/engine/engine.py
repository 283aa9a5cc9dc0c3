# src/buckle/core/engine/engine.py
"""
Engine de aplicação do buckle.

O Engine percorre a ordem resolvida de pacotes em dois modos:

- plan: descreve cada pacote (config, secrets, arquivos, tasks) sem efeitos
  colaterais;
- apply: aplica cada pacote: clona as camadas globais de config/secrets,
  mescla as camadas do pacote, materializa arquivos e executa tasks.

Política de retry (apply):
    - Qualquer falha durante a aplicação de um pacote reinicia a aplicação
      desse pacote desde o início (camadas recarregadas, arquivos
      reaplicados, tasks reexecutadas), após uma espera bloqueante
    - Esgotadas as tentativas, o erro é propagado e a run é abortada:
      pacotes posteriores não são tentados
    - Pacotes aplicados com sucesso não são desfeitos

Invariantes:
    - Execução estritamente sequencial, na ordem do resolver
    - As camadas globais nunca são mutadas; cada pacote opera em uma cópia
    - Valores de secrets nunca são registrados no log de eventos
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from buckle.core.errors import exception_to_error
from buckle.core.files import apply_file
from buckle.core.package import Package, resolve
from buckle.core.settings import Settings
from buckle.core.tasks import run_task
from buckle.core.values import SECRET_MASK, list_sources, load_config, load_secrets, merge_layers

from .context import PLAN, RunContext
from .plan import PackagePlan, RunPlan, SourcePlan, describe_sources, plan_package


@dataclass(frozen=True)
class PackageResult:
    """Resultado da aplicação de um pacote."""

    package_id: str
    attempts: int
    files: List[str] = field(default_factory=list)
    tasks: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma run de apply (pacotes na ordem aplicada)."""

    packages: List[PackageResult] = field(default_factory=list)

    @property
    def package_ids(self) -> List[str]:
        return [p.package_id for p in self.packages]


class Engine:
    """Engine canônico do buckle (plan + apply)."""

    def __init__(
        self,
        *,
        packages: Sequence[Package],
        config: Mapping[str, str],
        secrets: Mapping[str, str],
        settings: Settings,
        ctx: RunContext,
        sleep: Callable[[float], None] = time.sleep,
        root: Optional[Path] = None,
    ):
        self.packages: List[Package] = list(packages)
        self.config: Mapping[str, str] = MappingProxyType(dict(config))
        self.secrets: Mapping[str, str] = MappingProxyType(dict(secrets))
        self.settings = settings
        self.ctx = ctx
        self._sleep = sleep
        self.root = root

    @classmethod
    def from_root(
        cls,
        root: Path,
        *,
        settings: Settings,
        ctx: RunContext,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "Engine":
        """
        Carrega as camadas globais e resolve os pacotes de um diretório raiz.

        Em modo plan, fontes globais baseadas em script não são executadas.
        Erros de resolução abortam antes que qualquer pacote seja tocado.
        """
        root = Path(root)
        run_scripts = ctx.mode != PLAN
        with ctx.span("config.load_all"):
            config = load_config(root / "config", settings, run_scripts=run_scripts)
            secrets = load_secrets(root / "secrets", settings, run_scripts=run_scripts)
        with ctx.span("package.resolve"):
            packages = resolve(root / "packages", settings)

        return cls(
            packages=packages,
            config=config,
            secrets=secrets,
            settings=settings,
            ctx=ctx,
            sleep=sleep,
            root=root,
        )

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------
    def plan(self) -> RunPlan:
        pending: List[SourcePlan] = []
        if self.root is not None:
            pending = describe_sources(list_sources(self.root / "config", self.settings), "config")
            pending += describe_sources(
                list_sources(self.root / "secrets", self.settings, purpose="secret"), "secret"
            )

        package_plans: List[PackagePlan] = []
        for package in self.packages:
            with self.ctx.span("package.plan", package_id=package.id):
                package_plans.append(plan_package(package, self.settings))

        return RunPlan(
            config=dict(sorted(self.config.items())),
            secret_keys=sorted(self.secrets),
            pending_sources=pending,
            packages=package_plans,
            settings_digest=self.settings.digest,
        )

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------
    def apply(self) -> RunResult:
        results: List[PackageResult] = []
        for package in self.packages:
            results.append(self._apply_with_retry(package))
        return RunResult(packages=results)

    def _apply_with_retry(self, package: Package) -> PackageResult:
        policy = package.retry
        attempt = 0
        while True:
            attempt += 1
            try:
                with self.ctx.span("package.apply", package_id=package.id, attempt=attempt):
                    return self._apply_once(package, attempt)
            except Exception as e:
                if attempt >= policy.attempts:
                    self.ctx.log(
                        package_id=package.id,
                        level="error",
                        event="package.failed",
                        message=f"Package '{package.id}' failed after {attempt} attempt(s)",
                        attempts=attempt,
                        error=exception_to_error(e).to_dict(),
                    )
                    raise
                self.ctx.log(
                    package_id=package.id,
                    level="warning",
                    event="package.retry",
                    message=f"Retrying package '{package.id}' in {policy.delay_ms} ms "
                    f"(attempt {attempt + 1}/{policy.attempts})",
                    attempt=attempt + 1,
                    attempts=policy.attempts,
                    delay_ms=policy.delay_ms,
                )
                self._sleep(policy.delay_seconds)

    def _merged_layers(self, package: Package) -> tuple[Dict[str, str], Dict[str, str]]:
        package_config = package.get_config(self.settings)
        package_secrets = package.get_secrets(self.settings)

        for key, value in sorted(package_config.items()):
            self.ctx.log(
                package_id=package.id,
                level="debug",
                event="config.override",
                message=f"config {key}={value}",
                key=key,
                value=value,
            )
        for key in sorted(package_secrets):
            self.ctx.log(
                package_id=package.id,
                level="debug",
                event="secret.override",
                message=f"secret {key}={SECRET_MASK}",
                key=key,
            )

        return (
            merge_layers(dict(self.config), package_config),
            merge_layers(dict(self.secrets), package_secrets),
        )

    def _apply_once(self, package: Package, attempt: int) -> PackageResult:
        config, secrets = self._merged_layers(package)

        default_target = Path(self.settings.default_target)
        written: List[str] = []
        for entry in package.get_files(self.settings):
            target = package.target_for(entry.group, default_target)
            with self.ctx.span(
                "file.apply",
                package_id=package.id,
                group=entry.group,
                kind=entry.kind,
                destination=str(entry.destination(target)),
            ):
                written.append(str(apply_file(entry, target, config, secrets)))

        ran: List[str] = []
        for task in package.get_tasks():
            with self.ctx.span("task.run", package_id=package.id, task=task.name):
                run_task(task, config, secrets, self.settings.interpreters)
            ran.append(task.name)

        return PackageResult(package_id=package.id, attempts=attempt, files=written, tasks=ran)
