# src/buckle/core/package/resolver.py
"""
Resolução de dependências entre pacotes.

Este módulo carrega todos os pacotes de `packages/`, constrói o grafo de
dependências declarado em `needs` e produz uma ordem de execução global,
linear e determinística.

O grafo possui, além dos pacotes, um nó terminal sintético que depende
de todos os pacotes. A ordenação é ancorada nesse nó: tudo o que ele
alcança é ordenado, e ele próprio nunca aparece no resultado.

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn modificado)
    - Empates são resolvidos por ordem lexicográfica do id do pacote
    - Dependências inexistentes e ciclos são erros de usuário, não crashes
    - Resolução é tudo-ou-nada: nenhum resultado parcial é retornado

Invariantes:
    - Nenhum pacote aparece antes de suas dependências transitivas
    - Todos os pacotes aparecem exatamente uma vez
    - A mesma árvore de diretórios produz sempre a mesma ordem

Limites explícitos:
    - Não aplica pacotes
    - Não carrega config, secrets, arquivos ou tasks (apenas manifests)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Set

from buckle.core.errors import dependency_cycle, dependency_unknown
from buckle.core.exceptions import (
    CycleDetectedError,
    ManifestError,
    PackagesNotFoundError,
    UnknownDependencyError,
)
from buckle.core.settings import Settings

from .model import Package, load_package

logger = logging.getLogger(__name__)

TERMINAL_NODE = "__complete"


class DependencyGraph:
    """
    Grafo explícito de dependências (lista de adjacência nó → dependências).

    Decisões arquiteturais:
        - Nós são strings; arestas apontam do dependente para a dependência
        - Registrar uma dependência registra implicitamente ambos os nós
        - A ordenação só considera os nós alcançáveis a partir da âncora
    """

    def __init__(self) -> None:
        self._dependencies: Dict[str, Set[str]] = {}

    def register_node(self, node: str) -> None:
        self._dependencies.setdefault(node, set())

    def register_dependency(self, node: str, dependency: str) -> None:
        self.register_node(node)
        self.register_node(dependency)
        self._dependencies[node].add(dependency)

    def register_dependencies(self, node: str, dependencies: Iterable[str]) -> None:
        self.register_node(node)
        for dependency in dependencies:
            self.register_dependency(node, dependency)

    @property
    def nodes(self) -> List[str]:
        return sorted(self._dependencies)

    def dependencies_of(self, node: str) -> List[str]:
        return sorted(self._dependencies[node])

    def _reachable_from(self, anchor: str) -> Set[str]:
        seen: Set[str] = set()
        stack = [anchor]
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._dependencies[node])
        return seen

    def _find_cycle(self, remaining: Set[str]) -> List[str]:
        # todo nó restante possui ao menos uma dependência também restante
        path: List[str] = []
        index: Dict[str, int] = {}
        node = min(remaining)
        while node not in index:
            index[node] = len(path)
            path.append(node)
            node = min(d for d in self._dependencies[node] if d in remaining)
        return path[index[node]:] + [node]

    def topological_order(self, anchor: str) -> List[str]:
        """
        Ordena, dependências primeiro, todos os nós alcançáveis a partir de `anchor`.

        Quando vários nós estão prontos ao mesmo tempo, o menor id
        (ordem lexicográfica) é escolhido primeiro.

        Raises:
            KeyError: Se `anchor` não estiver registrado.
            CycleDetectedError: Se houver ciclo entre os nós alcançáveis.
        """
        nodes = self._reachable_from(anchor)

        incoming_count: Dict[str, int] = {}
        dependents: Dict[str, Set[str]] = {n: set() for n in nodes}
        for node in nodes:
            deps = self._dependencies[node]
            incoming_count[node] = len(deps)
            for dep in deps:
                dependents[dep].add(node)

        ready: List[str] = sorted(n for n, c in incoming_count.items() if c == 0)
        order: List[str] = []

        while ready:
            node = ready.pop(0)
            order.append(node)
            for child in sorted(dependents[node]):
                incoming_count[child] -= 1
                if incoming_count[child] == 0:
                    ready.append(child)
                    ready.sort()

        if len(order) != len(nodes):
            cycle = self._find_cycle(nodes - set(order))
            payload = dependency_cycle(packages=cycle)
            raise CycleDetectedError(
                f"{payload.message} Circular dependency: {' -> '.join(cycle)}",
                details=payload.details,
                hint=payload.hint,
            )

        return order


def load_packages(packages_dir: Path, settings: Settings) -> List[Package]:
    """
    Carrega todos os subdiretórios imediatos de `packages_dir` como pacotes.

    Raises:
        PackagesNotFoundError: Se o diretório não existir ou não puder ser listado.
        ManifestError: Se qualquer manifest for inválido (aborta tudo).
    """
    try:
        entries = sorted(packages_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise PackagesNotFoundError(
            f"Failed to read the list of packages in '{packages_dir}'.",
            details={"directory": str(packages_dir), "os_error": str(e)},
            hint="Make sure that your configuration directory contains a 'packages' directory.",
        ) from e

    packages: List[Package] = []
    for entry in entries:
        if not entry.is_dir():
            continue
        if entry.name == TERMINAL_NODE:
            raise ManifestError(
                f"The package name '{TERMINAL_NODE}' is reserved.",
                details={"package": entry.name, "path": str(entry)},
                hint="Rename this package directory.",
            )
        packages.append(load_package(entry, settings))

    return packages


def build_graph(packages: Iterable[Package]) -> DependencyGraph:
    """
    Constrói o grafo de dependências, validando que todo `needs` existe.

    Raises:
        UnknownDependencyError: Se algum pacote depender de um pacote inexistente.
    """
    by_id: Dict[str, Package] = {p.id: p for p in packages}

    graph = DependencyGraph()
    graph.register_node(TERMINAL_NODE)
    for package_id in sorted(by_id):
        package = by_id[package_id]
        for dep in package.needs:
            if dep not in by_id:
                payload = dependency_unknown(package=package_id, missing=dep)
                raise UnknownDependencyError(payload.message, details=payload.details, hint=payload.hint)
        graph.register_dependencies(package_id, package.needs)
        graph.register_dependency(TERMINAL_NODE, package_id)

    return graph


def order_packages(packages: Iterable[Package]) -> List[Package]:
    package_list = list(packages)
    by_id: Dict[str, Package] = {p.id: p for p in package_list}
    graph = build_graph(package_list)
    order = graph.topological_order(TERMINAL_NODE)
    return [by_id[node] for node in order if node != TERMINAL_NODE]


def resolve(packages_dir: Path, settings: Settings) -> List[Package]:
    """
    Carrega e ordena todos os pacotes de `packages_dir`.

    Returns:
        List[Package]: Pacotes em ordem de execução (dependências primeiro).

    Raises:
        PackagesNotFoundError, ManifestError, UnknownDependencyError, CycleDetectedError
    """
    packages = order_packages(load_packages(packages_dir, settings))
    logger.info("Resolved %d packages: %s", len(packages), ", ".join(p.id for p in packages))
    return packages
