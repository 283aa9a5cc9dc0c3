# tests/conftest.py
"""
Fixtures compartilhados para testes do buckle.

Este módulo define fixtures reutilizáveis que fornecem:
- settings efetivos padrão (sem arquivo de override)
- um construtor de árvores de configuração em `tmp_path`
- um `sleep` falso que registra as esperas do retry
- um RunContext em modo apply, isolado por teste

Decisões arquiteturais:
    - Árvores de configuração são descritas como dict `caminho → conteúdo`
    - Testes que executam scripts reais exigem `bash` e são pulados sem ele
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture escreve fora de `tmp_path`
    - Nenhuma fixture executa processos
    - Nenhuma fixture dorme de verdade

Limites explícitos:
    - Não substituir testes de integração da CLI
    - Não conter lógica condicional complexa
"""

from pathlib import Path
from typing import Dict, List

import pytest


# =====================================================
# Settings
# =====================================================

@pytest.fixture
def settings():
    """Settings efetivos do buckle, resolvidos apenas a partir dos defaults."""
    from buckle.core.settings import load_settings

    return load_settings()


# =====================================================
# Árvores de configuração
# =====================================================

def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """
    Escreve `files` (caminho relativo → conteúdo) sob `root`.

    Diretórios intermediários são criados. Caminhos terminados em "/"
    criam apenas o diretório.
    """
    for rel, content in files.items():
        path = root / rel
        if rel.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    """
    Fixture que retorna um construtor de árvores dentro de `tmp_path`.

    Uso:
        root = make_tree({"packages/a/package.yml": "description: a\\n"})
    """

    def _make(files: Dict[str, str], *, under: str = "root") -> Path:
        return write_tree(tmp_path / under, files)

    return _make


# =====================================================
# Engine
# =====================================================

class FakeSleep:
    """Substituto de `time.sleep` que apenas registra as durações pedidas."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def apply_ctx():
    from buckle.core.engine import APPLY, RunContext

    return RunContext.create(mode=APPLY)


@pytest.fixture
def plan_ctx():
    from buckle.core.engine import PLAN, RunContext

    return RunContext.create(mode=PLAN)
