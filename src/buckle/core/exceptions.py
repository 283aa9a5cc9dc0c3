"""
buckle — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do buckle.

Objetivo:
- Permitir que stores, catálogos, resolver e engine levantem exceções
  semânticas tipadas
- Facilitar o mapeamento determinístico para BuckleErrorPayload
- Separar erros de usuário (configuração incorreta) de falhas de sistema
  (I/O do sistema operacional, spawn de processos)

Regras:
- Toda exceção carrega uma mensagem curta, dados estruturados e um hint acionável.
- Falhas de sistema carregam o erro original do sistema operacional
  (em `details["os_error"]` e via encadeamento `raise ... from`).
- Valores de segredos nunca aparecem em mensagens ou `details`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class BuckleException(Exception):
    """Base class para exceções internas do buckle.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana; `hint` diz ao operador o que fazer
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    is_system = False

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class UserError(BuckleException):
    """Erro de configuração do usuário (corrigível editando o diretório de config)."""


@dataclass(eq=False)
class SystemFault(BuckleException):
    """Falha de nível de sistema operacional (I/O, spawn de processo)."""

    is_system = True


# ---------------------------------------------------------------------------
# Fontes de valores / interpretadores
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class UnsupportedExtensionError(UserError):
    """Arquivo de config, secret ou task com extensão não suportada (ou sem extensão)."""


@dataclass(eq=False)
class ScriptExecutionError(UserError):
    """Script terminou com status diferente de zero; `details` carrega stdout/stderr."""


@dataclass(eq=False)
class InterpreterSpawnError(SystemFault):
    """O interpretador não pôde ser iniciado (ausente do PATH, sem permissão)."""


@dataclass(eq=False)
class SourceReadError(SystemFault):
    """Falha de leitura de diretório ou arquivo de origem."""


# ---------------------------------------------------------------------------
# Arquivos
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class TemplateRenderError(UserError):
    """Template inválido ou que referencia uma variável inexistente."""


@dataclass(eq=False)
class FileMaterializationError(SystemFault):
    """Falha ao escrever um arquivo (ou criar seus diretórios) no destino."""


# ---------------------------------------------------------------------------
# Pacotes / grafo de dependências
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class PackagesNotFoundError(UserError):
    """O diretório `packages/` não existe ou não pôde ser listado."""


@dataclass(eq=False)
class ManifestError(UserError):
    """Manifest de pacote ausente, com YAML inválido ou com campos de tipo errado."""


@dataclass(eq=False)
class UnknownDependencyError(UserError):
    """Um pacote declara em `needs` um pacote que não existe."""


@dataclass(eq=False)
class CycleDetectedError(UserError):
    """O grafo de dependências entre pacotes contém um ciclo."""
