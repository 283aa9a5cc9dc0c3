# src/buckle/core/values/store.py
"""
Store de valores (config e secrets) do buckle.

Config e secrets usam exatamente a mesma mecânica: um diretório de fontes,
cada fonte produzindo pares `key=value`. A diferença é apenas semântica:
valores de secrets nunca são logados nem anexados a erros.

Tipos de fonte (por extensão):
    - extensão de dados (`.env`): o conteúdo do arquivo é lido como texto
    - extensão de script (`.sh`, `.ps1`, `.bat`, `.cmd`): o script é executado
      pelo interpretador da tabela e o stdout capturado é o conteúdo
    - qualquer outra extensão (ou nenhuma): erro de usuário

Parse do conteúdo:
    - linha a linha, com espaços das bordas removidos
    - split no primeiro `=`; linhas sem `=` (ou com chave vazia) são
      ignoradas silenciosamente
    - sem aspas nem escapes

Invariantes:
    - Diretório inexistente ⇒ mapa vazio (não é erro)
    - Apenas arquivos regulares diretamente no diretório (não recursivo)
    - Fontes são processadas em ordem de nome; fontes posteriores
      sobrescrevem chaves de fontes anteriores
    - A primeira fonte com erro aborta o carregamento do diretório inteiro
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from buckle.core.exceptions import SourceReadError
from buckle.core.interpreters import interpreter_for, run_script, unsupported_extension
from buckle.core.settings import Settings

logger = logging.getLogger(__name__)

DATA = "data"
SCRIPT = "script"

SECRET_MASK = "******"


@dataclass(frozen=True)
class ValueSource:
    """Uma fonte de valores dentro de um diretório de config/secrets."""

    path: Path
    kind: str
    interpreter: Optional[str] = None

    @property
    def is_script(self) -> bool:
        return self.kind == SCRIPT


def parse_pairs(content: str) -> Dict[str, str]:
    """Converte texto `key=value` (um por linha) em dicionário."""
    output: Dict[str, str] = {}
    for raw in content.splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or not key:
            continue
        output[key] = value
    return output


def iter_sources(directory: Path, settings: Settings, *, purpose: str = "config") -> Iterator[ValueSource]:
    """
    Classifica, em ordem de nome, as fontes de um diretório, sem ler nem executar nada.

    É um gerador: uma fonte com extensão inválida só é reportada quando
    alcançada, preservando a regra "o primeiro erro encontrado vence".

    Raises:
        SourceReadError: Se o diretório existir mas não puder ser listado.
        UnsupportedExtensionError: Se alguma fonte tiver extensão não suportada.
    """
    if not directory.exists():
        return

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise SourceReadError(
            f"Failed to read the list of {purpose} files in '{directory}'.",
            details={"directory": str(directory), "os_error": str(e)},
            hint="Read the internal error message and take the appropriate steps to resolve the issue.",
        ) from e

    for entry in entries:
        if not entry.is_file():
            continue

        suffix = entry.suffix.lower()
        if suffix and suffix in settings.data_extensions:
            yield ValueSource(path=entry, kind=DATA)
        elif suffix and suffix in settings.interpreters:
            yield ValueSource(
                path=entry,
                kind=SCRIPT,
                interpreter=interpreter_for(entry, settings.interpreters, purpose=purpose),
            )
        else:
            raise unsupported_extension(
                entry,
                purpose=purpose,
                supported=[*settings.data_extensions, *settings.interpreters.keys()],
            )


def list_sources(directory: Path, settings: Settings, *, purpose: str = "config") -> List[ValueSource]:
    return list(iter_sources(directory, settings, purpose=purpose))


def load_source(source: ValueSource, *, purpose: str = "config", sensitive: bool = False) -> Dict[str, str]:
    """Lê (ou executa) uma única fonte e devolve seus pares."""
    if source.is_script:
        result = run_script(
            source.interpreter or "",
            source.path,
            failure_message=f"Failed to load {purpose} from script '{source.path}'.",
            sensitive=sensitive,
        )
        content = result.stdout
    else:
        try:
            content = source.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(
                f"Unable to read {purpose} file '{source.path}'.",
                details={"path": str(source.path), "os_error": str(e)},
                hint="Read the internal error message and take the appropriate steps to resolve the issue.",
            ) from e

    pairs = parse_pairs(content)
    logger.debug("Loaded %d %s keys from %s", len(pairs), purpose, source.path)
    return pairs


def load_all(
    directory: Path,
    settings: Settings,
    *,
    purpose: str = "config",
    sensitive: bool = False,
    run_scripts: bool = True,
) -> Dict[str, str]:
    """
    Carrega e mescla todas as fontes de um diretório.

    Args:
        directory (Path): Diretório de fontes (`config/` ou `secrets/`).
        settings (Settings): Settings efetivos (extensões e interpretadores).
        purpose (str): "config" ou "secret"; usado apenas em mensagens.
        sensitive (bool): Quando True, stdout de scripts nunca é logado.
        run_scripts (bool): Quando False, fontes script são ignoradas
            (modo plan: nenhum processo é iniciado).

    Returns:
        Dict[str, str]: Pares mesclados; fontes posteriores vencem.
    """
    output: Dict[str, str] = {}
    for source in iter_sources(directory, settings, purpose=purpose):
        if source.is_script and not run_scripts:
            continue
        output.update(load_source(source, purpose=purpose, sensitive=sensitive))
    return output


def load_config(directory: Path, settings: Settings, *, run_scripts: bool = True) -> Dict[str, str]:
    return load_all(directory, settings, purpose="config", run_scripts=run_scripts)


def load_secrets(directory: Path, settings: Settings, *, run_scripts: bool = True) -> Dict[str, str]:
    return load_all(directory, settings, purpose="secret", sensitive=True, run_scripts=run_scripts)


def merge_layers(base: Dict[str, str], override: Dict[str, str]) -> Dict[str, str]:
    """Retorna uma cópia de `base` com `override` aplicado; `base` nunca é mutado."""
    merged = dict(base)
    merged.update(override)
    return merged


def mask(values: Dict[str, str]) -> Dict[str, str]:
    return {key: SECRET_MASK for key in values}
