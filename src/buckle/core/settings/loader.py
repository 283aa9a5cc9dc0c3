# src/buckle/core/settings/loader.py
"""
Loader canônico de settings do buckle.

Os settings efetivos são resolvidos a partir de:
    - `DEFAULT_SETTINGS`, embutido no código (sempre presente)
    - um arquivo local de overrides (opcional, YAML ou JSON)

Responsabilidades do módulo:
    - Carregar o arquivo de overrides e validar o tipo raiz
    - Resolver os settings finais via deep-merge determinístico
    - Validar os campos conhecidos e expor um objeto `Settings` imutável

Invariantes:
    - O resultado é sempre um `Settings` completo
    - Overrides nunca mutam `DEFAULT_SETTINGS`
    - Extensões da tabela de interpretadores são normalizadas (".sh", minúsculas)

Limites explícitos:
    - Não lê variáveis de ambiente (responsabilidade da CLI)
    - Não carrega config/secrets de pacotes
"""

from __future__ import annotations

import hashlib
import json
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml  # PyYAML

from .errors import (
    InvalidSettingsRootTypeError,
    SettingsNotFoundError,
    SettingsTypeConflictError,
    UnsupportedSettingsFormatError,
)


DEFAULT_SETTINGS: Dict[str, Any] = {
    "manifest_name": "package.yml",
    "template_suffix": ".tpl",
    "data_extensions": [".env"],
    "interpreters": {
        ".ps1": "pwsh",
        ".sh": "bash",
        ".bat": "cmd.exe",
        ".cmd": "cmd.exe",
    },
    "default_target": "/",
    "retry": {
        "limit": 0,
        "delay": 5000,
    },
}


@dataclass(frozen=True)
class Settings:
    """
    Settings efetivos e imutáveis do buckle.

    Campos:
        - manifest_name: nome do manifest dentro de cada diretório de pacote
        - template_suffix: sufixo que marca um arquivo como template
        - data_extensions: extensões lidas como texto `key=value`
        - interpreters: extensão → executável do interpretador
        - default_target: raiz de destino para grupos sem mapeamento
        - retry_limit / retry_delay_ms: política padrão de retry dos pacotes
        - digest: hash canônico do dicionário resolvido
    """

    manifest_name: str
    template_suffix: str
    data_extensions: Tuple[str, ...]
    interpreters: Mapping[str, str]
    default_target: str
    retry_limit: int
    retry_delay_ms: int
    digest: str = field(default="", compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        interpreters = data.get("interpreters")
        if not isinstance(interpreters, dict) or not all(
            isinstance(k, str) and isinstance(v, str) and v.strip()
            for k, v in interpreters.items()
        ):
            raise InvalidSettingsRootTypeError(
                "'interpreters' must map file extensions to interpreter executables"
            )

        data_extensions = data.get("data_extensions")
        if not isinstance(data_extensions, list) or not all(isinstance(e, str) for e in data_extensions):
            raise InvalidSettingsRootTypeError("'data_extensions' must be a list of strings")

        for key in ("manifest_name", "template_suffix", "default_target"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise InvalidSettingsRootTypeError(f"'{key}' must be a non-empty string")

        retry = data.get("retry") or {}
        limit = retry.get("limit")
        delay = retry.get("delay")
        for name, value in (("retry.limit", limit), ("retry.delay", delay)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidSettingsRootTypeError(f"'{name}' must be a non-negative integer")

        return cls(
            manifest_name=data["manifest_name"],
            template_suffix=data["template_suffix"],
            data_extensions=tuple(normalize_extension(e) for e in data_extensions),
            interpreters=MappingProxyType(
                {normalize_extension(k): v for k, v in interpreters.items()}
            ),
            default_target=data["default_target"],
            retry_limit=limit,
            retry_delay_ms=delay,
            digest=canonical_digest(data),
        )


def normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def canonical_digest(data: Mapping[str, Any]) -> str:
    """
    SHA-256 (hex) do JSON canônico de `data`.

    Identifica os settings efetivos e o fingerprint de um plano: chaves
    ordenadas e separadores compactos, então a ordem de inserção não conta.
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"Only mappings can be digested, got: {type(data).__name__}")

    payload = json.dumps(dict(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def merge_overrides(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    _path: Tuple[str, ...] = (),
) -> Dict[str, Any]:
    """
    Aplica os overrides do operador sobre `base` e retorna um novo dict.

    Seções (`interpreters`, `retry`) são mescladas chave a chave; listas
    como `data_extensions` e escalares são substituídos por inteiro. Trocar
    o tipo de uma chave existente é erro, reportado pelo caminho pontuado
    (ex.: `retry.limit`). Nenhuma entrada é mutada.
    """
    merged: Dict[str, Any] = deepcopy(dict(base))

    for key, value in override.items():
        path = _path + (str(key),)
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_overrides(merged[key], value, path)
        elif key in merged and type(merged[key]) is not type(value):
            raise SettingsTypeConflictError(
                f"Type conflict on '{'.'.join(path)}': "
                f"{type(merged[key]).__name__} vs {type(value).__name__}"
            )
        else:
            merged[key] = deepcopy(value)

    return merged


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de settings e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        SettingsNotFoundError: Se o arquivo não existir.
        UnsupportedSettingsFormatError: Se o formato do arquivo não for suportado.
        InvalidSettingsRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise SettingsNotFoundError(f"Settings file not found: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedSettingsFormatError(f"Unsupported settings format: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidSettingsRootTypeError(
            f"Settings root must be a dict, got: {type(data).__name__}"
        )

    return data


def load_settings(local_path: Optional[str] = None) -> Settings:
    """
    Carrega e resolve os settings efetivos do buckle.

    Política de resolução:
        - `DEFAULT_SETTINGS` é sempre a base
        - O arquivo local é opcional; quando presente, tem prioridade
        - A resolução utiliza `merge_overrides` (listas substituem, dicts mesclam)

    Args:
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Settings: Settings finais resolvidos.

    Raises:
        SettingsNotFoundError: Se `local_path` for informado e não existir.
        UnsupportedSettingsFormatError: Se o formato do arquivo não for suportado.
        InvalidSettingsRootTypeError: Se o conteúdo não for um dicionário ou
            algum campo conhecido tiver tipo inválido.
        SettingsTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    resolved = DEFAULT_SETTINGS

    if local_path:
        local = _load_file(Path(local_path))
        resolved = merge_overrides(DEFAULT_SETTINGS, local)

    return Settings.from_dict(resolved)
