# src/buckle/core/settings/__init__.py

"""
Camada de settings do buckle.

Settings são as opções da própria ferramenta: nome do manifest, sufixo de
template, extensões de dados, tabela de interpretadores, raiz de destino
padrão e política de retry padrão.

Princípios fundamentais:
    - Defaults embutidos, overrides sempre explícitos
    - Nenhuma heurística implícita durante merge
    - A mesma entrada sempre produz os mesmos settings (e o mesmo hash)
"""

from .errors import (
    InvalidSettingsRootTypeError,
    SettingsError,
    SettingsNotFoundError,
    SettingsTypeConflictError,
    UnsupportedSettingsFormatError,
)
from .loader import (
    DEFAULT_SETTINGS,
    Settings,
    canonical_digest,
    load_settings,
    merge_overrides,
    normalize_extension,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "InvalidSettingsRootTypeError",
    "Settings",
    "SettingsError",
    "SettingsNotFoundError",
    "SettingsTypeConflictError",
    "UnsupportedSettingsFormatError",
    "canonical_digest",
    "load_settings",
    "merge_overrides",
    "normalize_extension",
]
