"""Config Store e Secret Store: pares `key=value` carregados de diretórios de fontes."""

from .store import (
    SECRET_MASK,
    ValueSource,
    iter_sources,
    list_sources,
    load_all,
    load_config,
    load_secrets,
    load_source,
    mask,
    merge_layers,
    parse_pairs,
)

__all__ = [
    "SECRET_MASK",
    "ValueSource",
    "iter_sources",
    "list_sources",
    "load_all",
    "load_config",
    "load_secrets",
    "load_source",
    "mask",
    "merge_layers",
    "parse_pairs",
]
