"""Modelo de pacote, política de retry e resolução de dependências."""

from .model import Package, load_package
from .resolver import (
    TERMINAL_NODE,
    DependencyGraph,
    build_graph,
    load_packages,
    order_packages,
    resolve,
)
from .retry import RetryPolicy

__all__ = [
    "TERMINAL_NODE",
    "DependencyGraph",
    "Package",
    "RetryPolicy",
    "build_graph",
    "load_package",
    "load_packages",
    "order_packages",
    "resolve",
]
