"""File Catalog: grupos de arquivos de um pacote, cópias e templates."""

from .catalog import (
    TEMPLATE_SUFFIX,
    FileEntry,
    apply_file,
    enumerate_all,
    enumerate_files,
    enumerate_groups,
)
from .templating import build_context, render_template

__all__ = [
    "TEMPLATE_SUFFIX",
    "FileEntry",
    "apply_file",
    "build_context",
    "enumerate_all",
    "enumerate_files",
    "enumerate_groups",
    "render_template",
]
