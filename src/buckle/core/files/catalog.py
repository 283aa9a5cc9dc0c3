"""
Catálogo de arquivos de um pacote.

Estrutura consumida:

    <pacote>/files/<grupo>/<caminho relativo...>

Cada subdiretório imediato de `files/` é um grupo, mapeável de forma
independente para uma raiz de destino. Dentro do grupo, todo arquivo é
materializado em `<raiz de destino>/<caminho relativo>`: cópia byte a byte,
ou renderização quando o nome termina com o sufixo de template. O sufixo
não é removido do destino.

Invariantes:
    - Grupos são listados em ordem de nome; arquivos em ordem de caminho relativo
    - Symlinks são seguidos; um diretório só é podado quando aponta para um
      de seus próprios ancestrais (laço). Links irmãos para o mesmo alvo
      são todos percorridos
    - Raiz ou grupo inexistente ⇒ lista vazia
    - Destinos existentes são sobrescritos
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping

from buckle.core.exceptions import FileMaterializationError, SourceReadError, TemplateRenderError

from .templating import build_context, render_template

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".tpl"


@dataclass(frozen=True)
class FileEntry:
    group: str
    relative_path: Path
    source_path: Path
    is_template: bool

    @property
    def kind(self) -> str:
        return "template" if self.is_template else "file"

    def destination(self, target_root: Path) -> Path:
        return Path(target_root) / self.relative_path


def enumerate_groups(files_root: Path) -> List[str]:
    if not files_root.exists():
        return []

    try:
        entries = list(files_root.iterdir())
    except OSError as e:
        raise SourceReadError(
            f"Failed to read the list of file groups in '{files_root}'.",
            details={"directory": str(files_root), "os_error": str(e)},
            hint="Read the internal error message and take the appropriate steps to resolve the issue.",
        ) from e

    return sorted(entry.name for entry in entries if entry.is_dir())


def enumerate_files(group_dir: Path, *, template_suffix: str = TEMPLATE_SUFFIX) -> List[FileEntry]:
    """Percorre recursivamente um grupo e retorna seus arquivos em ordem determinística."""
    if not group_dir.exists():
        return []

    group = group_dir.name
    top = str(group_dir)
    # diretório visitado → realpaths da sua cadeia de ancestrais (inclusive)
    chains: Dict[str, FrozenSet[str]] = {}
    files: List[FileEntry] = []

    for current, dirnames, filenames in os.walk(top, followlinks=True):
        real = os.path.realpath(current)
        ancestors = chains.get(os.path.dirname(current), frozenset())
        if real in ancestors:
            logger.warning("Skipping symlink loop at %s (points back to %s)", current, real)
            dirnames[:] = []
            continue
        chains[current] = ancestors | {real}

        for name in filenames:
            source = Path(current) / name
            if not source.is_file():
                continue
            files.append(
                FileEntry(
                    group=group,
                    relative_path=source.relative_to(group_dir),
                    source_path=source,
                    is_template=name.endswith(template_suffix),
                )
            )

    return sorted(files, key=lambda f: f.relative_path.parts)


def enumerate_all(files_root: Path, *, template_suffix: str = TEMPLATE_SUFFIX) -> List[FileEntry]:
    files: List[FileEntry] = []
    for group in enumerate_groups(files_root):
        files.extend(enumerate_files(files_root / group, template_suffix=template_suffix))
    return files


def _ensure_parent(destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileMaterializationError(
            f"Failed to create the directory '{destination.parent}'.",
            details={"path": str(destination.parent), "os_error": str(e)},
            hint="Check that you have permission to create this directory.",
        ) from e


def apply_file(
    entry: FileEntry,
    target_root: Path,
    config: Mapping[str, str],
    secrets: Mapping[str, str],
) -> Path:
    """
    Materializa um arquivo no destino e retorna o caminho escrito.

    Raises:
        FileMaterializationError: origem ilegível ou destino não gravável.
        TemplateRenderError: template inválido, não UTF-8 ou com variável inexistente.
    """
    destination = entry.destination(target_root)
    _ensure_parent(destination)

    if entry.is_template:
        _template(entry, destination, config, secrets)
    else:
        _copy(entry, destination)

    logger.info("Applied %s %s -> %s", entry.kind, entry.relative_path, destination)
    return destination


def _template(
    entry: FileEntry,
    destination: Path,
    config: Mapping[str, str],
    secrets: Mapping[str, str],
) -> None:
    try:
        text = entry.source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TemplateRenderError(
            f"The template '{entry.source_path}' is not valid UTF-8 text.",
            details={"path": str(entry.source_path), "template_error": str(e)},
            hint="Templates must be UTF-8 encoded; remove the template suffix to copy the file verbatim.",
        ) from e
    except OSError as e:
        raise FileMaterializationError(
            f"Failed to read the template '{entry.source_path}'.",
            details={"path": str(entry.source_path), "os_error": str(e)},
            hint="Check that the file exists and that you have permission to read it.",
        ) from e

    rendered = render_template(text, build_context(config, secrets), source=str(entry.source_path))

    try:
        destination.write_bytes(rendered.encode("utf-8"))
    except OSError as e:
        raise FileMaterializationError(
            f"Failed to write the rendered template '{entry.source_path}' to '{destination}'.",
            details={"source": str(entry.source_path), "destination": str(destination), "os_error": str(e)},
            hint="Check that you have permission to write the file to this directory and that there is space available on the drive.",
        ) from e


def _copy(entry: FileEntry, destination: Path) -> None:
    try:
        shutil.copyfile(entry.source_path, destination)
        shutil.copymode(entry.source_path, destination)
    except OSError as e:
        raise FileMaterializationError(
            f"Failed to copy file '{entry.source_path}' to the target directory '{destination}'.",
            details={"source": str(entry.source_path), "destination": str(destination), "os_error": str(e)},
            hint="Check that you have permission to write the file to this directory and that there is space available on the drive.",
        ) from e
