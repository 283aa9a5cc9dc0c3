"""
Modelo de pacote do buckle.

Um pacote é um diretório dentro de `packages/`, identificado pelo nome do
diretório (nunca pelo conteúdo do manifest):

    packages/<id>/
        package.yml     manifest (description, needs, files, retry)
        config/         config do pacote (sobrescreve a global)
        secrets/        secrets do pacote (sobrescrevem os globais)
        files/<grupo>/  arquivos e templates
        scripts/        tasks

Apenas o manifest é lido no carregamento; config, secrets, arquivos e tasks
são resolvidos sob demanda, a cada chamada.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

import yaml  # PyYAML

from buckle.core.exceptions import ManifestError
from buckle.core.files import FileEntry, enumerate_all
from buckle.core.settings import Settings
from buckle.core.tasks import TaskEntry, enumerate_tasks
from buckle.core.values import ValueSource, list_sources, load_config, load_secrets

from .retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Package:
    id: str
    description: str
    path: Path
    needs: Tuple[str, ...] = ()
    files: Mapping[str, Path] = field(default_factory=dict)
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def config_dir(self) -> Path:
        return self.path / "config"

    @property
    def secrets_dir(self) -> Path:
        return self.path / "secrets"

    @property
    def files_dir(self) -> Path:
        return self.path / "files"

    @property
    def scripts_dir(self) -> Path:
        return self.path / "scripts"

    def get_config(self, settings: Settings, *, run_scripts: bool = True) -> Dict[str, str]:
        return load_config(self.config_dir, settings, run_scripts=run_scripts)

    def get_secrets(self, settings: Settings, *, run_scripts: bool = True) -> Dict[str, str]:
        return load_secrets(self.secrets_dir, settings, run_scripts=run_scripts)

    def get_value_scripts(self, settings: Settings) -> List[ValueSource]:
        """Fontes de config/secrets que só produzem valores quando executadas."""
        sources = list_sources(self.config_dir, settings, purpose="config")
        sources += list_sources(self.secrets_dir, settings, purpose="secret")
        return [s for s in sources if s.is_script]

    def get_files(self, settings: Settings) -> List[FileEntry]:
        return enumerate_all(self.files_dir, template_suffix=settings.template_suffix)

    def get_tasks(self) -> List[TaskEntry]:
        return enumerate_tasks(self.scripts_dir)

    def target_for(self, group: str, default: Path) -> Path:
        return self.files.get(group, default)


def _manifest_error(path: Path, problem: str) -> ManifestError:
    return ManifestError(
        f"The manifest for package '{path.name}' is invalid: {problem}",
        details={"package": path.name, "path": str(path), "problem": problem},
        hint="Fix the package manifest so that it contains a 'description' string and optional "
        "'needs' (list), 'files' (mapping of group to absolute path) and 'retry' (limit/delay) fields.",
    )


def _parse_manifest(path: Path, data: Any, settings: Settings) -> Package:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise _manifest_error(path, f"the document root must be a mapping, got {type(data).__name__}")

    description = data.get("description")
    if not isinstance(description, str):
        raise _manifest_error(path, "'description' must be a string")

    needs = data.get("needs") or []
    if not isinstance(needs, list) or not all(isinstance(n, str) and n for n in needs):
        raise _manifest_error(path, "'needs' must be a list of package names")

    raw_files = data.get("files") or {}
    if not isinstance(raw_files, dict):
        raise _manifest_error(path, "'files' must map group names to target paths")

    files: Dict[str, Path] = {}
    for group, target in raw_files.items():
        if not isinstance(group, str) or not isinstance(target, str):
            raise _manifest_error(path, f"'files.{group}' must map a group name to a path string")
        target_path = Path(target).expanduser()
        if not target_path.is_absolute():
            raise _manifest_error(path, f"'files.{group}' must be an absolute path (got '{target}')")
        files[group] = target_path

    default_retry = RetryPolicy(limit=settings.retry_limit, delay_ms=settings.retry_delay_ms)
    try:
        retry = RetryPolicy.from_manifest(data.get("retry"), default_retry)
    except ValueError as e:
        raise _manifest_error(path, str(e)) from e

    return Package(
        id=path.name,
        description=description,
        path=path,
        # ordem irrelevante, apenas pertinência
        needs=tuple(sorted(set(needs))),
        files=MappingProxyType(files),
        retry=retry,
    )


def load_package(path: Path, settings: Settings) -> Package:
    """
    Carrega o manifest de um diretório de pacote.

    Raises:
        ManifestError: manifest ausente, ilegível, YAML inválido ou campos inválidos.
    """
    manifest = path / settings.manifest_name
    try:
        content = manifest.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise _manifest_error(path, f"'{settings.manifest_name}' was not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise _manifest_error(path, f"'{settings.manifest_name}' could not be read ({e})") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise _manifest_error(path, f"'{settings.manifest_name}' is not valid YAML ({e})") from e

    package = _parse_manifest(path, data, settings)
    logger.debug("Loaded package %s (needs=%s)", package.id, list(package.needs))
    return package
