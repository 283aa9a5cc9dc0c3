# tests/core/settings/test_loader.py
"""
Testes do loader de settings do buckle.

Este módulo valida `load_settings`, responsável por resolver os settings
efetivos a partir de `DEFAULT_SETTINGS` e de um arquivo opcional de
overrides (YAML ou JSON).

Os testes asseguram que:
- sem arquivo, os defaults são usados integralmente
- overrides YAML e JSON são aplicados via deep-merge
- extensões são normalizadas (ponto inicial, minúsculas)
- erros de arquivo, formato e tipo são reportados por exceções tipadas
- `DEFAULT_SETTINGS` nunca é mutado

Limites explícitos:
    - Não valida a política de merge em si (ver test_merge.py)
    - Não valida carregamento de pacotes
"""

import json

import pytest

try:
    from buckle.core.settings import (
        DEFAULT_SETTINGS,
        InvalidSettingsRootTypeError,
        SettingsNotFoundError,
        SettingsTypeConflictError,
        UnsupportedSettingsFormatError,
        load_settings,
    )
except Exception as e:  # noqa: BLE001
    load_settings = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o loader de settings e suas exceções tipadas estejam disponíveis.

    Decisões arquiteturais:
        - Falha antecipada e explícita quando contratos do loader estão ausentes
        - Não tenta fallback nem implementação alternativa
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing settings loader. Implement:\n"
            "- src/buckle/core/settings/loader.py (load_settings, DEFAULT_SETTINGS)\n"
            "- src/buckle/core/settings/errors.py (typed exceptions)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_defaults_without_override_file():
    """
    Verifica que, sem arquivo de override, os defaults embutidos são usados.

    Invariantes:
        - Manifest `package.yml`, sufixo `.tpl`, dados `.env`
        - Tabela de interpretadores completa
        - Retry padrão: limite 0, espera de 5000 ms
    """
    _require_imports()
    s = load_settings()
    assert s.manifest_name == "package.yml"
    assert s.template_suffix == ".tpl"
    assert s.data_extensions == (".env",)
    assert dict(s.interpreters) == {
        ".ps1": "pwsh",
        ".sh": "bash",
        ".bat": "cmd.exe",
        ".cmd": "cmd.exe",
    }
    assert s.default_target == "/"
    assert s.retry_limit == 0
    assert s.retry_delay_ms == 5000
    assert len(s.digest) == 64


def test_yaml_override_is_merged(tmp_path):
    _require_imports()
    p = tmp_path / "settings.yml"
    p.write_text("retry:\n  limit: 2\ninterpreters:\n  PY: python3\n", encoding="utf-8")

    s = load_settings(str(p))
    assert s.retry_limit == 2
    assert s.retry_delay_ms == 5000
    assert s.interpreters[".py"] == "python3"
    assert s.interpreters[".sh"] == "bash"


def test_json_override_is_merged(tmp_path):
    _require_imports()
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"default_target": "/srv/root", "data_extensions": [".vars"]}), encoding="utf-8")

    s = load_settings(str(p))
    assert s.default_target == "/srv/root"
    assert s.data_extensions == (".vars",)


def test_empty_yaml_is_defaults(tmp_path):
    _require_imports()
    p = tmp_path / "settings.yaml"
    p.write_text("", encoding="utf-8")
    assert load_settings(str(p)) == load_settings()


def test_digest_changes_with_override(tmp_path):
    _require_imports()
    p = tmp_path / "settings.yml"
    p.write_text("retry:\n  delay: 10\n", encoding="utf-8")
    assert load_settings(str(p)).digest != load_settings().digest


def test_missing_file_raises(tmp_path):
    _require_imports()
    with pytest.raises(SettingsNotFoundError):
        load_settings(str(tmp_path / "nope.yml"))


def test_unsupported_format_raises(tmp_path):
    _require_imports()
    p = tmp_path / "settings.toml"
    p.write_text("a = 1\n", encoding="utf-8")
    with pytest.raises(UnsupportedSettingsFormatError):
        load_settings(str(p))


def test_root_must_be_mapping(tmp_path):
    _require_imports()
    p = tmp_path / "settings.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidSettingsRootTypeError):
        load_settings(str(p))


def test_negative_retry_limit_is_rejected(tmp_path):
    """Campos conhecidos são validados após o merge: limite negativo é inválido."""
    _require_imports()
    p = tmp_path / "settings.yml"
    p.write_text("retry:\n  limit: -1\n", encoding="utf-8")
    with pytest.raises(InvalidSettingsRootTypeError):
        load_settings(str(p))


def test_structural_conflict_is_rejected(tmp_path):
    _require_imports()
    p = tmp_path / "settings.yml"
    p.write_text("retry: never\n", encoding="utf-8")
    with pytest.raises(SettingsTypeConflictError):
        load_settings(str(p))


def test_defaults_are_never_mutated(tmp_path):
    _require_imports()
    before = json.dumps(DEFAULT_SETTINGS, sort_keys=True)
    p = tmp_path / "settings.yml"
    p.write_text("retry:\n  limit: 7\ninterpreters:\n  .py: python3\n", encoding="utf-8")
    load_settings(str(p))
    assert json.dumps(DEFAULT_SETTINGS, sort_keys=True) == before
