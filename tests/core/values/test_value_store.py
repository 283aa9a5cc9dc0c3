# tests/core/values/test_value_store.py
"""
Testes do Config Store e do Secret Store.

Config e secrets compartilham a mesma mecânica: um diretório de fontes,
cada fonte produzindo pares `key=value`. Este módulo valida:

- parse linha a linha (split no primeiro `=`, linhas inválidas ignoradas)
- precedência por ordem de nome entre fontes do mesmo diretório
- diretório inexistente como mapa vazio
- extensões não suportadas como erro de usuário
- fontes baseadas em script (stdout capturado) e suas falhas
- redação do stdout de scripts de secrets
- merge de camadas sem aliasing

Decisões arquiteturais:
    - Scripts reais são executados com `bash`; sem `bash`, os testes são pulados
    - Nenhum teste depende da ordem de listagem do sistema de arquivos

Limites explícitos:
    - Não valida templates nem tasks
"""

import logging
import shutil

import pytest

try:
    from buckle.core.exceptions import (
        InterpreterSpawnError,
        ScriptExecutionError,
        UnsupportedExtensionError,
        UserError,
    )
    from buckle.core.settings import load_settings
    from buckle.core.values import (
        list_sources,
        load_config,
        load_secrets,
        mask,
        merge_layers,
        parse_pairs,
    )
except Exception as e:  # noqa: BLE001
    parse_pairs = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None

requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not available")


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing value store. Implement src/buckle/core/values/store.py "
            f"(parse_pairs, load_config, load_secrets, merge_layers). Import error: {_IMPORT_ERR}"
        )


# -----------------------------
# parse_pairs
# -----------------------------

def test_parse_pairs_splits_on_first_equals():
    """
    Verifica o parse canônico de conteúdo `key=value`.

    Invariantes:
        - O split ocorre apenas no primeiro `=`
        - Espaços nas bordas da linha são removidos
        - Valores vazios são preservados
        - Não há tratamento de aspas nem escapes
    """
    _require_imports()
    content = "  A=1  \nURL=http://x?a=b\nEMPTY=\nQUOTED=\"q\"\n"
    assert parse_pairs(content) == {
        "A": "1",
        "URL": "http://x?a=b",
        "EMPTY": "",
        "QUOTED": '"q"',
    }


def test_parse_pairs_skips_lines_without_separator():
    _require_imports()
    assert parse_pairs("# comment\n\njust text\n=orphan\nK=V\n") == {"K": "V"}


def test_parse_pairs_later_lines_win():
    _require_imports()
    assert parse_pairs("K=1\nK=2\n") == {"K": "2"}


# -----------------------------
# load_config / load_secrets
# -----------------------------

def test_missing_directory_is_empty(tmp_path, settings):
    _require_imports()
    assert load_config(tmp_path / "config", settings) == {}
    assert load_secrets(tmp_path / "secrets", settings) == {}


def test_sources_are_merged_in_name_order(make_tree, settings):
    """
    Verifica que fontes posteriores (por nome) sobrescrevem chaves de fontes anteriores.

    Decisões arquiteturais:
        - A ordem é lexicográfica pelo nome do arquivo
        - Subdiretórios são ignorados (carregamento não recursivo)
    """
    _require_imports()
    root = make_tree(
        {
            "config/20-late.env": "SHARED=late\n",
            "config/10-early.env": "SHARED=early\nONLY_EARLY=1\n",
            "config/nested/ignored.env": "IGNORED=1\n",
        }
    )
    assert load_config(root / "config", settings) == {"SHARED": "late", "ONLY_EARLY": "1"}


def test_unsupported_extension_is_user_error(make_tree, settings):
    _require_imports()
    root = make_tree({"config/values.txt": "A=1\n"})
    with pytest.raises(UnsupportedExtensionError) as excinfo:
        load_config(root / "config", settings)
    assert isinstance(excinfo.value, UserError)
    assert excinfo.value.details["path"].endswith("values.txt")


def test_file_without_extension_is_user_error(make_tree, settings):
    _require_imports()
    root = make_tree({"secrets/token": "A=1\n"})
    with pytest.raises(UnsupportedExtensionError):
        load_secrets(root / "secrets", settings)


def test_list_sources_classifies_without_running(make_tree, settings):
    _require_imports()
    root = make_tree({"config/a.env": "A=1\n", "config/b.sh": "exit 1\n"})
    sources = list_sources(root / "config", settings)
    assert [(s.path.name, s.kind, s.interpreter) for s in sources] == [
        ("a.env", "data", None),
        ("b.sh", "script", "bash"),
    ]


def test_plan_mode_skips_script_sources(make_tree, settings):
    """Com `run_scripts=False`, scripts não são executados e só os dados entram no mapa."""
    _require_imports()
    root = make_tree({"config/a.env": "A=1\n", "config/b.sh": "echo B=2\nexit 1\n"})
    assert load_config(root / "config", settings, run_scripts=False) == {"A": "1"}


@requires_bash
def test_script_source_stdout_is_parsed(make_tree, settings):
    _require_imports()
    root = make_tree(
        {
            "config/10-static.env": "HOST=static\nPORT=80\n",
            "config/20-dynamic.sh": "echo HOST=dynamic\necho 'noise without separator'\n",
        }
    )
    assert load_config(root / "config", settings) == {"HOST": "dynamic", "PORT": "80"}


@requires_bash
def test_failing_script_carries_output(make_tree, settings):
    """
    Verifica que um script de config com status != 0 é erro de usuário com diagnóstico.

    Invariantes:
        - A exceção é `ScriptExecutionError`
        - STDOUT e STDERR capturados acompanham o erro
        - O status de saída é preservado
    """
    _require_imports()
    root = make_tree({"config/broken.sh": "echo partial\necho boom >&2\nexit 3\n"})
    with pytest.raises(ScriptExecutionError) as excinfo:
        load_config(root / "config", settings)

    details = excinfo.value.details
    assert details["returncode"] == 3
    assert "partial" in details["stdout"]
    assert "boom" in details["stderr"]


@requires_bash
def test_failing_secret_script_redacts_output(make_tree, settings, caplog):
    """Nem stdout nem stderr de um script de secrets chegam ao erro ou ao log."""
    _require_imports()
    root = make_tree({"secrets/vault.sh": "echo TOKEN=hunter2\necho \"bad token hunter3\" >&2\nexit 1\n"})
    with caplog.at_level(logging.DEBUG, logger="buckle"):
        with pytest.raises(ScriptExecutionError) as excinfo:
            load_secrets(root / "secrets", settings)

    details = excinfo.value.details
    assert details["returncode"] == 1
    assert "hunter2" not in str(details)
    assert "hunter3" not in str(details)
    assert "hunter2" not in caplog.text
    assert "hunter3" not in caplog.text


def test_missing_interpreter_is_system_error(make_tree, tmp_path):
    _require_imports()
    override = tmp_path / "settings.yml"
    override.write_text("interpreters:\n  .sh: buckle-test-no-such-interpreter\n", encoding="utf-8")
    settings = load_settings(str(override))

    root = make_tree({"config/a.sh": "echo A=1\n"})
    with pytest.raises(InterpreterSpawnError) as excinfo:
        load_config(root / "config", settings)

    assert excinfo.value.is_system
    assert isinstance(excinfo.value.__cause__, OSError)
    assert excinfo.value.details["os_error"]


def test_first_error_wins(make_tree, settings):
    """A primeira fonte inválida (por nome) aborta o carregamento; as seguintes não são tocadas."""
    _require_imports()
    root = make_tree({"config/a.txt": "A=1\n", "config/b.ini": "B=2\n"})
    with pytest.raises(UnsupportedExtensionError) as excinfo:
        load_config(root / "config", settings)
    assert excinfo.value.details["path"].endswith("a.txt")


# -----------------------------
# merge / mask
# -----------------------------

def test_merge_layers_returns_new_map():
    _require_imports()
    base = {"A": "1", "B": "2"}
    out = merge_layers(base, {"B": "override", "C": "3"})
    assert out == {"A": "1", "B": "override", "C": "3"}
    assert base == {"A": "1", "B": "2"}

    out["A"] = "mutated"
    assert base["A"] == "1"


def test_mask_hides_values():
    _require_imports()
    assert mask({"TOKEN": "hunter2"}) == {"TOKEN": "******"}
