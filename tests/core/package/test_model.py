# tests/core/package/test_model.py
"""
Testes do modelo de pacote e do parse de manifests.

Invariantes validadas:
    - O id do pacote é o nome do diretório, nunca um campo do manifest
    - `needs` é tratado como conjunto (duplicatas removidas, ordem irrelevante)
    - `files` aceita apenas caminhos absolutos (após expansão de `~`)
    - A política de retry usa os defaults dos settings quando omitida
    - Config, secrets, arquivos e tasks são resolvidos sob demanda
"""

from pathlib import Path

import pytest

try:
    from buckle.core.exceptions import ManifestError
    from buckle.core.package import RetryPolicy, load_package
except Exception as e:  # noqa: BLE001
    load_package = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/buckle/core/package/model.py (load_package). Import error: {_IMPORT_ERR}")


def _load(make_tree, settings, manifest: str, name: str = "pkg"):
    root = make_tree({f"packages/{name}/package.yml": manifest})
    return load_package(root / "packages" / name, settings)


def test_full_manifest(make_tree, settings):
    _require_imports()
    manifest = (
        "id: ignored\n"
        "description: Development tools\n"
        "needs: [zsh, base, base]\n"
        "files:\n"
        "  home: /home/dev\n"
        "retry:\n"
        "  limit: 2\n"
        "  delay: 10\n"
    )
    p = _load(make_tree, settings, manifest, name="devtools")

    assert p.id == "devtools"
    assert p.description == "Development tools"
    assert p.needs == ("base", "zsh")
    assert dict(p.files) == {"home": Path("/home/dev")}
    assert p.retry == RetryPolicy(limit=2, delay_ms=10)
    assert p.retry.attempts == 3
    assert p.retry.delay_seconds == pytest.approx(0.01)


def test_minimal_manifest_uses_defaults(make_tree, settings):
    _require_imports()
    p = _load(make_tree, settings, "description: minimal\n")
    assert p.needs == ()
    assert dict(p.files) == {}
    assert p.retry == RetryPolicy(limit=0, delay_ms=5000)


def test_unmapped_group_defaults_to_given_root(make_tree, settings):
    _require_imports()
    p = _load(make_tree, settings, "description: x\nfiles:\n  etc: /opt/etc\n")
    assert p.target_for("etc", Path("/")) == Path("/opt/etc")
    assert p.target_for("home", Path("/")) == Path("/")


def test_home_relative_target_is_expanded(make_tree, settings, monkeypatch, tmp_path):
    _require_imports()
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    p = _load(make_tree, settings, "description: x\nfiles:\n  dot: ~/.config\n")
    assert p.files["dot"] == tmp_path / "home" / ".config"


@pytest.mark.parametrize(
    "manifest, problem",
    [
        ("- a\n- b\n", "mapping"),
        ("needs: []\n", "description"),
        ("description: 42\n", "description"),
        ("description: x\nneeds: base\n", "needs"),
        ("description: x\nneeds: [1]\n", "needs"),
        ("description: x\nfiles: [a]\n", "files"),
        ("description: x\nfiles:\n  home: relative/path\n", "absolute"),
        ("description: x\nretry: 3\n", "retry"),
        ("description: x\nretry:\n  limit: -1\n", "retry.limit"),
        ("description: x\nretry:\n  delay: soon\n", "retry.delay"),
    ],
)
def test_invalid_manifest_fields(make_tree, settings, manifest, problem):
    """Cada campo inválido produz ManifestError identificando o pacote e o problema."""
    _require_imports()
    with pytest.raises(ManifestError) as excinfo:
        _load(make_tree, settings, manifest)
    assert excinfo.value.details["package"] == "pkg"
    assert problem in excinfo.value.details["problem"]


def test_missing_manifest(make_tree, settings):
    _require_imports()
    root = make_tree({"packages/empty/": ""})
    with pytest.raises(ManifestError) as excinfo:
        load_package(root / "packages" / "empty", settings)
    assert "package.yml" in str(excinfo.value)


def test_invalid_yaml(make_tree, settings):
    _require_imports()
    with pytest.raises(ManifestError) as excinfo:
        _load(make_tree, settings, "description: [oops\n")
    assert "YAML" in excinfo.value.details["problem"]


def test_package_contents_are_resolved_lazily(make_tree, settings):
    """
    Verifica que config, arquivos e tasks não são lidos no carregamento do pacote.

    Decisões arquiteturais:
        - Apenas o manifest é lido por `load_package`
        - Cada chamada a `get_*` reflete o estado atual do diretório
    """
    _require_imports()
    p = _load(make_tree, settings, "description: lazy\n")
    assert p.get_config(settings) == {}
    assert p.get_files(settings) == []
    assert p.get_tasks() == []

    (p.config_dir).mkdir()
    (p.config_dir / "a.env").write_text("A=1\n", encoding="utf-8")
    (p.files_dir / "home").mkdir(parents=True)
    (p.files_dir / "home" / "f.txt").write_text("f", encoding="utf-8")
    (p.scripts_dir).mkdir()
    (p.scripts_dir / "run.sh").write_text("true\n", encoding="utf-8")

    assert p.get_config(settings) == {"A": "1"}
    assert [f.relative_path.as_posix() for f in p.get_files(settings)] == ["f.txt"]
    assert [t.name for t in p.get_tasks()] == ["run.sh"]


def test_value_scripts_are_listed_without_running(make_tree, settings):
    _require_imports()
    root = make_tree(
        {
            "packages/p/package.yml": "description: p\n",
            "packages/p/config/a.env": "A=1\n",
            "packages/p/config/b.sh": "exit 1\n",
            "packages/p/secrets/c.sh": "exit 1\n",
        }
    )
    p = load_package(root / "packages" / "p", settings)
    assert [s.path.name for s in p.get_value_scripts(settings)] == ["b.sh", "c.sh"]
