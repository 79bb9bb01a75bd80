import pathlib

import pytest

from codecopier.errors import ManifestError
from codecopier.manifests import (
    detect_project_metadata,
    parse_cargo_toml,
    parse_pyproject,
    parse_requirements,
    parse_setup_py,
    split_requirement,
)
from conftest import CARGO_TOML


@pytest.mark.parametrize(
    "requirement, expected",
    [
        ("requests>=2.31", ("requests", ">=2.31")),
        ("click", ("click", None)),
        ("django == 4.2", ("django", "== 4.2")),
        ("uvicorn[standard]>=0.20", ("uvicorn[standard]", ">=0.20")),
        ("tomli; python_version < '3.11'", ("tomli", "; python_version < '3.11'")),
    ],
)
def test_split_requirement(requirement, expected):
    assert split_requirement(requirement) == expected


def test_parse_cargo_toml(tmp_path):
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text(
        CARGO_TOML + '\n[dev-dependencies]\nproptest = "1.4"\n\n[build-dependencies]\ncc = "1"\n',
        encoding="utf-8",
    )
    meta = parse_cargo_toml(manifest)

    assert meta.name == "demo"
    assert meta.version == "0.1.0"
    assert meta.description == "A demo crate"
    assert meta.dependencies == [("serde", "1.0"), ("tokio", "1"), ("local-utils", None)]
    assert meta.dev_dependencies == [("proptest", "1.4")]
    assert meta.build_dependencies == [("cc", "1")]
    assert meta.source == manifest


def test_parse_cargo_toml_tolerates_missing_fields(tmp_path):
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text('[workspace]\nmembers = ["a"]\n\n[package]\nversion.workspace = true\n')
    meta = parse_cargo_toml(manifest)

    assert meta.name is None
    assert meta.version is None
    assert meta.dependencies == []


def test_parse_cargo_toml_rejects_invalid_toml(tmp_path):
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text("[package\nname = ")
    with pytest.raises(ManifestError, match="Invalid TOML"):
        parse_cargo_toml(manifest)


def test_parse_pyproject_poetry(tmp_path):
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text(
        """\
[tool.poetry]
name = "poetry-app"
version = "1.2.3"
description = "Built with poetry"

[tool.poetry.dependencies]
python = "^3.10"
httpx = "^0.27"
rich = { version = "^13", optional = true }

[tool.poetry.group.dev.dependencies]
pytest = "^8"
"""
    )
    meta = parse_pyproject(manifest)

    assert meta.flavor == "Poetry"
    assert meta.name == "poetry-app"
    assert meta.dependencies == [("httpx", "^0.27"), ("rich", "^13")]
    assert meta.dev_dependencies == [("pytest", "^8")]


def test_parse_pyproject_pep621(tmp_path):
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text(
        """\
[project]
name = "modern"
version = "0.4.0"
dependencies = ["pathspec>=0.11", "tqdm"]

[project.optional-dependencies]
test = ["pytest>=7"]
"""
    )
    meta = parse_pyproject(manifest)

    assert meta.flavor == "PEP 621"
    assert meta.name == "modern"
    assert meta.description is None
    assert meta.dependencies == [("pathspec", ">=0.11"), ("tqdm", None)]
    assert meta.optional_dependencies == {"test": [("pytest", ">=7")]}


def test_parse_pyproject_flit(tmp_path):
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text(
        """\
[tool.flit.metadata]
module = "flitmod"
requires = ["requests"]

[tool.flit.metadata.requires-extra]
doc = ["sphinx"]
"""
    )
    meta = parse_pyproject(manifest)

    assert meta.flavor == "Flit"
    assert meta.name == "flitmod"
    assert meta.dependencies == [("requests", None)]
    assert meta.optional_dependencies == {"doc": [("sphinx", None)]}


def test_parse_pyproject_unrecognized_layout(tmp_path):
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text('[tool.black]\nline-length = 100\n')
    meta = parse_pyproject(manifest)

    assert meta.flavor == "pyproject.toml (unrecognized layout)"
    assert meta.name is None
    assert meta.dependencies == []


def test_parse_setup_py_reads_literals_only(tmp_path):
    manifest = tmp_path / "setup.py"
    manifest.write_text(
        """\
from setuptools import setup

VERSION = "9.9"

setup(
    name="legacy",
    version=VERSION,
    description='Old school',
    install_requires=[
        "numpy>=1.20",
        "six",
    ],
    extras_require={"dev": ["pytest"]},
)
"""
    )
    meta = parse_setup_py(manifest)

    assert meta.flavor == "setup.py"
    assert meta.name == "legacy"
    assert meta.version is None
    assert meta.description == "Old school"
    assert meta.dependencies == [("numpy", ">=1.20"), ("six", None)]
    assert meta.optional_dependencies == {"dev": [("pytest", None)]}


def test_parse_setup_py_rejects_syntax_errors(tmp_path):
    manifest = tmp_path / "setup.py"
    manifest.write_text("setup(name='broken'\n")
    with pytest.raises(ManifestError):
        parse_setup_py(manifest)


def test_parse_requirements(tmp_path):
    manifest = tmp_path / "requirements.txt"
    manifest.write_text(
        "# pinned deps\n"
        "flask==3.0.0\n"
        "\n"
        "-r base.txt\n"
        "--index-url https://example.invalid/simple\n"
        "gunicorn  # server\n"
    )
    meta = parse_requirements(manifest)

    assert meta.flavor == "requirements.txt"
    assert meta.dependencies == [("flask", "==3.0.0"), ("gunicorn", None)]


def test_detects_rust_manifest_above_input(rust_project):
    detected = detect_project_metadata([str(rust_project / "src" / "main.rs")])

    assert detected.rust is not None
    assert detected.rust.name == "demo"
    assert detected.python is None
    assert detected.project_type == "Rust"


def test_nearest_manifest_wins(make_tree):
    root = make_tree(
        {
            "pyproject.toml": '[project]\nname = "outer"\n',
            "service/requirements.txt": "fastapi\n",
            "service/app.py": "app = None\n",
        }
    )
    detected = detect_project_metadata([str(root / "service" / "app.py")])

    assert detected.python.flavor == "requirements.txt"
    assert detected.python.dependencies == [("fastapi", None)]


def test_python_candidates_follow_priority_order(make_tree):
    root = make_tree(
        {
            "pyproject.toml": '[project]\nname = "first"\n',
            "setup.py": "from setuptools import setup\nsetup(name='second')\n",
            "requirements.txt": "third\n",
        }
    )
    detected = detect_project_metadata([str(root)])

    assert detected.python.name == "first"


def test_sibling_requirements_first_input_wins(make_tree):
    root = make_tree({"a/requirements.txt": "alpha\n", "b/requirements.txt": "beta\n"})
    detected = detect_project_metadata([str(root / "a"), str(root / "b")])

    assert detected.python.source == (root / "a" / "requirements.txt").resolve()
    assert detected.python.dependencies == [("alpha", None)]


def test_both_kinds_are_detected(make_tree):
    root = make_tree({"Cargo.toml": CARGO_TOML, "pyproject.toml": '[project]\nname = "bindings"\n'})
    detected = detect_project_metadata([str(root)])

    assert detected.rust.name == "demo"
    assert detected.python.name == "bindings"
    assert detected.project_type == "Mixed"


def test_corrupt_manifest_is_omitted_with_warning(make_tree, capsys):
    root = make_tree(
        {
            "Cargo.toml": "[package\n",
            "requirements.txt": "attrs\n",
            "nested/Cargo.toml": "[[[",
        }
    )
    detected = detect_project_metadata([str(root)])

    assert detected.rust is None
    assert detected.python.dependencies == [("attrs", None)]
    assert "Warning: Invalid TOML" in capsys.readouterr().err


def test_corrupt_candidate_falls_through_to_next_in_same_directory(make_tree, capsys):
    root = make_tree(
        {
            "pyproject.toml": "not = [valid",
            "setup.py": "from setuptools import setup\nsetup(name='fallback')\n",
        }
    )
    detected = detect_project_metadata([str(root)])

    assert detected.python.name == "fallback"
    assert "Warning" in capsys.readouterr().err


def test_no_manifest_gives_unknown(make_tree):
    root = make_tree({"notes.txt": "hello\n"})
    detected = detect_project_metadata([str(root / "notes.txt")])

    assert detected.blocks() == []
    assert detected.project_type == "Unknown"


def test_explicit_overrides_take_precedence(make_tree):
    root = make_tree(
        {
            "Cargo.toml": '[package]\nname = "discovered"\n',
            "elsewhere/Cargo.toml": '[package]\nname = "explicit"\n',
            "elsewhere/setup.py": "from setuptools import setup\nsetup(name='explicit-py')\n",
        }
    )
    detected = detect_project_metadata(
        [str(root)],
        cargo_toml=str(root / "elsewhere" / "Cargo.toml"),
        pyproject=str(root / "elsewhere" / "setup.py"),
    )

    assert detected.rust.name == "explicit"
    assert detected.python.name == "explicit-py"


def test_missing_override_falls_back_to_search(make_tree, capsys):
    root = make_tree({"Cargo.toml": '[package]\nname = "discovered"\n'})
    detected = detect_project_metadata([str(root)], cargo_toml=str(root / "nope.toml"))

    assert detected.rust.name == "discovered"
    assert "Warning: Manifest not found" in capsys.readouterr().err


def test_inaccessible_input_does_not_stop_detection(make_tree, monkeypatch):
    root = make_tree({"locked/a.py": "a\n", "ok/Cargo.toml": CARGO_TOML})
    original = pathlib.Path.stat

    def fake_stat(self, *args, **kwargs):
        if self.parent.name == "locked":
            raise PermissionError(13, "Permission denied", str(self))
        return original(self, *args, **kwargs)

    monkeypatch.setattr(pathlib.Path, "stat", fake_stat)
    detected = detect_project_metadata([str(root / "locked" / "a.py"), str(root / "ok")])

    assert detected.rust.name == "demo"
