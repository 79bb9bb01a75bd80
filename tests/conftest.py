"""Shared fixtures for building filesystem snapshots."""

import pathlib

import pytest


def write_tree(root: pathlib.Path, files: dict[str, str | bytes]) -> pathlib.Path:
    """Create files under root; bytes are written raw, str as UTF-8."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make(files: dict[str, str | bytes], subdir: str = "project") -> pathlib.Path:
        root = tmp_path / subdir
        root.mkdir(parents=True, exist_ok=True)
        return write_tree(root, files)

    return _make


CARGO_TOML = """\
[package]
name = "demo"
version = "0.1.0"
description = "A demo crate"

[dependencies]
serde = "1.0"
tokio = { version = "1", features = ["full"] }
local-utils = { path = "../utils" }
"""


@pytest.fixture
def rust_project(make_tree):
    """A crate with three dependencies and decoy build output in target/."""
    return make_tree(
        {
            "Cargo.toml": CARGO_TOML,
            "src/main.rs": 'fn main() {\n    println!("hello");\n}\n',
            "src/lib.rs": "pub mod util;\n",
            "target/debug/build.rs": "// decoy\n",
            "target/release/notes.txt": "decoy\n",
        }
    )
