from codecopier.tree import build_tree, render_tree


def render(paths):
    return render_tree(build_tree(paths))


def test_single_file_is_one_leaf():
    assert render(["main.py"]) == "└── main.py"


def test_empty_input_renders_nothing():
    assert render([]) == ""


def test_directories_come_before_files():
    assert render(["zebra.txt", "alpha/one.py", "Cargo.toml", "src/main.rs"]) == (
        "├── alpha/\n"
        "│   └── one.py\n"
        "├── src/\n"
        "│   └── main.rs\n"
        "├── Cargo.toml\n"
        "└── zebra.txt"
    )


def test_nested_connectors():
    assert render(["src/a/b.py", "src/a/c.py", "src/d.py", "setup.py"]) == (
        "├── src/\n"
        "│   ├── a/\n"
        "│   │   ├── b.py\n"
        "│   │   └── c.py\n"
        "│   └── d.py\n"
        "└── setup.py"
    )


def test_last_directory_uses_blank_continuation():
    assert render(["a.txt", "pkg/mod.py"]) == ("├── pkg/\n│   └── mod.py\n└── a.txt")
    assert render(["pkg/sub/mod.py"]) == ("└── pkg/\n    └── sub/\n        └── mod.py")


def test_rendering_ignores_input_order():
    paths = ["b/x.py", "a.py", "b/a.py", "c/d/e.py"]
    assert render(paths) == render(list(reversed(paths)))


def test_ancestors_are_shared():
    root = build_tree(["pkg/a.py", "pkg/b.py"])

    assert len(root.children) == 1
    pkg = root.children[0]
    assert pkg.is_dir
    assert [child.name for child in pkg.children] == ["a.py", "b.py"]
