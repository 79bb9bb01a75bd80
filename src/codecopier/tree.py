"""ASCII rendering of the included files as a directory tree."""

from collections.abc import Iterable

from codecopier.models import TreeNode


def _sort_key(node: TreeNode) -> tuple[bool, str]:
    # Directories before files, then by name
    return (not node.is_dir, node.name)


def build_tree(relative_paths: Iterable[str]) -> TreeNode:
    """Build a tree from POSIX paths relative to a common root.

    Nodes are kept in an index keyed by their path prefix, so every ancestor
    directory is created exactly once and the hierarchy is complete.

    Args:
        relative_paths: File paths such as ``"src/main.rs"``

    Returns:
        Root directory node with sorted children
    """
    root = TreeNode(name="", is_dir=True)
    index: dict[tuple[str, ...], TreeNode] = {(): root}

    for rel in relative_paths:
        parts = tuple(part for part in rel.split("/") if part)
        for depth in range(1, len(parts) + 1):
            key = parts[:depth]
            if key in index:
                continue
            node = TreeNode(name=parts[depth - 1], is_dir=depth < len(parts))
            index[key] = node
            index[parts[: depth - 1]].children.append(node)

    for node in index.values():
        node.children.sort(key=_sort_key)
    return root


def render_tree(root: TreeNode) -> str:
    """Render a tree à la the Unix ``tree`` utility.

    The root itself is not printed. Directories get a trailing ``/``.

    Examples:
        >>> print(render_tree(build_tree(["src/main.rs", "Cargo.toml"])))
        ├── src/
        │   └── main.rs
        └── Cargo.toml
    """
    lines: list[str] = []

    def _walk(node: TreeNode, prefix: str) -> None:
        for idx, child in enumerate(node.children):
            last = idx == len(node.children) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{child.name}{'/' if child.is_dir else ''}")
            if child.is_dir:
                _walk(child, prefix + ("    " if last else "│   "))

    _walk(root, "")
    return "\n".join(lines)
