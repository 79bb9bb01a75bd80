"""Project manifest discovery and parsing."""

import ast
import pathlib
import re
import stat
import sys
from collections.abc import Callable, Sequence

try:
    import tomllib
except ImportError:  # Python < 3.11
    import tomli as tomllib

from codecopier.constants import CARGO_MANIFEST, PYTHON_MANIFESTS
from codecopier.errors import ManifestError
from codecopier.models import (
    DetectedMetadata,
    Dependency,
    ProjectMetadata,
    PythonProject,
    RustManifest,
)

# Distribution name, optionally followed by extras, per PEP 508.
_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*(?:\s*\[[^\]]*\])?)\s*(.*)$")


def _read_text(path: pathlib.Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Could not read {path}: {e}") from e


def _load_toml(path: pathlib.Path) -> dict:
    try:
        return tomllib.loads(_read_text(path))
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e


def _string(table: object, key: str) -> str | None:
    """Return ``table[key]`` if it is a string; workspace-inherited tables are skipped."""
    if isinstance(table, dict):
        value = table.get(key)
        if isinstance(value, str):
            return value
    return None


def _table(table: object, *keys: str) -> dict:
    for key in keys:
        if not isinstance(table, dict):
            return {}
        table = table.get(key)
    return table if isinstance(table, dict) else {}


def split_requirement(requirement: str) -> Dependency:
    """Split a PEP 508 requirement string into name and spec.

    Examples:
        >>> split_requirement("requests>=2.31")
        ('requests', '>=2.31')
        >>> split_requirement("click")
        ('click', None)
    """
    match = _REQUIREMENT_NAME.match(requirement)
    if not match:
        return requirement.strip(), None
    name, spec = match.group(1), match.group(2).strip()
    return name, spec or None


def _table_dependencies(deps: dict, skip: Sequence[str] = ()) -> list[Dependency]:
    """Dependencies declared as a TOML table (Cargo and Poetry style)."""
    result = []
    for name, value in deps.items():
        if name in skip:
            continue
        if isinstance(value, str):
            result.append((name, value))
        else:
            result.append((name, _string(value, "version")))
    return result


def _list_dependencies(deps: object) -> list[Dependency]:
    """Dependencies declared as a list of PEP 508 strings."""
    if not isinstance(deps, list):
        return []
    return [split_requirement(dep) for dep in deps if isinstance(dep, str)]


def parse_cargo_toml(path: pathlib.Path) -> RustManifest:
    """Parse a Cargo manifest.

    Args:
        path: Path to Cargo.toml

    Returns:
        RustManifest with package identity and dependency tables

    Raises:
        ManifestError: If the file cannot be read or is not valid TOML
    """
    data = _load_toml(path)
    package = _table(data, "package")
    return RustManifest(
        source=path,
        name=_string(package, "name"),
        version=_string(package, "version"),
        description=_string(package, "description"),
        dependencies=_table_dependencies(_table(data, "dependencies")),
        dev_dependencies=_table_dependencies(_table(data, "dev-dependencies")),
        build_dependencies=_table_dependencies(_table(data, "build-dependencies")),
    )


def parse_pyproject(path: pathlib.Path) -> PythonProject:
    """Parse pyproject.toml in Poetry, PEP 621 or Flit layout.

    Layouts are tried in that order. A valid file matching none of them still
    yields a project so the caller knows a Python manifest exists.

    Raises:
        ManifestError: If the file cannot be read or is not valid TOML
    """
    data = _load_toml(path)

    poetry = _table(data, "tool", "poetry")
    if poetry:
        dev_deps = _table_dependencies(_table(poetry, "dev-dependencies"))
        for group in _table(poetry, "group").values():
            dev_deps.extend(_table_dependencies(_table(group, "dependencies")))
        return PythonProject(
            source=path,
            flavor="Poetry",
            name=_string(poetry, "name"),
            version=_string(poetry, "version"),
            description=_string(poetry, "description"),
            dependencies=_table_dependencies(_table(poetry, "dependencies"), skip=("python",)),
            dev_dependencies=dev_deps,
        )

    project = _table(data, "project")
    if project:
        return PythonProject(
            source=path,
            flavor="PEP 621",
            name=_string(project, "name"),
            version=_string(project, "version"),
            description=_string(project, "description"),
            dependencies=_list_dependencies(project.get("dependencies")),
            optional_dependencies={
                group: _list_dependencies(deps)
                for group, deps in _table(project, "optional-dependencies").items()
            },
        )

    flit = _table(data, "tool", "flit", "metadata")
    if flit:
        return PythonProject(
            source=path,
            flavor="Flit",
            name=_string(flit, "module"),
            description=_string(flit, "description"),
            dependencies=_list_dependencies(flit.get("requires")),
            optional_dependencies={
                group: _list_dependencies(deps)
                for group, deps in _table(flit, "requires-extra").items()
            },
        )

    return PythonProject(source=path, flavor="pyproject.toml (unrecognized layout)")


def _find_setup_call(tree: ast.AST) -> ast.Call | None:
    for node in ast.walk(tree):
        if isinstance(node, ast.Call):
            func = node.func
            name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", None)
            if name == "setup":
                return node
    return None


def parse_setup_py(path: pathlib.Path) -> PythonProject:
    """Extract literal ``setup()`` keywords from a setup.py without running it.

    Keywords whose value is not a literal (variables, function calls) are
    left out.

    Raises:
        ManifestError: If the file cannot be read or is not valid Python
    """
    source = _read_text(path)
    try:
        tree = ast.parse(source, filename=str(path))
    except (SyntaxError, ValueError) as e:
        raise ManifestError(f"Invalid Python in {path}: {e}") from e

    keywords: dict[str, object] = {}
    call = _find_setup_call(tree)
    if call is not None:
        for keyword in call.keywords:
            if keyword.arg is None:
                continue
            try:
                keywords[keyword.arg] = ast.literal_eval(keyword.value)
            except (ValueError, TypeError, SyntaxError):
                continue

    extras = keywords.get("extras_require")
    optional = {}
    if isinstance(extras, dict):
        optional = {str(group): _list_dependencies(deps) for group, deps in extras.items()}

    return PythonProject(
        source=path,
        flavor="setup.py",
        name=_string(keywords, "name"),
        version=_string(keywords, "version"),
        description=_string(keywords, "description"),
        dependencies=_list_dependencies(keywords.get("install_requires")),
        optional_dependencies=optional,
    )


def parse_requirements(path: pathlib.Path) -> PythonProject:
    """Parse a plain requirements file.

    Blank lines, comments and pip options (lines starting with ``-``) are
    skipped; trailing `` #`` comments are stripped.
    """
    dependencies = []
    for line in _read_text(path).splitlines():
        line = line.split(" #", 1)[0].strip()
        if not line or line.startswith(("#", "-")):
            continue
        dependencies.append(split_requirement(line))
    return PythonProject(source=path, flavor="requirements.txt", dependencies=dependencies)


PYTHON_PARSERS: dict[str, Callable[[pathlib.Path], PythonProject]] = {
    "pyproject.toml": parse_pyproject,
    "setup.py": parse_setup_py,
    "requirements.txt": parse_requirements,
}

# Candidate manifests per kind, in priority order.
MANIFEST_CANDIDATES: dict[str, tuple[tuple[str, Callable[[pathlib.Path], ProjectMetadata]], ...]] = {
    "rust": ((CARGO_MANIFEST, parse_cargo_toml),),
    "python": tuple((name, PYTHON_PARSERS[name]) for name in PYTHON_MANIFESTS),
}


def _is_file(path: pathlib.Path) -> bool:
    # Path.is_file re-raises EACCES before Python 3.14
    try:
        return path.is_file()
    except OSError:
        return False


def _parse_override(
    path: str | None, parser: Callable[[pathlib.Path], ProjectMetadata]
) -> ProjectMetadata | None:
    if path is None:
        return None
    manifest = pathlib.Path(path).expanduser()
    if not _is_file(manifest):
        print(f"Warning: Manifest not found: {path}", file=sys.stderr)
        return None
    try:
        return parser(manifest.resolve())
    except ManifestError as e:
        print(f"Warning: {e}", file=sys.stderr)
        return None


def _search_directory(directory: pathlib.Path, kind: str) -> tuple[bool, ProjectMetadata | None]:
    """Look for a manifest of one kind in a single directory.

    Returns:
        (settled, metadata). ``settled`` is True once any candidate exists;
        metadata is None when every present candidate was corrupt.
    """
    settled = False
    for filename, parser in MANIFEST_CANDIDATES[kind]:
        manifest = directory / filename
        if not _is_file(manifest):
            continue
        settled = True
        try:
            return True, parser(manifest)
        except ManifestError as e:
            print(f"Warning: {e}", file=sys.stderr)
    return settled, None


def _start_directory(raw: str) -> pathlib.Path | None:
    path = pathlib.Path(raw).expanduser().resolve()
    try:
        st = path.stat()
    except OSError:
        return None
    if stat.S_ISDIR(st.st_mode):
        return path
    return path.parent


def detect_project_metadata(
    paths: Sequence[str],
    cargo_toml: str | None = None,
    pyproject: str | None = None,
) -> DetectedMetadata:
    """Find the nearest manifest of every supported kind.

    Explicit manifest paths win over discovery; a missing or corrupt override
    falls back to the upward search. For each input, in order, the search
    climbs from the input's directory toward the filesystem root. The first
    manifest found settles its kind. The climb stops once every kind is
    settled or when it reaches a directory an earlier input already searched.

    Args:
        paths: Input paths, in caller order
        cargo_toml: Explicit Cargo.toml path
        pyproject: Explicit Python project file (pyproject.toml, setup.py or
            requirements.txt, chosen by file name)

    Returns:
        DetectedMetadata with at most one manifest per kind
    """
    found: dict[str, ProjectMetadata | None] = {}

    rust = _parse_override(cargo_toml, parse_cargo_toml)
    if rust is not None:
        found["rust"] = rust
    if pyproject is not None:
        parser = PYTHON_PARSERS.get(pathlib.Path(pyproject).name, parse_pyproject)
        python = _parse_override(pyproject, parser)
        if python is not None:
            found["python"] = python

    searched: set[pathlib.Path] = set()
    for raw in paths:
        if len(found) == len(MANIFEST_CANDIDATES):
            break
        directory = _start_directory(raw)
        while directory is not None and directory not in searched:
            searched.add(directory)
            for kind in MANIFEST_CANDIDATES:
                if kind in found:
                    continue
                settled, metadata = _search_directory(directory, kind)
                if settled:
                    found[kind] = metadata
            if len(found) == len(MANIFEST_CANDIDATES):
                break
            parent = directory.parent
            directory = parent if parent != directory else None

    return DetectedMetadata(rust=found.get("rust"), python=found.get("python"))
