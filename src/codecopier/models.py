"""Data models for codecopier."""

import pathlib
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

# (name, version or requirement spec); the version is None when the manifest
# only names the package.
Dependency = tuple[str, str | None]


class ExclusionReason(str, Enum):
    """Why a path was left out of the document."""

    EXCLUDED_DIR = "excluded-dir"
    EXCLUDED_EXT = "excluded-ext"
    TOO_LARGE = "too-large"
    BINARY = "binary"
    SPECIAL_FILE = "special-file"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ResolvedInput:
    """A caller-supplied path after resolution.

    Attributes:
        path: Absolute path of the file or directory
        base: The directory itself, or the parent directory of a file
        is_dir: Whether the input is a directory
    """

    path: pathlib.Path
    base: pathlib.Path
    is_dir: bool


@dataclass(frozen=True)
class FileEntry:
    """A file included in the document.

    Attributes:
        relative_path: POSIX path relative to the common root
        path: Absolute path to the file
        content: Decoded text content
        size: File size in bytes
    """

    relative_path: str
    path: pathlib.Path
    content: str
    size: int


@dataclass
class CollectionStats:
    """Counters gathered while collecting files."""

    scanned: int = 0
    excluded: Counter = field(default_factory=Counter)
    read_errors: int = 0
    missing_inputs: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionResult:
    """Output of the file collector."""

    entries: list[FileEntry]
    inputs: list[ResolvedInput]
    root: pathlib.Path
    stats: CollectionStats


@dataclass(frozen=True)
class RustManifest:
    """Metadata extracted from a Cargo manifest."""

    source: pathlib.Path
    name: str | None = None
    version: str | None = None
    description: str | None = None
    dependencies: list[Dependency] = field(default_factory=list)
    dev_dependencies: list[Dependency] = field(default_factory=list)
    build_dependencies: list[Dependency] = field(default_factory=list)

    kind = "Rust"
    tag = "cargo_info"


@dataclass(frozen=True)
class PythonProject:
    """Metadata extracted from pyproject.toml, setup.py or requirements.txt.

    Attributes:
        source: Manifest the metadata was read from
        flavor: Manifest layout, e.g. "Poetry", "PEP 621" or "setup.py"
        optional_dependencies: Extras, keyed by group name
    """

    source: pathlib.Path
    flavor: str
    name: str | None = None
    version: str | None = None
    description: str | None = None
    dependencies: list[Dependency] = field(default_factory=list)
    dev_dependencies: list[Dependency] = field(default_factory=list)
    optional_dependencies: dict[str, list[Dependency]] = field(default_factory=dict)

    kind = "Python"
    tag = "python_info"


ProjectMetadata = RustManifest | PythonProject


@dataclass(frozen=True)
class DetectedMetadata:
    """At most one manifest per supported project kind."""

    rust: RustManifest | None = None
    python: PythonProject | None = None

    def blocks(self) -> list[ProjectMetadata]:
        """Detected manifests in document order (Rust, then Python)."""
        return [meta for meta in (self.rust, self.python) if meta is not None]

    @property
    def project_type(self) -> str:
        detected = self.blocks()
        if not detected:
            return "Unknown"
        if len(detected) > 1:
            return "Mixed"
        return detected[0].kind


@dataclass
class TreeNode:
    """A node of the rendered file tree."""

    name: str
    is_dir: bool
    children: list["TreeNode"] = field(default_factory=list)


@dataclass(frozen=True)
class RunSummary:
    """Counters reported back to the caller after a run."""

    files_processed: int
    total_characters: int
    project_type: str
