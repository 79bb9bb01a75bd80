"""Exclusion rules: directory names, extensions, size ceiling and binary sniffing."""

import os
import pathlib
import stat
import sys
from dataclasses import dataclass, field

import pathspec

from codecopier.constants import (
    BINARY_SNIFF_BYTES,
    DEFAULT_ENCODING,
    EXCLUDED_DIRS,
    EXCLUDED_EXTENSIONS,
    MAX_FILE_SIZE_BYTES,
)
from codecopier.models import ExclusionReason


def _dir_spec(names: frozenset[str]) -> pathspec.GitIgnoreSpec:
    # Trailing slash restricts each pattern to directories.
    return pathspec.GitIgnoreSpec.from_lines([f"{name}/" for name in sorted(names)])


@dataclass(frozen=True)
class ExclusionPolicy:
    """Decides which paths make it into the document.

    Every ``check_*`` method returns ``None`` when the path is included and
    an :class:`ExclusionReason` otherwise.

    Attributes:
        excluded_dirs: Directory names (glob syntax allowed) never descended into
        excluded_extensions: Lower-case file suffixes, including the dot
        max_file_size_bytes: Files strictly larger than this are skipped
        binary_sniff_bytes: Leading bytes scanned for NUL bytes
        encoding: Encoding used to decode file contents
        extra_patterns: Additional gitignore-style patterns
        honor_gitignore: Also apply the ``.gitignore`` found at each input root
    """

    excluded_dirs: frozenset[str] = EXCLUDED_DIRS
    excluded_extensions: frozenset[str] = EXCLUDED_EXTENSIONS
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES
    binary_sniff_bytes: int = BINARY_SNIFF_BYTES
    encoding: str = DEFAULT_ENCODING
    extra_patterns: tuple[str, ...] = ()
    honor_gitignore: bool = False
    _dirs: pathspec.GitIgnoreSpec = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_dirs", _dir_spec(self.excluded_dirs))

    def check_dir(self, name: str) -> ExclusionReason | None:
        if self._dirs.match_file(f"{name}/"):
            return ExclusionReason.EXCLUDED_DIR
        return None

    def check_file(self, name: str, size: int) -> ExclusionReason | None:
        """Check a file by name and size, before any content is read.

        Args:
            name: File name (no directory part)
            size: File size in bytes

        Returns:
            The exclusion reason, or None if the file passes
        """
        if pathlib.PurePath(name).suffix.lower() in self.excluded_extensions:
            return ExclusionReason.EXCLUDED_EXT
        if size > self.max_file_size_bytes:
            return ExclusionReason.TOO_LARGE
        return None

    def check_stat(self, name: str, st: os.stat_result) -> ExclusionReason | None:
        """Like :meth:`check_file`, but also rejects anything that is not a regular file.

        FIFOs, sockets and device files would block or never end when read.
        """
        if not stat.S_ISREG(st.st_mode):
            return ExclusionReason.SPECIAL_FILE
        return self.check_file(name, st.st_size)

    def decode_text(self, data: bytes) -> str | None:
        """Decode file content, or return None if it looks binary.

        Content is binary when a NUL byte appears within the first
        ``binary_sniff_bytes`` bytes or when it does not decode under
        ``encoding``.
        """
        if b"\0" in data[: self.binary_sniff_bytes]:
            return None
        try:
            return data.decode(self.encoding)
        except (UnicodeDecodeError, LookupError):
            return None

    def load_ignore_spec(self, root: pathlib.Path) -> pathspec.PathSpec | None:
        """Combine extra patterns with the root ``.gitignore`` of an input.

        Args:
            root: Directory input being walked

        Returns:
            PathSpec matching paths relative to root, or None if there are no patterns
        """
        patterns = list(self.extra_patterns)
        gitignore_path = root / ".gitignore"
        if self.honor_gitignore:
            try:
                if gitignore_path.is_file():
                    with open(gitignore_path, encoding="utf-8", errors="ignore") as f:
                        patterns.extend(f.readlines())
            except OSError as e:
                print(
                    f"Warning: Could not read .gitignore at {gitignore_path}: {e}",
                    file=sys.stderr,
                )
        if not patterns:
            return None
        return pathspec.GitIgnoreSpec.from_lines(patterns)

    @staticmethod
    def check_ignored(
        spec: pathspec.PathSpec | None, relative: str, is_dir: bool = False
    ) -> ExclusionReason | None:
        if spec is None:
            return None
        # Add trailing slash to match directory patterns like "docs/"
        if spec.match_file(relative + "/" if is_dir else relative):
            return ExclusionReason.IGNORED
        return None
