"""File system traversal and file collection."""

import os
import pathlib
import stat
import sys
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from codecopier.constants import MAX_WORKERS
from codecopier.errors import NoInputsError
from codecopier.exclusion import ExclusionPolicy
from codecopier.models import (
    CollectionResult,
    CollectionStats,
    ExclusionReason,
    FileEntry,
    ResolvedInput,
)


def default_workers() -> int:
    """Worker count for content reads: available parallelism, capped."""
    return min(MAX_WORKERS, (os.cpu_count() or 1) + 4)


def resolve_inputs(paths: Sequence[str], stats: CollectionStats) -> list[ResolvedInput]:
    """Turn caller-supplied paths into absolute inputs, dropping missing ones.

    Symlinks are kept as given so relative paths read the way the caller
    typed them; only ``..`` and ``.`` segments are normalized.

    Args:
        paths: Paths as supplied by the caller
        stats: Collection counters; missing paths are recorded here

    Returns:
        Resolved inputs in caller order
    """
    resolved = []
    for raw in paths:
        path = pathlib.Path(os.path.abspath(os.path.expanduser(raw)))
        try:
            st = path.stat()
        except FileNotFoundError:
            print(f"Warning: Path not found: {raw}", file=sys.stderr)
            stats.missing_inputs.append(raw)
            continue
        except OSError as e:
            print(f"Warning: Could not access {raw}: {e}", file=sys.stderr)
            stats.missing_inputs.append(raw)
            continue
        if stat.S_ISDIR(st.st_mode):
            resolved.append(ResolvedInput(path=path, base=path, is_dir=True))
        else:
            resolved.append(ResolvedInput(path=path, base=path.parent, is_dir=False))
    return resolved


def common_root(inputs: Sequence[ResolvedInput]) -> pathlib.Path:
    """Deepest directory containing every input's base directory.

    Args:
        inputs: Resolved inputs (at least one)

    Returns:
        Common ancestor directory; the first base if the inputs share none
    """
    try:
        return pathlib.Path(os.path.commonpath([str(i.base) for i in inputs]))
    except ValueError:
        # Different drives on Windows
        return inputs[0].base


def relative_posix(path: pathlib.Path, root: pathlib.Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _skip(stats: CollectionStats, reason: ExclusionReason, path: pathlib.Path, verbose: bool):
    stats.excluded[reason] += 1
    if verbose:
        print(f"  - {path} ({reason.value})", file=sys.stderr)


def walk_directory(
    inp: ResolvedInput,
    policy: ExclusionPolicy,
    stats: CollectionStats,
    seen: set[str],
    verbose: bool = False,
) -> list[pathlib.Path] | None:
    """Depth-first walk of a directory input, yielding candidate files.

    Excluded directories are pruned before descent. Directories whose real
    path was already visited are pruned too, which breaks symlink cycles.
    Files are checked by name, type and size only; content is read later.

    Args:
        inp: Directory input to walk
        policy: Exclusion policy for the run
        stats: Collection counters
        seen: Real paths of candidates already accepted in this run
        verbose: Report every skipped path on stderr

    Returns:
        Candidate file paths in walk order, or None if the directory itself
        could not be listed
    """
    ignore_spec = policy.load_ignore_spec(inp.path)
    visited: set[str] = set()
    candidates: list[pathlib.Path] = []
    root_failed = False

    def on_error(err: OSError):
        nonlocal root_failed
        if err.filename is not None and os.path.abspath(err.filename) == str(inp.path):
            root_failed = True
        else:
            print(f"Warning: Could not read directory {err.filename}: {err}", file=sys.stderr)

    for dirpath, dirnames, filenames in os.walk(
        inp.path, topdown=True, onerror=on_error, followlinks=True
    ):
        current = pathlib.Path(dirpath)
        real = os.path.realpath(dirpath)
        if real in visited:
            dirnames[:] = []
            continue
        visited.add(real)

        # Prune excluded directories
        kept = []
        for d in sorted(dirnames):
            dir_path = current / d
            reason = policy.check_dir(d) or policy.check_ignored(
                ignore_spec, relative_posix(dir_path, inp.path), is_dir=True
            )
            if reason:
                _skip(stats, reason, dir_path, verbose)
                continue
            if os.path.realpath(dir_path) in visited:
                continue
            kept.append(d)
        dirnames[:] = kept

        for filename in sorted(filenames):
            file_path = current / filename
            stats.scanned += 1

            reason = policy.check_ignored(ignore_spec, relative_posix(file_path, inp.path))
            if reason:
                _skip(stats, reason, file_path, verbose)
                continue

            try:
                st = file_path.stat()
            except OSError as e:
                print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
                stats.read_errors += 1
                continue

            reason = policy.check_stat(filename, st)
            if reason:
                _skip(stats, reason, file_path, verbose)
                continue

            real_file = os.path.realpath(file_path)
            if real_file in seen:
                continue
            seen.add(real_file)
            candidates.append(file_path)

    if root_failed:
        print(f"Warning: Could not read directory {inp.path}", file=sys.stderr)
        return None
    return candidates


def read_file_entry(
    file_path: pathlib.Path, root: pathlib.Path, policy: ExclusionPolicy
) -> FileEntry | None:
    """Read a single candidate file.

    Args:
        file_path: Absolute path of the candidate
        root: Common root used for the relative path
        policy: Exclusion policy providing binary detection and encoding

    Returns:
        FileEntry for text files, None if the content is binary

    Raises:
        OSError: If the file cannot be read
    """
    data = file_path.read_bytes()
    text = policy.decode_text(data)
    if text is None:
        return None
    return FileEntry(
        relative_path=relative_posix(file_path, root),
        path=file_path,
        content=text,
        size=len(data),
    )


def collect_files(
    paths: Sequence[str],
    policy: ExclusionPolicy | None = None,
    workers: int | None = None,
    progress: bool | None = None,
    verbose: bool = False,
) -> CollectionResult:
    """Collect every included file under the given paths.

    Traversal is single-threaded; content reads are spread over a bounded
    thread pool and the results are re-sorted by relative path.

    Args:
        paths: Files or directories supplied by the caller
        policy: Exclusion policy, defaults to the built-in rules
        workers: Maximum number of reader threads
        progress: Show a progress bar (None lets tqdm decide from the terminal)
        verbose: Report every skipped path on stderr

    Returns:
        CollectionResult with entries sorted by relative path

    Raises:
        NoInputsError: If none of the paths can be resolved
    """
    policy = policy or ExclusionPolicy()
    stats = CollectionStats()

    inputs = resolve_inputs(paths, stats)
    if not inputs:
        raise NoInputsError("No files found: none of the given paths exist")

    root = common_root(inputs)
    seen: set[str] = set()
    candidates: list[pathlib.Path] = []
    usable = 0

    for inp in inputs:
        if inp.is_dir:
            found = walk_directory(inp, policy, stats, seen, verbose)
            if found is None:
                continue
            usable += 1
            candidates.extend(found)
            continue

        usable += 1
        stats.scanned += 1
        try:
            st = inp.path.stat()
        except OSError as e:
            print(f"Warning: Could not read {inp.path}: {e}", file=sys.stderr)
            stats.read_errors += 1
            continue
        reason = policy.check_stat(inp.path.name, st)
        if reason:
            _skip(stats, reason, inp.path, verbose)
            continue
        real_file = os.path.realpath(inp.path)
        if real_file not in seen:
            seen.add(real_file)
            candidates.append(inp.path)

    if not usable:
        raise NoInputsError("No files found: none of the given paths could be read")

    entries: list[FileEntry] = []
    with ThreadPoolExecutor(max_workers=workers or default_workers()) as executor:
        futures = {
            executor.submit(read_file_entry, file_path, root, policy): file_path
            for file_path in candidates
        }
        disable = None if progress is None else not progress
        with tqdm(total=len(futures), desc="Reading", unit="file", disable=disable) as pbar:
            for future in as_completed(futures):
                file_path = futures[future]
                try:
                    entry = future.result()
                except OSError as e:
                    print(f"Warning: Could not read {file_path}: {e}", file=sys.stderr)
                    stats.read_errors += 1
                else:
                    if entry is None:
                        _skip(stats, ExclusionReason.BINARY, file_path, verbose)
                    else:
                        entries.append(entry)
                pbar.update(1)

    entries.sort(key=lambda e: e.relative_path)
    return CollectionResult(entries=entries, inputs=inputs, root=root, stats=stats)
