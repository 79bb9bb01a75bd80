"""Document generation, run summary and output destinations."""

import pathlib
import sys
from collections.abc import Sequence

import pyperclip

from codecopier.errors import OutputError
from codecopier.exclusion import ExclusionPolicy
from codecopier.file_operations import collect_files
from codecopier.manifests import detect_project_metadata
from codecopier.models import (
    DetectedMetadata,
    Dependency,
    FileEntry,
    ProjectMetadata,
    PythonProject,
    RunSummary,
)
from codecopier.tree import build_tree, render_tree

CLIPBOARD = "clipboard"
STDOUT = "stdout"

# Closing tags that would end a block early if they appeared verbatim in content.
_CONTENT_ESCAPES = (("</file>", "<\\/file>"), ("</project>", "<\\/project>"))


def escape_content(text: str) -> str:
    """Escape closing tags so file content cannot terminate its block."""
    for raw, escaped in _CONTENT_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;")


def format_dependency(dep: Dependency, indent: str = "") -> str:
    name, version = dep
    if version:
        return f'{indent}- {name} = "{version}"\n'
    return f"{indent}- {name}\n"


def _dependency_section(title: str, deps: list[Dependency]) -> str:
    if not deps:
        return ""
    return f"\n{title}:\n" + "".join(format_dependency(dep) for dep in deps)


def generate_metadata_block(meta: ProjectMetadata) -> str:
    """Render one project manifest as a tagged, human-readable block.

    Args:
        meta: Rust or Python project metadata

    Returns:
        Block such as ``<cargo_info>...</cargo_info>`` with a trailing blank line
    """
    info = ""
    if isinstance(meta, PythonProject):
        info += f"Project Type: Python ({meta.flavor})\n"
    if meta.name:
        info += f"Project Name: {meta.name}\n"
    if meta.version:
        info += f"Version: {meta.version}\n"
    if meta.description:
        info += f"Description: {meta.description}\n"

    info += _dependency_section("Dependencies", meta.dependencies)
    info += _dependency_section("Dev Dependencies", meta.dev_dependencies)

    if isinstance(meta, PythonProject):
        groups = {group: deps for group, deps in meta.optional_dependencies.items() if deps}
        if groups:
            info += "\nOptional Dependencies:\n"
            for group, deps in groups.items():
                info += f"Group '{group}':\n"
                info += "".join(format_dependency(dep, indent="  ") for dep in deps)
    else:
        info += _dependency_section("Build Dependencies", meta.build_dependencies)

    return f"<{meta.tag}>\n{info}</{meta.tag}>\n\n"


def generate_file_block(entry: FileEntry) -> str:
    return (
        f'<file path="{escape_attribute(entry.relative_path)}">\n'
        f"{escape_content(entry.content)}\n"
        "</file>\n\n"
    )


def create_document(entries: Sequence[FileEntry], metadata: DetectedMetadata) -> str:
    """Assemble the full document.

    Order is fixed: one block per detected manifest, the file structure, then
    one block per file, all inside a ``<project>`` tag.

    Args:
        entries: Included files, already sorted
        metadata: Detected project manifests

    Returns:
        The document text
    """
    parts = ["<project>\n"]
    parts.extend(generate_metadata_block(meta) for meta in metadata.blocks())

    tree = render_tree(build_tree(entry.relative_path for entry in entries))
    parts.append("<file_structure>\n")
    if tree:
        parts.append(tree + "\n")
    parts.append("</file_structure>\n\n")

    parts.extend(generate_file_block(entry) for entry in entries)
    parts.append("</project>")
    return "".join(parts)


def summarize(
    document: str, entries: Sequence[FileEntry], metadata: DetectedMetadata
) -> RunSummary:
    return RunSummary(
        files_processed=len(entries),
        total_characters=len(document),
        project_type=metadata.project_type,
    )


def format_summary(summary: RunSummary) -> str:
    """Summary lines parsed by callers such as the editor extension."""
    return (
        f"Files processed: {summary.files_processed}\n"
        f"Total size: {summary.total_characters} characters\n"
        f"Project type: {summary.project_type}"
    )


def write_output(document: str, destination: str) -> str:
    """Send the document to the clipboard, stdout or a file.

    Args:
        document: Assembled document
        destination: ``CLIPBOARD``, ``STDOUT`` or a file path

    Returns:
        Status line describing where the document went

    Raises:
        OutputError: If the destination cannot be written
    """
    if destination == CLIPBOARD:
        try:
            pyperclip.copy(document)
        except pyperclip.PyperclipException as e:
            raise OutputError(
                f"Clipboard error: {e}. Use --stdout or --output instead."
            ) from e
        return "Files successfully copied to clipboard!"

    if destination == STDOUT:
        sys.stdout.write(document)
        sys.stdout.flush()
        return "Files successfully written to stdout!"

    output_path = pathlib.Path(destination).resolve()
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="") as out_file:
            out_file.write(document)
    except OSError as e:
        raise OutputError(f"Could not write to {output_path}: {e}") from e
    return f"Files successfully written to {output_path}!"


def create_context(
    paths: Sequence[str],
    destination: str = CLIPBOARD,
    cargo_toml: str | None = None,
    pyproject: str | None = None,
    policy: ExclusionPolicy | None = None,
    workers: int | None = None,
    progress: bool | None = None,
    verbose: bool = False,
) -> RunSummary:
    """Collect, detect, render and emit the document for the given paths.

    The document is written only once it is fully assembled. The status line
    and summary go to stdout, or to stderr when the document itself is
    written to stdout.

    Args:
        paths: Files or directories to include
        destination: ``CLIPBOARD``, ``STDOUT`` or an output file path
        cargo_toml: Explicit Cargo.toml path
        pyproject: Explicit Python project file path
        policy: Exclusion policy, defaults to the built-in rules
        workers: Maximum number of reader threads
        progress: Show a progress bar (None lets tqdm decide)
        verbose: Print detailed processing information on stderr

    Returns:
        RunSummary for the run

    Raises:
        NoInputsError: If none of the paths can be resolved
        OutputError: If the document cannot be written
    """
    if verbose:
        print(f"Processing {len(paths)} path(s)...", file=sys.stderr)

    result = collect_files(paths, policy, workers=workers, progress=progress, verbose=verbose)
    if verbose:
        stats = result.stats
        print(f"Common root: {result.root}", file=sys.stderr)
        print(
            f"Scanned {stats.scanned} files, kept {len(result.entries)}",
            file=sys.stderr,
        )
        for reason, count in sorted(stats.excluded.items()):
            print(f"  {reason.value}: {count}", file=sys.stderr)

    if not result.entries:
        print("Warning: No files matched after applying exclusions.", file=sys.stderr)

    metadata = detect_project_metadata(paths, cargo_toml=cargo_toml, pyproject=pyproject)
    if verbose:
        for meta in metadata.blocks():
            print(f"Using {meta.kind} manifest: {meta.source}", file=sys.stderr)

    document = create_document(result.entries, metadata)
    summary = summarize(document, result.entries, metadata)

    status = write_output(document, destination)
    channel = sys.stderr if destination == STDOUT else sys.stdout
    print(status, file=channel)
    print(format_summary(summary), file=channel)
    return summary
