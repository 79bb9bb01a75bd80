"""Command-line interface for codecopier."""

import argparse
import sys

from codecopier.constants import MAX_FILE_SIZE_BYTES
from codecopier.errors import CodeCopierError
from codecopier.exclusion import ExclusionPolicy
from codecopier.output_generators import CLIPBOARD, STDOUT, create_context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codecopier",
        description=(
            "Copy files and directories to the clipboard as a single "
            "LLM-ready document with project metadata and a file tree."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to include.")
    parser.add_argument(
        "--cargo-toml",
        metavar="PATH",
        help="Explicit Cargo.toml to describe the Rust project.",
    )
    parser.add_argument(
        "--pyproject",
        metavar="PATH",
        help="Explicit pyproject.toml, setup.py or requirements.txt for the Python project.",
    )
    destination = parser.add_mutually_exclusive_group()
    destination.add_argument(
        "--stdout",
        action="store_true",
        help="Print the document to stdout instead of copying it to the clipboard.",
    )
    destination.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Write the document to a file instead of the clipboard.",
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=MAX_FILE_SIZE_BYTES,
        metavar="BYTES",
        help="Skip files larger than this many bytes.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra gitignore-style pattern to exclude (repeatable).",
    )
    parser.add_argument(
        "--gitignore",
        action="store_true",
        help="Also honour the .gitignore at the root of each directory input.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Maximum number of threads reading files (default: CPU count + 4, capped at 32).",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed processing information on stderr.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the codecopier CLI."""
    args = build_parser().parse_args(argv)

    if args.stdout:
        destination = STDOUT
    elif args.output:
        destination = args.output
    else:
        destination = CLIPBOARD

    policy = ExclusionPolicy(
        max_file_size_bytes=args.max_file_size,
        extra_patterns=tuple(args.exclude),
        honor_gitignore=args.gitignore,
    )

    try:
        create_context(
            args.paths,
            destination=destination,
            cargo_toml=args.cargo_toml,
            pyproject=args.pyproject,
            policy=policy,
            workers=args.workers,
            progress=False if args.no_progress else None,
            verbose=args.verbose,
        )
    except CodeCopierError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
