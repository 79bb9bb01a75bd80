"""codecopier: copy source trees to the clipboard as a single LLM-ready document.

This package walks files and directories, skips build artifacts and binary
content, summarizes nearby Rust and Python manifests, and serializes
everything into one XML-like document with a rendered file tree.
"""

from codecopier.cli import main
from codecopier.models import FileEntry, RunSummary

__version__ = "0.1.0"
__all__ = ["main", "FileEntry", "RunSummary"]
