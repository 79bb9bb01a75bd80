"""Static configuration: exclusion tables, limits and manifest names."""

# Directory names that are never descended into. Entries may use glob syntax.
EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        # Version control
        ".git", ".hg", ".svn",
        # Build outputs
        "target", "dist", "build", "out",
        # Dependency caches
        "node_modules", ".eggs", "*.egg-info",
        # Python tooling caches
        "__pycache__", ".pytest_cache", ".mypy_cache", ".ruff_cache",
        ".tox", ".nox", ".ipynb_checkpoints",
        # Virtual environments
        "venv", ".venv", "env", ".env",
        # Editors & CI
        ".vscode", ".idea", ".github",
    }
)

EXCLUDED_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Native binaries & objects
        ".exe", ".dll", ".so", ".dylib", ".o", ".obj", ".a", ".lib", ".bin",
        # Compiled bytecode & JVM archives
        ".pyc", ".pyd", ".pyo", ".class", ".jar",
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot",
        # Archives & documents
        ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".rar", ".pdf",
        # Media
        ".mp3", ".mp4", ".wav",
        # Databases
        ".sqlite", ".db",
    }
)

MAX_FILE_SIZE_BYTES = 1024 * 1024

# Number of leading bytes scanned for NUL bytes.
BINARY_SNIFF_BYTES = 8192

DEFAULT_ENCODING = "utf-8"

MAX_WORKERS = 32

CARGO_MANIFEST = "Cargo.toml"

# Priority order matters: the first one present in a directory wins.
PYTHON_MANIFESTS: tuple[str, ...] = ("pyproject.toml", "setup.py", "requirements.txt")
