"""Exception hierarchy for codecopier."""


class CodeCopierError(Exception):
    """Base exception for codecopier errors."""


class NoInputsError(CodeCopierError):
    """Raised when none of the supplied paths can be resolved."""


class ManifestError(CodeCopierError):
    """Raised when a project manifest cannot be read or parsed."""


class OutputError(CodeCopierError):
    """Raised when the document cannot be written to its destination."""
