"""
Exception hierarchy for memshell.

Expected domain conditions (missing paths, rejected names, alias cycles)
are reported through return values. Exceptions are reserved for input the
parser refuses outright, for corrupted state, and for unreadable state
documents.

    ShellError
    ├── ParseError
    ├── FilesystemInvariantError
    └── PersistenceError
"""

from typing import Optional


class ShellError(Exception):
    """Base class for all memshell errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ParseError(ShellError):
    """
    A command line the parser refuses to structure.

    Raised for oversize input, oversize or forbidden redirection targets,
    and malformed or mixed operator chains. Unterminated quotes are not
    an error.
    """


class FilesystemInvariantError(ShellError):
    """The in-memory tree is corrupted, e.g. a directory without children."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message


class PersistenceError(ShellError):
    """A persisted state document could not be read."""
