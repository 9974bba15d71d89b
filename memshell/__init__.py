"""
memshell - an in-memory Unix-like shell

This package provides a virtual hierarchical filesystem together with a
small shell interpreter over it: a quote-aware command parser, aliases,
environment variables, redirection, pipes and && / || / ; chains, tab
completion, and a JSON state format for saving sessions.
"""

__version__ = "0.1.0"

from .errors import (
    ShellError,
    ParseError,
    FilesystemInvariantError,
    PersistenceError,
)

from .filesystem import (
    FileSystemNode,
    FileSystemState,
    NodeKind,
    Lookup,
    LookupStatus,
    lookup,
    get_node_at_path,
    resolve_path,
    format_path,
)

from .command_parser import (
    CommandParser,
    ParsedCommand,
    CommandChain,
    ChainOperator,
    OutputRedirect,
    InputRedirect,
)

from .aliases import AliasManager
from .environment import EnvironmentManager
from .results import CommandResult, OutputSegment, ClearScreen, OpenEditor
from .default_fs import create_default_filesystem
from .executor import CommandExecutor
from .autocomplete import Completer, AutocompletionResult
from .session import ShellSession

from .persistence import (
    PersistedState,
    export_state,
    import_state,
    apply_state,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
    CommandHistory,
)

__all__ = [
    # Errors
    "ShellError",
    "ParseError",
    "FilesystemInvariantError",
    "PersistenceError",

    # Filesystem
    "FileSystemNode",
    "FileSystemState",
    "NodeKind",
    "Lookup",
    "LookupStatus",
    "lookup",
    "get_node_at_path",
    "resolve_path",
    "format_path",
    "create_default_filesystem",

    # Parsing
    "CommandParser",
    "ParsedCommand",
    "CommandChain",
    "ChainOperator",
    "OutputRedirect",
    "InputRedirect",

    # Session state
    "AliasManager",
    "EnvironmentManager",
    "ShellSession",

    # Execution
    "CommandExecutor",
    "CommandResult",
    "OutputSegment",
    "ClearScreen",
    "OpenEditor",
    "Completer",
    "AutocompletionResult",

    # Persistence
    "PersistedState",
    "export_state",
    "import_state",
    "apply_state",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "CommandHistory",

    "__version__",
]
