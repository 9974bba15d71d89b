"""
The per-session context.

A ShellSession owns the three pieces of mutable state a shell needs: the
filesystem, the alias table and the environment. Everything that runs
commands receives the session explicitly; there is no global state, so
several sessions can live side by side in one process.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .aliases import AliasManager
from .autocomplete import AutocompletionResult, Completer
from .default_fs import create_default_filesystem
from .environment import EnvironmentManager
from .executor import CommandExecutor
from .filesystem import FileSystemState, HOME_PATH, get_node_at_path
from .results import CommandResult
from .script_parser import ScriptExecution, ShellParser


logger = logging.getLogger(__name__)

RC_FILE = HOME_PATH + ['.bashrc']


@dataclass
class ShellSession:
    """Filesystem, aliases and environment for one shell."""
    filesystem: FileSystemState
    aliases: AliasManager = field(default_factory=AliasManager)
    environment: EnvironmentManager = field(default_factory=EnvironmentManager)
    mode: str = 'default'
    last_exit_code: int = 0

    def __post_init__(self):
        self._executor = None
        self._completer = None

    @classmethod
    def create(cls, filesystem: Optional[FileSystemState] = None, mode: str = 'default',
               load_rc: bool = True, user: str = 'user') -> 'ShellSession':
        """
        Build a session over filesystem (the default tree when omitted).

        With load_rc, aliases and exports from ~/.bashrc are applied.
        """
        filesystem = filesystem or create_default_filesystem()
        session = cls(
            filesystem=filesystem,
            aliases=AliasManager(),
            environment=EnvironmentManager(filesystem.current_path, user=user),
            mode=mode,
        )
        if load_rc:
            session.load_rc_file()
        return session

    def load_rc_file(self) -> Optional[ScriptExecution]:
        """Apply ~/.bashrc if it exists. Returns None when there is no rc file."""
        node = get_node_at_path(self.filesystem, RC_FILE)
        if node is None or not node.is_file():
            return None

        parser = ShellParser()
        execution = parser.execute(parser.parse(node.content or ''), self.aliases, self.environment)
        for error in execution.errors:
            logger.warning('.bashrc: %s', error)
        logger.debug('rc file applied %d aliases, %d exports',
                     len(execution.applied_aliases), len(execution.applied_exports))
        return execution

    @property
    def executor(self) -> CommandExecutor:
        if self._executor is None:
            self._executor = CommandExecutor(self)
        return self._executor

    @property
    def completer(self) -> Completer:
        if self._completer is None:
            self._completer = Completer(self)
        return self._completer

    def execute(self, line: str) -> CommandResult:
        """Run one command line against this session."""
        return self.executor.execute(line)

    def complete(self, text: str) -> AutocompletionResult:
        """Completions for a partially typed line."""
        return self.completer.complete(text)
