"""
Tab completion over a live session.

Completer.complete() looks at a partially typed line and proposes
command names, alias names or filesystem paths. It only reads the
session; it is safe to call on every keystroke.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional

from .command_parser import CommandParser
from .commands import COMMAND_NAMES, MAN_DIRECTORY
from .filesystem import get_node_at_path, resolve_path

if TYPE_CHECKING:
    from .session import ShellSession


REDIRECT_PATTERN = re.compile(r'^(.+?)\s*(>>|>|<<|<)\s*(.*)$')

DIRECTORY_COMMANDS = frozenset({'cd', 'mkdir', 'rmdir'})
FILE_COMMANDS = frozenset({
    'ls', 'cat', 'rm', 'touch', 'wc', 'vi', 'cp', 'mv', 'source', 'grep',
    'head', 'tail', 'sort', 'uniq',
})
ALIAS_COMMANDS = frozenset({'alias', 'unalias'})


@dataclass
class AutocompletionResult:
    completions: List[str] = field(default_factory=list)
    common_prefix: str = ''


def common_prefix(strings: List[str]) -> str:
    """Longest prefix shared by every string; '' for an empty list."""
    if not strings:
        return ''
    prefix = strings[0]
    for text in strings[1:]:
        i = 0
        while i < len(prefix) and i < len(text) and prefix[i] == text[i]:
            i += 1
        prefix = prefix[:i]
        if not prefix:
            break
    return prefix


class Completer:
    """
    Provides completions for commands and file paths.

    Completion is context sensitive:
    - Only the text after the last chain operator is considered
    - Redirection targets complete paths (files only after <)
    - The first word completes command and alias names
    - Arguments complete according to the command being run
    """

    def __init__(self, session: 'ShellSession', command_names: Optional[Iterable[str]] = None,
                 parser: Optional[CommandParser] = None):
        self.session = session
        self.command_names = sorted(command_names or COMMAND_NAMES)
        self.parser = parser or CommandParser()

    def complete(self, current_input: str) -> AutocompletionResult:
        """Return completions for the partially typed line."""
        before, text = self._split_context(current_input)
        if before and (not text or ' ' not in text):
            return self._result(self._complete_command(text))

        match = REDIRECT_PATTERN.match(text.strip()) if text.strip() else None
        if match:
            operator, target = match.group(2), match.group(3)
            if operator == '<<':
                return self._result([])
            return self._result(self._complete_path(target, files_only=operator == '<',
                                                    directories_only=False))

        parts = text.split()
        if not parts or (len(parts) == 1 and not text.endswith(' ')):
            return self._result(self._complete_command(parts[0] if parts else ''))

        command = parts[0]
        argument = '' if text.endswith(' ') else parts[-1]
        if len(argument) > 1 and argument.startswith('-'):
            return self._result([])

        if command in DIRECTORY_COMMANDS:
            candidates = self._complete_path(argument, directories_only=True)
        elif command in FILE_COMMANDS:
            candidates = self._complete_path(argument)
        elif command in ALIAS_COMMANDS:
            candidates = [name for name in self.session.aliases.get_alias_names()
                          if name.startswith(argument)]
        elif command == 'man':
            candidates = self._complete_man_page(argument)
        else:
            candidates = []
        return self._result(candidates)

    def apply_completion(self, current_input: str, completion: str) -> str:
        """
        Return current_input with the word being completed replaced.

        A completed command or alias name gets a trailing space; paths do
        not, so a directory can be completed further.
        """
        before, text = self._split_context(current_input)

        match = REDIRECT_PATTERN.match(text.strip()) if text.strip() else None
        if match:
            return f"{before}{match.group(1)} {match.group(2)} {completion}"

        stripped = text.strip()
        parts = stripped.split()
        if not parts or (len(parts) == 1 and not text.endswith(' ')):
            names = set(self.command_names) | set(self.session.aliases.get_alias_names())
            return before + completion + (' ' if completion in names else '')

        if text.endswith(' '):
            return f"{before}{stripped} {completion}"
        parts[-1] = completion
        return before + ' '.join(parts)

    def _split_context(self, current_input: str):
        """Split off everything up to the last chain operator."""
        operators = self.parser.find_chain_operators(current_input)
        if not operators:
            return '', current_input
        index, operator = operators[-1]
        text = current_input[index + len(operator.value):].lstrip()
        return current_input[:len(current_input) - len(text)], text

    def _result(self, candidates: List[str]) -> AutocompletionResult:
        return AutocompletionResult(completions=candidates, common_prefix=common_prefix(candidates))

    def _complete_command(self, prefix: str) -> List[str]:
        names = set(self.command_names) | set(self.session.aliases.get_alias_names())
        return sorted(name for name in names if name.startswith(prefix))

    def _complete_man_page(self, prefix: str) -> List[str]:
        directory = get_node_at_path(self.session.filesystem, MAN_DIRECTORY)
        if directory is None or not directory.is_dir():
            return []
        pages = [name[:-2] for name, node in (directory.children or {}).items()
                 if node.is_file() and name.endswith('.1')]
        return sorted(page for page in pages if page.startswith(prefix))

    def _complete_path(self, partial: str, directories_only: bool = False,
                       files_only: bool = False) -> List[str]:
        """Complete partial against entries of the directory it points into."""
        fs = self.session.filesystem
        if '/' in partial:
            base, prefix = partial.rsplit('/', 1)
            base += '/'
            directory_path = resolve_path(fs, base)
        else:
            base, prefix = '', partial
            directory_path = list(fs.current_path)

        directory = get_node_at_path(fs, directory_path)
        if directory is None or not directory.is_dir():
            return []

        show_hidden = prefix.startswith('.')
        candidates = []
        for name, node in (directory.children or {}).items():
            if not name.startswith(prefix):
                continue
            if name.startswith('.') and not show_hidden:
                continue
            if directories_only and not node.is_dir():
                continue
            if files_only and not node.is_file():
                continue
            candidates.append(base + name + ('/' if node.is_dir() else ''))
        return sorted(candidates)
