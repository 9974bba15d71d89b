#!/usr/bin/env python3
"""
Built-in commands for memshell.

Every public method of BuiltinCommands named in COMMAND_NAMES is a
command. Each takes the argument list plus the text piped or redirected
into it, and returns a CommandResult; user errors are reported in the
result, never raised.

The docstrings double as the `help` text, so they follow one layout:
a one-line description, then Usage:, Options: and Examples: sections.
"""

import re
from typing import TYPE_CHECKING, List, Optional

from .aliases import format_alias
from .environment import RESERVED_VARIABLES, parse_variable_assignment
from .filesystem import (
    FileSystemNode, FileSystemState, HOME_PATH, calculate_size, create_directory,
    create_file, delete_node, format_path, get_node_at_path, resolve_path
)
from .options import parse_options
from .results import ClearScreen, CommandResult, OpenEditor, OutputSegment
from .script_parser import ShellParser, validate_alias

if TYPE_CHECKING:
    from .session import ShellSession


MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_FILESYSTEM_SIZE = 50 * 1024 * 1024
MAX_FILES_PER_DIRECTORY = 1000
MAX_PATH_DEPTH = 20

HISTORY_FILE = HOME_PATH + ['.history']
MAN_DIRECTORY = ['usr', 'share', 'man', 'man1']

ALIAS_ASSIGNMENT = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*|\.+)=(.*)$', re.DOTALL)

COMMAND_NAMES = (
    'alias', 'cat', 'cd', 'clear', 'echo', 'env', 'export', 'false', 'grep',
    'head', 'help', 'history', 'ls', 'man', 'mkdir', 'pwd', 'rm', 'rmdir',
    'sort', 'source', 'tail', 'touch', 'true', 'unalias', 'uniq', 'unset',
    'vi', 'wc',
)


def check_write_limits(state: FileSystemState, path: List[str], content: str,
                       existing: Optional[FileSystemNode] = None) -> Optional[str]:
    """
    Return an error if writing content to path would break a ceiling.

    existing is the node currently at path, if any; its size is credited
    back when checking the total tree size.
    """
    if len(path) > MAX_PATH_DEPTH:
        return f"path too deep (max {MAX_PATH_DEPTH} levels)"
    if len(content) > MAX_FILE_SIZE:
        return (f"File '{path[-1] if path else '/'}' exceeds maximum size limit "
                f"({MAX_FILE_SIZE // (1024 * 1024)}MB)")

    if existing is None:
        parent = get_node_at_path(state, path[:-1])
        if parent is not None and parent.is_dir() and \
                len(parent.children or {}) >= MAX_FILES_PER_DIRECTORY:
            return f"too many files in directory (max {MAX_FILES_PER_DIRECTORY})"

    current = calculate_size(state.root) - (existing.size if existing else 0)
    if current + len(content) > MAX_FILESYSTEM_SIZE:
        return (f"Filesystem exceeds maximum size limit "
                f"({MAX_FILESYSTEM_SIZE // (1024 * 1024)}MB)")
    return None


def split_lines(text: str) -> List[str]:
    """Split text into lines, ignoring a single trailing newline."""
    if not text:
        return []
    if text.endswith('\n'):
        text = text[:-1]
    return text.split('\n')


def extract_docstring_sections(docstring: str) -> dict:
    """Extract structured sections from a command docstring."""
    sections = {'description': '', 'usage': '', 'options': [], 'examples': []}
    if not docstring:
        return sections

    lines = docstring.strip().split('\n')
    sections['description'] = lines[0].strip()

    current = None
    for line in lines[1:]:
        line = line.strip()
        if line in ('Usage:', 'Options:', 'Examples:'):
            current = line[:-1].lower()
        elif line and current == 'usage':
            sections['usage'] = line
        elif line and current in ('options', 'examples'):
            sections[current].append(line)
    return sections


class BuiltinCommands:
    """
    The command catalogue, bound to one session.

    Commands read and mutate session.filesystem, session.aliases and
    session.environment directly.
    """

    def __init__(self, session: 'ShellSession'):
        self.session = session

    @property
    def fs(self) -> FileSystemState:
        return self.session.filesystem

    def get(self, name: str):
        """Return the bound command method for name, or None."""
        if name not in COMMAND_NAMES:
            return None
        return getattr(self, name)

    # Helpers

    def _read_file(self, command: str, filename: str):
        """Return (content, error) for a file argument."""
        node = get_node_at_path(self.fs, resolve_path(self.fs, filename))
        if node is None:
            return None, f"{command}: {filename}: No such file or directory"
        if node.is_dir():
            return None, f"{command}: {filename}: Is a directory"
        return node.content or '', None

    def _gather_input(self, command: str, files: List[str], stdin: Optional[str]):
        """Concatenate file arguments, or fall back to stdin."""
        if not files:
            if stdin is None:
                return None, f"{command}: missing file operand"
            return stdin, None
        parts = []
        for filename in files:
            content, error = self._read_file(command, filename)
            if error:
                return None, error
            parts.append(content)
        return ''.join(parts), None

    def _is_cwd_or_ancestor(self, path: List[str]) -> bool:
        return self.fs.current_path[:len(path)] == path

    def _remove(self, filename: str, recursive: bool, force: bool) -> Optional[str]:
        path = resolve_path(self.fs, filename)
        node = get_node_at_path(self.fs, path)
        if node is None:
            return None if force else f"rm: cannot remove '{filename}': No such file or directory"
        if node.is_dir() and not recursive:
            return f"rm: cannot remove '{filename}': Is a directory"
        if self._is_cwd_or_ancestor(path):
            return f"rm: cannot remove '{filename}': Device or resource busy"
        if not delete_node(self.fs, path[:-1], path[-1]) and not force:
            return f"rm: cannot remove '{filename}'"
        return None

    def _make_directory(self, dirpath: str, parents: bool) -> Optional[str]:
        path = resolve_path(self.fs, dirpath)
        if not path:
            return None if parents else f"mkdir: cannot create directory '{dirpath}': File exists"
        if len(path) > MAX_PATH_DEPTH:
            return f"mkdir: path too deep (max {MAX_PATH_DEPTH} levels)"

        if not parents:
            parent = get_node_at_path(self.fs, path[:-1])
            if parent is None or not parent.is_dir():
                return f"mkdir: cannot create directory '{dirpath}': No such file or directory"
            if path[-1] in parent.children:
                return f"mkdir: cannot create directory '{dirpath}': File exists"
            error = check_write_limits(self.fs, path, '')
            if error:
                return f"mkdir: {error}"
            create_directory(self.fs, path[:-1], path[-1])
            return None

        for depth in range(1, len(path) + 1):
            node = get_node_at_path(self.fs, path[:depth])
            if node is None:
                error = check_write_limits(self.fs, path[:depth], '')
                if error:
                    return f"mkdir: {error}"
                create_directory(self.fs, path[:depth - 1], path[depth - 1])
            elif not node.is_dir():
                return f"mkdir: cannot create directory '{dirpath}': Not a directory"
        return None

    def _format_long(self, node: FileSystemNode) -> List[OutputSegment]:
        date = node.modified_at.strftime('%b %d %H:%M')
        return [
            OutputSegment(f"{node.permissions} {node.size:>8} {date} "),
            OutputSegment(node.name, node.kind.value),
        ]

    # Navigation

    def cd(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Change the working directory

        Usage:
            cd [DIR]

        Examples:
            cd documents           # Enter a subdirectory
            cd ..                  # Go up one level
            cd                     # Go home
        """
        if not args:
            home = get_node_at_path(self.fs, HOME_PATH)
            if home is None or not home.is_dir():
                return CommandResult.fail("cd: no such file or directory: ~")
            self.fs.current_path = list(HOME_PATH)
            return CommandResult.ok()

        path = resolve_path(self.fs, args[0])
        node = get_node_at_path(self.fs, path)
        if node is None:
            return CommandResult.fail(f"cd: no such file or directory: {args[0]}")
        if not node.is_dir():
            return CommandResult.fail(f"cd: not a directory: {args[0]}")
        self.fs.current_path = path
        return CommandResult.ok()

    def pwd(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print the working directory

        Usage:
            pwd
        """
        return CommandResult.ok(format_path(self.fs.current_path))

    def ls(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        List directory contents

        Usage:
            ls [-a] [-l] [PATH]

        Options:
            -a                     Include entries starting with .
            -l                     Long listing format

        Examples:
            ls -la                 # Everything, in detail
            ls documents           # List a subdirectory
        """
        options = parse_options(args)
        show_hidden = options.has('a', 'all')
        long_format = options.has('l')
        target = options.positional[0] if options.positional else None

        path = resolve_path(self.fs, target) if target else self.fs.current_path
        node = get_node_at_path(self.fs, path)
        if node is None:
            return CommandResult.fail(
                f"ls: cannot access '{target or format_path(path)}': No such file or directory")
        if node.is_file():
            return CommandResult.ok([OutputSegment(node.name, 'file')])

        entries = [child for child in (node.children or {}).values()
                   if show_hidden or not child.name.startswith('.')]
        entries.sort(key=lambda child: (not child.is_dir(), child.name))

        segments: List[OutputSegment] = []
        separator = '\n' if long_format else '  '
        for index, child in enumerate(entries):
            if index:
                segments.append(OutputSegment(separator))
            if long_format:
                segments.extend(self._format_long(child))
            else:
                segments.append(OutputSegment(child.name, child.kind.value))
        return CommandResult.ok(segments)

    # File operations

    def touch(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Create empty files or update their timestamps

        Usage:
            touch FILE...

        Examples:
            touch notes.txt
        """
        if not args:
            return CommandResult.fail('touch: missing file operand')

        for filename in args:
            path = resolve_path(self.fs, filename)
            if not path:
                return CommandResult.fail(f"touch: cannot touch '{filename}'")
            if '\\' in path[-1] or '\0' in path[-1]:
                return CommandResult.fail('touch: invalid filename')
            if len(path[-1]) > 255:
                return CommandResult.fail('touch: filename too long')

            parent = get_node_at_path(self.fs, path[:-1])
            if parent is None or not parent.is_dir():
                return CommandResult.fail(
                    f"touch: cannot touch '{filename}': No such file or directory")

            existing = parent.children.get(path[-1])
            if existing is not None:
                existing.touch()
                continue

            error = check_write_limits(self.fs, path, '')
            if error:
                return CommandResult.fail(f"touch: {error}")
            create_file(self.fs, path[:-1], path[-1], '')
        return CommandResult.ok()

    def cat(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print file contents

        Usage:
            cat [FILE]...

        Examples:
            cat readme.txt
            cat a.txt b.txt        # Concatenate
            echo hi | cat          # Read standard input
        """
        content, error = self._gather_input('cat', args, stdin)
        if error:
            return CommandResult.fail(error)
        return CommandResult.ok(content)

    def mkdir(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Create directories

        Usage:
            mkdir [-p] DIR...

        Options:
            -p                     Create parents as needed, ignore existing

        Examples:
            mkdir -p deep/nested/path
        """
        options = parse_options(args)
        if not options.positional:
            return CommandResult.fail('mkdir: missing operand')

        for dirpath in options.positional:
            error = self._make_directory(dirpath, options.has('p', 'parents'))
            if error:
                return CommandResult.fail(error)
        return CommandResult.ok()

    def rm(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Remove files or directories

        Usage:
            rm [-r] [-f] FILE...

        Options:
            -r                     Remove directories and their contents
            -f                     Ignore missing files

        Examples:
            rm old.txt
            rm -rf build
        """
        options = parse_options(args)
        if not options.positional:
            return CommandResult.fail('rm: missing operand')

        recursive = options.has('r', 'R', 'recursive')
        force = options.has('f', 'force')
        for filename in options.positional:
            error = self._remove(filename, recursive, force)
            if error:
                return CommandResult.fail(error)
        return CommandResult.ok()

    def rmdir(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Remove empty directories

        Usage:
            rmdir DIR...
        """
        if not args:
            return CommandResult.fail('rmdir: missing operand')

        for dirname in args:
            path = resolve_path(self.fs, dirname)
            node = get_node_at_path(self.fs, path)
            if node is None:
                return CommandResult.fail(
                    f"rmdir: failed to remove '{dirname}': No such file or directory")
            if not node.is_dir():
                return CommandResult.fail(f"rmdir: failed to remove '{dirname}': Not a directory")
            if node.children:
                return CommandResult.fail(
                    f"rmdir: failed to remove '{dirname}': Directory not empty")
            if self._is_cwd_or_ancestor(path):
                return CommandResult.fail(
                    f"rmdir: failed to remove '{dirname}': Device or resource busy")
            delete_node(self.fs, path[:-1], path[-1])
        return CommandResult.ok()

    # Text

    def echo(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Display a line of text

        Usage:
            echo [-n] [STRING]...

        Options:
            -n                     Do not print the trailing newline

        Examples:
            echo "Hello World" > hello.txt
        """
        if args and args[0] == '-n':
            return CommandResult.ok(' '.join(args[1:]))
        return CommandResult.ok(' '.join(args) + '\n')

    def wc(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Count lines, words and characters

        Usage:
            wc [-l] [-w] [-c] [FILE]...

        Options:
            -l                     Lines only
            -w                     Words only
            -c                     Characters only

        Examples:
            wc readme.txt
            cat notes.md | wc -l
        """
        options = parse_options(args)
        selected = [flag for flag in ('l', 'w', 'c') if flag in options.flags] or ['l', 'w', 'c']

        def counts(content: str) -> dict:
            return {
                'l': len(split_lines(content)),
                'w': len(content.split()),
                'c': len(content),
            }

        def row(values: dict, label: str = '') -> str:
            line = ' '.join(f"{values[flag]:>8}" for flag in selected)
            return f"{line} {label}" if label else line

        if not options.positional:
            if stdin is None:
                return CommandResult.fail('wc: missing operand')
            return CommandResult.ok(row(counts(stdin)))

        rows = []
        totals = {'l': 0, 'w': 0, 'c': 0}
        for filename in options.positional:
            content, error = self._read_file('wc', filename)
            if error:
                return CommandResult.fail(error)
            values = counts(content)
            for key in totals:
                totals[key] += values[key]
            rows.append(row(values, filename))
        if len(options.positional) > 1:
            rows.append(row(totals, 'total'))
        return CommandResult.ok('\n'.join(rows))

    def grep(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print lines matching a pattern

        Usage:
            grep [-i] [-v] [-n] [-c] PATTERN [FILE]...

        Options:
            -i                     Ignore case
            -v                     Select non-matching lines
            -n                     Prefix each line with its number
            -c                     Print only the number of matching lines

        Examples:
            grep TODO notes.md
            cat readme.txt | grep -i welcome
        """
        options = parse_options(args)
        if not options.positional:
            return CommandResult.fail('grep: missing pattern', exit_code=2)

        pattern_text, files = options.positional[0], options.positional[1:]
        try:
            pattern = re.compile(pattern_text, re.IGNORECASE if options.has('i') else 0)
        except re.error as e:
            return CommandResult.fail(f"grep: invalid regular expression: {e}", exit_code=2)

        sources = []
        if files:
            for filename in files:
                content, error = self._read_file('grep', filename)
                if error:
                    return CommandResult.fail(error, exit_code=2)
                sources.append((filename, content))
        elif stdin is not None:
            sources.append((None, stdin))
        else:
            return CommandResult.fail('grep: no input files', exit_code=2)

        invert = options.has('v')
        matches = []
        count = 0
        for filename, content in sources:
            for number, line in enumerate(split_lines(content), start=1):
                if bool(pattern.search(line)) == invert:
                    continue
                count += 1
                prefix = f"{filename}:" if filename and len(sources) > 1 else ''
                if options.has('n'):
                    prefix += f"{number}:"
                matches.append(prefix + line)

        output = str(count) if options.has('c') else '\n'.join(matches)
        return CommandResult(success=True, output=output, exit_code=0 if count else 1)

    def sort(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Sort lines of text

        Usage:
            sort [-r] [-n] [-u] [FILE]...

        Options:
            -r                     Reverse the order
            -n                     Compare by numeric value
            -u                     Drop duplicate lines
        """
        options = parse_options(args)
        content, error = self._gather_input('sort', options.positional, stdin)
        if error:
            return CommandResult.fail(error)

        lines = split_lines(content)
        if options.has('u'):
            lines = list(dict.fromkeys(lines))

        if options.has('n'):
            def key(line):
                match = re.match(r'\s*(-?\d+(?:\.\d+)?)', line)
                return (float(match.group(1)) if match else 0.0, line)
            lines.sort(key=key, reverse=options.has('r'))
        else:
            lines.sort(reverse=options.has('r'))
        return CommandResult.ok('\n'.join(lines))

    def uniq(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Collapse adjacent duplicate lines

        Usage:
            uniq [-c] [FILE]

        Options:
            -c                     Prefix lines with their repeat count
        """
        options = parse_options(args)
        content, error = self._gather_input('uniq', options.positional, stdin)
        if error:
            return CommandResult.fail(error)

        groups = []
        for line in split_lines(content):
            if groups and groups[-1][0] == line:
                groups[-1][1] += 1
            else:
                groups.append([line, 1])

        if options.has('c'):
            return CommandResult.ok('\n'.join(f"{count:>7} {line}" for line, count in groups))
        return CommandResult.ok('\n'.join(line for line, _ in groups))

    def _head_tail(self, name: str, args: List[str], stdin: Optional[str]):
        count = 10
        files = []
        i = 0
        while i < len(args):
            arg = args[i]
            if arg == '-n' and i + 1 < len(args):
                value = args[i + 1]
                i += 1
            elif arg.startswith('-n') and len(arg) > 2:
                value = arg[2:]
            elif re.match(r'^-\d+$', arg):
                value = arg[1:]
            else:
                files.append(arg)
                i += 1
                continue
            if not value.isdigit():
                return None, f"{name}: invalid number of lines: '{value}'"
            count = int(value)
            i += 1

        content, error = self._gather_input(name, files, stdin)
        if error:
            return None, error
        return (split_lines(content), count), None

    def head(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print the first lines of input

        Usage:
            head [-n N | -N] [FILE]

        Examples:
            head -5 notes.md
        """
        parsed, error = self._head_tail('head', args, stdin)
        if error:
            return CommandResult.fail(error)
        lines, count = parsed
        return CommandResult.ok('\n'.join(lines[:count]))

    def tail(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print the last lines of input

        Usage:
            tail [-n N | -N] [FILE]

        Examples:
            tail -n 3 /var/log/system.log
        """
        parsed, error = self._head_tail('tail', args, stdin)
        if error:
            return CommandResult.fail(error)
        lines, count = parsed
        return CommandResult.ok('\n'.join(lines[-count:] if count else []))

    # Host interaction

    def clear(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Clear the terminal screen

        Usage:
            clear
        """
        return CommandResult.ok(action=ClearScreen())

    def vi(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Edit a file

        Usage:
            vi FILE

        Examples:
            vi notes.txt           # Opens (or creates on save) notes.txt
        """
        if not args:
            return CommandResult.fail('vi: missing filename argument')

        filename = args[0]
        node = get_node_at_path(self.fs, resolve_path(self.fs, filename))
        if node is not None and node.is_dir():
            return CommandResult.fail(f"vi: {filename}: Is a directory")
        content = (node.content or '') if node is not None else ''
        return CommandResult.ok(action=OpenEditor(filename=filename, content=content))

    # Session

    def history(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Show command history

        Usage:
            history
        """
        node = get_node_at_path(self.fs, HISTORY_FILE)
        if node is None or not node.is_file() or not node.content:
            return CommandResult.ok('No command history available')

        lines = [line for line in node.content.split('\n') if line.strip()]
        return CommandResult.ok('\n'.join(f"{index:>4}  {line}"
                                          for index, line in enumerate(lines, start=1)))

    def help(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Show help for commands

        Usage:
            help [COMMAND]

        Examples:
            help                   # List all commands
            help grep              # Details for grep
        """
        if not args:
            width = max(len(name) for name in COMMAND_NAMES)
            lines = ['Available commands:', '']
            for name in COMMAND_NAMES:
                description = extract_docstring_sections(getattr(self, name).__doc__)['description']
                lines.append(f"  {name:<{width}}  {description}")
            lines.extend(['', "Type 'help COMMAND' for details."])
            return CommandResult.ok('\n'.join(lines))

        method = self.get(args[0])
        if method is None:
            return CommandResult.fail(f"help: no help available for '{args[0]}'")

        sections = extract_docstring_sections(method.__doc__)
        lines = [f"{args[0]} - {sections['description']}", '']
        if sections['usage']:
            lines.extend(['Usage:', f"    {sections['usage']}", ''])
        if sections['options']:
            lines.append('Options:')
            lines.extend(f"    {option}" for option in sections['options'])
            lines.append('')
        if sections['examples']:
            lines.append('Examples:')
            lines.extend(f"    {example}" for example in sections['examples'])
            lines.append('')
        return CommandResult.ok('\n'.join(lines).rstrip('\n'))

    def man(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Show the manual page for a command

        Usage:
            man COMMAND

        Examples:
            man ls
        """
        if not args:
            return CommandResult.fail('What manual page do you want?')
        node = get_node_at_path(self.fs, MAN_DIRECTORY + [f"{args[0]}.1"])
        if node is None or not node.is_file():
            return CommandResult.fail(f"No manual entry for {args[0]}")
        return CommandResult.ok(node.content or '')

    def alias(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Define or display aliases

        Usage:
            alias [NAME[='COMMAND']]...

        Examples:
            alias                  # List all aliases
            alias ll='ls -la'      # Define an alias
            alias ll               # Show one alias
        """
        aliases = self.session.aliases
        if not args:
            return CommandResult.ok('\n'.join(aliases.list_aliases()))

        shown = []
        for arg in args:
            match = ALIAS_ASSIGNMENT.match(arg)
            if match:
                name, command = match.group(1), match.group(2).strip()
                valid, error = validate_alias(name, command)
                if not valid:
                    return CommandResult.fail(f"alias: {error}")
                if not aliases.set_alias(name, command):
                    return CommandResult.fail(f"alias: invalid alias '{name}'")
                continue

            command = aliases.get_alias(arg)
            if command is None:
                return CommandResult.fail(f"alias: {arg}: not found")
            shown.append(format_alias(arg, command))
        return CommandResult.ok('\n'.join(shown))

    def unalias(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Remove aliases

        Usage:
            unalias [-a] NAME...

        Options:
            -a                     Remove all aliases
        """
        if not args:
            return CommandResult.fail('unalias: missing operand')
        if args[0] == '-a':
            self.session.aliases.clear_aliases()
            return CommandResult.ok()

        for name in args:
            if not self.session.aliases.remove_alias(name):
                return CommandResult.fail(f"unalias: {name}: not found")
        return CommandResult.ok()

    def source(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Apply aliases and exports from a file

        Usage:
            source FILE

        Examples:
            source ~/.bashrc
        """
        if not args:
            return CommandResult.fail('source: missing operand')

        filename = args[0]
        node = get_node_at_path(self.fs, resolve_path(self.fs, filename))
        if node is None:
            return CommandResult.fail(f"source: {filename}: No such file or directory")
        if node.is_dir():
            return CommandResult.fail(f"source: {filename}: Is a directory")

        parser = ShellParser()
        execution = parser.execute(parser.parse(node.content or ''),
                                   self.session.aliases, self.session.environment)
        summary = (f"Applied {len(execution.applied_aliases)} aliases and "
                   f"{len(execution.applied_exports)} exports from {filename}")
        if execution.errors:
            return CommandResult(success=False, output=summary + '\n',
                                 error='\n'.join(f"source: {e}" for e in execution.errors),
                                 exit_code=1)
        return CommandResult.ok(summary)

    def export(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Set environment variables

        Usage:
            export [NAME=VALUE]...

        Examples:
            export EDITOR=vi
            export                 # List all variables
        """
        environment = self.session.environment
        if not args:
            return CommandResult.ok('\n'.join(f'declare -x {name}="{value}"'
                                              for name, value in environment.get_all().items()))

        for arg in args:
            assignment = parse_variable_assignment(arg)
            name, value = assignment if assignment else (arg, environment.get(arg) or '')
            error = environment.validate(name, value)
            if error:
                return CommandResult.fail(f"export: {error}")
            environment.set(name, value)
        return CommandResult.ok()

    def env(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Print environment variables

        Usage:
            env
        """
        return CommandResult.ok('\n'.join(f"{name}={value}"
                                          for name, value in self.session.environment.get_all().items()))

    def unset(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Remove environment variables

        Usage:
            unset NAME...
        """
        if not args:
            return CommandResult.fail('unset: missing operand')
        for name in args:
            if name in RESERVED_VARIABLES:
                return CommandResult.fail(f"unset: {name}: cannot unset reserved variable")
            self.session.environment.unset(name)
        return CommandResult.ok()

    def true(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Do nothing, successfully

        Usage:
            true
        """
        return CommandResult.ok()

    def false(self, args: List[str], stdin: Optional[str] = None) -> CommandResult:
        """
        Do nothing, unsuccessfully

        Usage:
            false
        """
        return CommandResult(success=False, exit_code=1)
