#!/usr/bin/env python3
"""
Terminal front end for memshell.

This module wraps a ShellSession in a REPL: it draws the prompt, keeps
command history in ~/.history inside the virtual filesystem, colors
typed output, carries out host actions (clear screen, editor requests)
and wires tab completion into readline.

Design Principles:
- The session does all the work; the terminal only renders
- Host actions arrive as values on the result, never as magic strings
- Stateful session management
"""

import argparse
import logging
import socket
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from .commands import HISTORY_FILE
from .errors import PersistenceError
from .filesystem import format_path_with_tilde, get_node_at_path, resolve_path, write_file
from .persistence import load_from_file, save_to_file
from .results import ClearScreen, CommandResult, OpenEditor
from .session import ShellSession


logger = logging.getLogger(__name__)

CLEAR_SCREEN = '\033[2J\033[H'
RESET = '\033[0m'
SEGMENT_COLORS = {
    'directory': '\033[34m',
    'error': '\033[31m',
    'success': '\033[32m',
    'info': '\033[36m',
    'hidden': '\033[90m',
}
EXIT_COMMANDS = ('exit', 'quit')
COMPLETER_DELIMS = ' \t\n;|&<>'


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    user: str = 'user'
    hostname: str = field(default_factory=lambda: socket.gethostname().split('.')[0])
    home_dir: str = '/home/user'
    initial_dir: Optional[str] = None
    prompt_format: str = '{user}@{hostname}:{cwd}$ '
    enable_colors: bool = True
    history_size: int = 1000
    enable_tab_completion: bool = True
    source_rc_file: bool = True
    mode: str = 'default'


class CommandHistory:
    """
    Bounded command history with previous/next navigation.

    When bound to a session, entries are loaded from and written back to
    ~/.history in the virtual filesystem, which is what `history` reads.
    """

    def __init__(self, max_size: int = 1000, session: Optional[ShellSession] = None):
        self.max_size = max_size
        self.session = session
        self.history: List[str] = []
        self.position = 0
        if session is not None:
            self.load()

    def load(self):
        node = get_node_at_path(self.session.filesystem, HISTORY_FILE)
        if node is not None and node.is_file() and node.content:
            lines = [line for line in node.content.split('\n') if line.strip()]
            self.history = lines[-self.max_size:]
        self.position = len(self.history)

    def save(self):
        if self.session is None:
            return
        content = '\n'.join(self.history) + '\n' if self.history else ''
        if not write_file(self.session.filesystem, HISTORY_FILE, content):
            logger.warning('could not write history file')

    def add(self, command: str):
        """Add a command to history."""
        if command and command.strip():
            self.history.append(command)
            if len(self.history) > self.max_size:
                self.history.pop(0)
            self.save()
        self.position = len(self.history)

    def previous(self) -> Optional[str]:
        """Get previous command in history."""
        if self.position > 0:
            self.position -= 1
            return self.history[self.position]
        return None

    def next(self) -> Optional[str]:
        """Get next command in history."""
        if self.position < len(self.history) - 1:
            self.position += 1
            return self.history[self.position]
        self.position = len(self.history)
        return ''


class TerminalSession:
    """
    Main terminal session manager.

    This class provides the REPL loop and renders command results for a
    text terminal.
    """

    def __init__(self, config: Optional[TerminalConfig] = None,
                 session: Optional[ShellSession] = None):
        self.config = config or TerminalConfig()
        self.session = session or ShellSession.create(
            mode=self.config.mode,
            load_rc=self.config.source_rc_file,
            user=self.config.user,
        )
        self.history = CommandHistory(self.config.history_size, self.session)
        self.running = False

        if self.config.initial_dir:
            self._change_directory(self.config.initial_dir)

    def _change_directory(self, directory: str):
        fs = self.session.filesystem
        path = resolve_path(fs, directory)
        node = get_node_at_path(fs, path)
        if node is None or not node.is_dir():
            logger.warning('initial directory %s does not exist', directory)
            return
        fs.current_path = path
        self.session.environment.update_pwd(path)

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        display_cwd = format_path_with_tilde(self.session.filesystem.current_path)

        if self.config.enable_colors:
            # Green for user@host, blue for path
            return (f'\033[32m{self.config.user}@{self.config.hostname}\033[0m:'
                    f'\033[34m{display_cwd}\033[0m$ ')

        return self.config.prompt_format.format(
            user=self.config.user,
            hostname=self.config.hostname,
            cwd=display_cwd,
        )

    def render(self, result: CommandResult) -> str:
        """Turn a result into terminal text, colored when enabled."""
        if isinstance(result.output, str) or not self.config.enable_colors:
            text = result.text
        else:
            parts = []
            for segment in result.output:
                color = SEGMENT_COLORS.get(segment.type)
                parts.append(f"{color}{segment.text}{RESET}" if color else segment.text)
            text = ''.join(parts)

        text = text.rstrip('\n')
        if result.error:
            error = result.error
            if self.config.enable_colors:
                error = f"{SEGMENT_COLORS['error']}{error}{RESET}"
            text = f"{text}\n{error}" if text else error
        return text

    def _handle_action(self, action) -> str:
        if isinstance(action, ClearScreen):
            return CLEAR_SCREEN
        if isinstance(action, OpenEditor):
            size = len(action.content)
            return (f"vi: {action.filename} ({size} bytes): "
                    f"no editor is attached to this terminal")
        return ''

    def execute_command(self, command_line: str) -> Optional[str]:
        """
        Execute a command line and return the output.

        Returns None for exit commands.
        """
        if not command_line or command_line.strip() == '':
            return ''

        if command_line.strip() in EXIT_COMMANDS:
            return None

        result = self.session.execute(command_line)
        output = self.render(result)
        if result.action is not None:
            notice = self._handle_action(result.action)
            output = f"{output}\n{notice}" if output else notice
        return output

    def _setup_readline(self):
        """Configure readline for tab completion and line history."""
        try:
            import readline
        except ImportError:
            logger.debug('readline is not available; tab completion disabled')
            return

        completer = self.session.completer

        def complete(text: str, state: int) -> Optional[str]:
            line = readline.get_line_buffer()[:readline.get_endidx()]
            matches = completer.complete(line).completions
            try:
                return matches[state]
            except IndexError:
                return None

        readline.set_completer_delims(COMPLETER_DELIMS)
        readline.set_completer(complete)
        readline.parse_and_bind('tab: complete')

        for command in self.history.history:
            readline.add_history(command)

    def run_interactive(self):
        """Run the interactive REPL loop."""
        self.running = True

        if self.config.enable_tab_completion:
            self._setup_readline()

        print("Welcome to memshell")
        print("Type 'help' for help, 'exit' to quit")
        print()

        while self.running:
            try:
                command_line = input(self.get_prompt())

                self.history.add(command_line)

                output = self.execute_command(command_line)

                if output is None:
                    break

                if output:
                    print(output)

            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print()
                break
            except Exception as e:
                logger.exception('unexpected error in REPL')
                print(f"Error: {e}")

        self.running = False
        print("Goodbye!")

    def run_command(self, command_line: str) -> str:
        """
        Run a single command and return output.

        This method is useful for non-interactive use.
        """
        output = self.execute_command(command_line)
        return output if output is not None else ''

    def run_script(self, script_lines: List[str]) -> List[str]:
        """
        Run a script (list of command lines) and return outputs.
        """
        outputs = []
        for line in script_lines:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            output = self.execute_command(line)
            if output is None:
                break
            outputs.append(output)

        return outputs


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the memshell terminal."""
    parser = argparse.ArgumentParser(description='memshell - an in-memory shell')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('-u', '--user', help='Set username', default='user')
    parser.add_argument('-d', '--directory', help='Set initial directory')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--no-completion', action='store_true', help='Disable tab completion')
    parser.add_argument('--no-rc', action='store_true', help='Do not source ~/.bashrc')
    parser.add_argument('--load', metavar='FILE', help='Restore state from a JSON file')
    parser.add_argument('--save', metavar='FILE', help='Save state to a JSON file on exit')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    config = TerminalConfig(
        user=args.user,
        initial_dir=args.directory,
        enable_colors=not args.no_color and sys.stdout.isatty(),
        enable_tab_completion=not args.no_completion,
        source_rc_file=not args.no_rc,
    )

    session = None
    if args.load:
        try:
            session = load_from_file(args.load)
        except PersistenceError as e:
            print(f"memshell: {e}", file=sys.stderr)
            return 1

    terminal = TerminalSession(config=config, session=session)

    exit_code = 0
    if args.command:
        output = terminal.run_command(args.command)
        if output:
            print(output)
        exit_code = terminal.session.last_exit_code
    else:
        terminal.run_interactive()

    if args.save:
        try:
            save_to_file(terminal.session, args.save)
        except PersistenceError as e:
            print(f"memshell: {e}", file=sys.stderr)
            return 1
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
