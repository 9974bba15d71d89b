#!/usr/bin/env python3
"""
Command execution for memshell.

CommandExecutor takes one input line, parses it, and runs it against a
ShellSession: expanding variables and aliases, wiring redirections and
pipes, and short-circuiting && and || on exit codes.

Design Principles:
- Clean separation between parsing and execution
- Pipelines are fully materialized: each stage's whole output is the next
  stage's whole input
- Nothing raises past execute(); every failure becomes a CommandResult
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from .aliases import MAX_ALIAS_DEPTH, quote_argument
from .command_parser import (
    ChainOperator, CommandChain, CommandParser, InputMode, InputRedirect,
    OutputMode, OutputRedirect, ParsedCommand
)
from .commands import BuiltinCommands, check_write_limits
from .errors import ParseError
from .filesystem import get_node_at_path, resolve_path, write_file
from .results import CommandResult, OutputSegment

if TYPE_CHECKING:
    from .session import ShellSession


logger = logging.getLogger(__name__)


def combine_results(results: List[CommandResult]) -> CommandResult:
    """
    Merge the results of the commands a chain actually ran.

    Outputs are concatenated in order (a newline is inserted after output
    that lacks one), errors are joined, and success and exit code come
    from the last command.
    """
    pieces = []
    for result in results:
        if not result.text:
            continue
        if pieces and not ''.join(s.text for s in pieces[-1]).endswith('\n'):
            pieces[-1].append(OutputSegment('\n'))
        if isinstance(result.output, str):
            pieces.append([OutputSegment(result.output)])
        else:
            pieces.append(list(result.output))

    segments = [segment for piece in pieces for segment in piece]
    if all(segment.type == 'normal' for segment in segments):
        output = ''.join(segment.text for segment in segments)
    else:
        output = segments

    errors = [result.error for result in results if result.error]
    action = next((result.action for result in reversed(results) if result.action), None)
    last = results[-1]
    return CommandResult(
        success=last.success,
        output=output,
        error='\n'.join(errors) or None,
        exit_code=last.exit_code,
        action=action,
    )


class CommandExecutor:
    """
    Executes command lines against a session.

    This class bridges parsed command structures and the built-in
    commands, handling aliases, variables, redirection and chaining.
    """

    def __init__(self, session: 'ShellSession', parser: Optional[CommandParser] = None):
        self.session = session
        self.parser = parser or CommandParser()
        self.builtins = BuiltinCommands(session)

    def execute(self, line: str) -> CommandResult:
        """Execute one input line and return the final result."""
        try:
            result = self._run_line(line, depth=0)
        except ParseError as e:
            logger.debug('parse error: %s', e)
            result = CommandResult.fail(str(e))
        except Exception as e:
            logger.exception('unexpected failure running %r', line)
            result = CommandResult.fail(f"Error: {e}")

        self.session.last_exit_code = result.exit_code
        self.session.environment.update_pwd(self.session.filesystem.current_path)
        return result

    def _run_line(self, line: str, depth: int, stdin: Optional[str] = None) -> CommandResult:
        parsed = self.parser.parse_chain(line)
        if isinstance(parsed, ParsedCommand):
            return self._execute_command(parsed, stdin, depth)
        if parsed.is_pipeline:
            return self._execute_pipeline(parsed.commands, stdin, depth)
        return self._execute_chain(parsed, stdin, depth)

    def _execute_chain(self, chain: CommandChain, stdin: Optional[str], depth: int) -> CommandResult:
        last = self._execute_command(chain.commands[0], stdin, depth)
        results = [last]

        for operator, command in zip(chain.operators, chain.commands[1:]):
            if operator == ChainOperator.AND and last.exit_code != 0:
                continue
            if operator == ChainOperator.OR and last.exit_code == 0:
                continue
            last = self._execute_command(command, None, depth)
            results.append(last)

        return combine_results(results)

    def _execute_pipeline(self, commands: List[ParsedCommand], stdin: Optional[str],
                          depth: int) -> CommandResult:
        result = CommandResult.ok()
        for command in commands:
            result = self._execute_command(command, stdin, depth)
            if not result.success:
                return result
            stdin = result.text
        return result

    def _execute_command(self, parsed: ParsedCommand, stdin: Optional[str],
                         depth: int) -> CommandResult:
        parsed = self._substitute(parsed)
        if parsed.is_empty:
            return CommandResult.ok()

        logger.debug('executing %s', parsed)

        if parsed.redirect_input:
            source = parsed.redirect_input
            if source.mode == InputMode.HEREDOC:
                if parsed.command == 'cat' and not parsed.args:
                    return self._finish(CommandResult.ok(f"Reading input until '{source.source}'..."))
                stdin = ''
            else:
                node = get_node_at_path(self.session.filesystem,
                                        resolve_path(self.session.filesystem, source.source))
                if node is None or not node.is_file():
                    return self._finish(CommandResult.fail(
                        f"cannot read from '{source.source}': No such file or directory"))
                stdin = node.content or ''

        result = self._dispatch(parsed, stdin, depth)

        if parsed.redirect_output:
            result = self._redirect_output(result, parsed.redirect_output)
        return self._finish(result)

    def _finish(self, result: CommandResult) -> CommandResult:
        self.session.last_exit_code = result.exit_code
        return result

    def _dispatch(self, parsed: ParsedCommand, stdin: Optional[str], depth: int) -> CommandResult:
        aliases = self.session.aliases
        if aliases.has_alias(parsed.command):
            resolved = aliases.resolve_alias(parsed.command,
                                             [quote_argument(arg) for arg in parsed.args])
            if resolved is not None:
                if depth >= MAX_ALIAS_DEPTH:
                    return CommandResult.fail(f"{parsed.command}: alias expansion too deep")
                logger.debug('alias %s -> %s', parsed.command, resolved)
                return self._run_line(resolved, depth + 1, stdin)

        method = self.builtins.get(parsed.command)
        if method is None:
            return CommandResult.fail(f"{parsed.command}: command not found", exit_code=127)
        return method(parsed.args, stdin)

    def _substitute(self, parsed: ParsedCommand) -> ParsedCommand:
        """Expand $? and environment variables in every field of parsed."""
        environment = self.session.environment
        exit_code = str(self.session.last_exit_code)

        def expand(text: str) -> str:
            return environment.substitute(text.replace('$?', exit_code))

        output = parsed.redirect_output
        source = parsed.redirect_input
        return ParsedCommand(
            command=expand(parsed.command),
            args=[expand(arg) for arg in parsed.args],
            redirect_output=OutputRedirect(output.mode, expand(output.target)) if output else None,
            redirect_input=InputRedirect(source.mode, expand(source.source)) if source else None,
        )

    def _redirect_output(self, result: CommandResult, redirect: OutputRedirect) -> CommandResult:
        """Write a successful result to its target; the terminal sees no output."""
        if not result.success:
            return result

        fs = self.session.filesystem
        target = redirect.target
        path = resolve_path(fs, target)
        node = get_node_at_path(fs, path)
        if not path or (node is not None and node.is_dir()):
            return CommandResult.fail(f"cannot write to '{target}': Is a directory")

        content = result.text
        if redirect.mode == OutputMode.APPEND and node is not None and node.content:
            existing = node.content
            content = existing + ('' if existing.endswith('\n') else '\n') + content

        error = check_write_limits(fs, path, content, node)
        if error:
            return CommandResult.fail(f"cannot write to '{target}': {error}")
        if not write_file(fs, path, content):
            return CommandResult.fail(
                f"cannot write to '{target}': Permission denied or invalid path")

        return CommandResult(success=True, output='', exit_code=result.exit_code,
                             action=result.action)
