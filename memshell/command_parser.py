#!/usr/bin/env python3
"""
Command parser for the memshell interpreter.

Translates one line of input into a ParsedCommand or, when chaining
operators are present, a CommandChain of ParsedCommands.

Design Principles:
- Single responsibility: parse commands, don't execute them
- Quote-aware scanning for every operator, so quoted text is never split
- Redirection is found on the unsplit line, before tokenizing
- Hard failures raise ParseError; unterminated quotes do not
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import ParseError


logger = logging.getLogger(__name__)

MAX_COMMAND_LENGTH = 1000
MAX_FILENAME_LENGTH = 255

QUOTES = ('"', "'")


class ChainOperator(Enum):
    """Operators joining two command invocations."""
    AND = '&&'
    OR = '||'
    SEQUENCE = ';'
    PIPE = '|'


class OutputMode(Enum):
    """Output redirection modes."""
    OVERWRITE = '>'
    APPEND = '>>'


class InputMode(Enum):
    """Input redirection modes."""
    FROM_FILE = '<'
    HEREDOC = '<<'


@dataclass
class OutputRedirect:
    mode: OutputMode
    target: str


@dataclass
class InputRedirect:
    mode: InputMode
    source: str


@dataclass
class ParsedCommand:
    """
    A single command with its arguments and optional redirections.

    An empty line parses to a ParsedCommand whose command is ''.
    """
    command: str
    args: List[str] = field(default_factory=list)
    redirect_output: Optional[OutputRedirect] = None
    redirect_input: Optional[InputRedirect] = None

    @property
    def is_empty(self) -> bool:
        return self.command == ''

    def __str__(self) -> str:
        parts = [self.command] + self.args
        if self.redirect_input:
            parts.extend([self.redirect_input.mode.value, self.redirect_input.source])
        if self.redirect_output:
            parts.extend([self.redirect_output.mode.value, self.redirect_output.target])
        return ' '.join(parts)


@dataclass
class CommandChain:
    """
    Commands joined by chain operators.

    operators[i] sits between commands[i] and commands[i + 1]. A chain is
    either a pure pipeline or a mix of &&, || and ; but never both.
    """
    commands: List[ParsedCommand]
    operators: List[ChainOperator]

    def __post_init__(self):
        if len(self.operators) != len(self.commands) - 1:
            raise ParseError('Invalid command chain syntax')

    @property
    def is_pipeline(self) -> bool:
        return bool(self.operators) and all(op == ChainOperator.PIPE for op in self.operators)

    def __str__(self) -> str:
        parts = [str(self.commands[0])]
        for op, cmd in zip(self.operators, self.commands[1:]):
            parts.extend([op.value, str(cmd)])
        return ' '.join(parts)


class CommandParser:
    """
    Parser for shell command syntax.

    This parser handles:
    - Tokens split on whitespace, grouped by single or double quotes
    - Output redirection (>, >>) and input redirection (<, <<)
    - Chains (&&, ||, ;) and pipelines (|)
    """

    def parse(self, line: str) -> ParsedCommand:
        """Parse a single command (no chain operators) into a ParsedCommand."""
        text = self._check_length(line)
        if not text:
            return ParsedCommand(command='')

        # Output redirection wins over input redirection
        split = self._split_redirection(text, '>')
        if split is not None:
            left, op, target = split
            tokens = self.tokenize(left) or ['']
            return ParsedCommand(
                command=tokens[0],
                args=tokens[1:],
                redirect_output=OutputRedirect(OutputMode(op), self._clean_target(target)),
            )

        split = self._split_redirection(text, '<')
        if split is not None:
            left, op, source = split
            tokens = self.tokenize(left) or ['']
            return ParsedCommand(
                command=tokens[0],
                args=tokens[1:],
                redirect_input=InputRedirect(InputMode(op), self._clean_target(source)),
            )

        tokens = self.tokenize(text)
        if not tokens:
            return ParsedCommand(command='')
        return ParsedCommand(command=tokens[0], args=tokens[1:])

    def parse_chain(self, line: str) -> Union[ParsedCommand, CommandChain]:
        """
        Parse a line that may contain chain operators.

        Returns a plain ParsedCommand when the line has no operators.
        """
        text = self._check_length(line)
        found = self.find_chain_operators(text)
        if not found:
            return self.parse(text)

        commands: List[ParsedCommand] = []
        operators: List[ChainOperator] = []
        start = 0
        for index, op in found:
            segment = text[start:index].strip()
            if segment:
                commands.append(self.parse(segment))
            operators.append(op)
            start = index + len(op.value)
        tail = text[start:].strip()
        if tail:
            commands.append(self.parse(tail))

        if len(operators) != len(commands) - 1:
            raise ParseError('Invalid command chain syntax')

        if ChainOperator.PIPE in operators and any(op != ChainOperator.PIPE for op in operators):
            raise ParseError('Cannot mix pipe operators (|) with other chaining operators (&&, ||, ;)')

        chain = CommandChain(commands=commands, operators=operators)
        logger.debug('parsed chain: %s', chain)
        return chain

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into tokens.

        Quotes group characters (including whitespace) and are stripped.
        There is no escape processing, and an unterminated quote runs to
        the end of the text. Empty tokens are dropped.
        """
        tokens = []
        current = []
        quote = None

        for char in text:
            if quote:
                if char == quote:
                    quote = None
                else:
                    current.append(char)
            elif char in QUOTES:
                quote = char
            elif char.isspace():
                if current:
                    tokens.append(''.join(current))
                    current = []
            else:
                current.append(char)

        if current:
            tokens.append(''.join(current))
        return tokens

    def find_chain_operators(self, text: str) -> List[Tuple[int, ChainOperator]]:
        """
        Locate unquoted chain operators as (index, operator) pairs.

        Two-character operators are matched first so || is never read as
        two pipes.
        """
        found = []
        quote = None
        i = 0
        while i < len(text):
            char = text[i]
            if quote:
                if char == quote:
                    quote = None
                i += 1
                continue
            if char in QUOTES:
                quote = char
                i += 1
                continue

            pair = text[i:i + 2]
            if pair == '&&':
                found.append((i, ChainOperator.AND))
                i += 2
            elif pair == '||':
                found.append((i, ChainOperator.OR))
                i += 2
            elif char == ';':
                found.append((i, ChainOperator.SEQUENCE))
                i += 1
            elif char == '|':
                found.append((i, ChainOperator.PIPE))
                i += 1
            else:
                i += 1
        return found

    def _check_length(self, line: str) -> str:
        text = (line or '').strip()
        if len(text) > MAX_COMMAND_LENGTH:
            raise ParseError(f'Command too long (max {MAX_COMMAND_LENGTH} characters)')
        return text

    def _unquoted_positions(self, text: str, char: str) -> List[int]:
        positions = []
        quote = None
        for i, c in enumerate(text):
            if quote:
                if c == quote:
                    quote = None
            elif c in QUOTES:
                quote = c
            elif c == char:
                positions.append(i)
        return positions

    def _split_redirection(self, text: str, char: str) -> Optional[Tuple[str, str, str]]:
        """
        Split text at its first unquoted redirection operator.

        char is '>' or '<'; the doubled form is preferred. Returns None when
        there is no operator, either side is empty, or the right side holds
        another operator of the same direction.
        """
        positions = self._unquoted_positions(text, char)
        if not positions:
            return None

        index = positions[0]
        op = char * 2 if text[index:index + 2] == char * 2 else char
        left = text[:index].strip()
        right = text[index + len(op):].strip()
        if not left or not right:
            return None
        if self._unquoted_positions(right, char):
            return None
        return left, op, right

    def _clean_target(self, target: str) -> str:
        target = target.strip()
        if target[:1] in QUOTES:
            target = target[1:]
        if target[-1:] in QUOTES:
            target = target[:-1]

        if len(target) > MAX_FILENAME_LENGTH:
            raise ParseError('Filename too long')
        if '\0' in target or '..' in target:
            raise ParseError('Invalid filename: contains forbidden characters')
        return target
