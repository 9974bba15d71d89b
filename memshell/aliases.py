"""
Command aliases.

Provides a clean API for:
- Creating and removing aliases, with name and template validation
- Resolving an alias (recursively) into a command line
- Serializing the alias table for persistence
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from .filesystem import parse_timestamp


logger = logging.getLogger(__name__)

MAX_ALIAS_DEPTH = 10
MAX_ALIAS_NAME_LENGTH = 100

ALIAS_NAME_PATTERN = re.compile(r'^(?:[A-Za-z_][A-Za-z0-9_]*|\.+)$')
POSITIONAL_PATTERN = re.compile(r'\$(\d+)')
NEEDS_QUOTES = re.compile(r'''[\s'"\\|&;<>(){}\[\]$`]''')


@dataclass
class AliasDefinition:
    name: str
    command: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return format_alias(self.name, self.command)


def format_alias(name: str, command: str) -> str:
    """Format an alias definition, quoting the command when needed."""
    if NEEDS_QUOTES.search(command):
        escaped = command.replace("'", "'\\''")
        return f"alias {name}='{escaped}'"
    return f"alias {name}={command}"


def quote_argument(argument: str) -> str:
    """
    Quote an already-tokenized argument so re-parsing yields it unchanged.

    Adjacent quoted runs join into one token, so an embedded single quote
    is written as '"'"'.
    """
    if not NEEDS_QUOTES.search(argument):
        return argument
    return "'" + argument.replace("'", "'\"'\"'") + "'"


def is_valid_alias_name(name: str) -> bool:
    """Identifier-style names, or names made only of dots (e.g. '..')."""
    return (bool(name) and
            len(name) <= MAX_ALIAS_NAME_LENGTH and
            ALIAS_NAME_PATTERN.match(name) is not None)


def substitute_parameters(template: str, args: List[str]) -> str:
    """
    Fill $1..$N, $* and $@ in template from args.

    When args are given but the template uses none of them, they are
    appended after a single space.
    """
    substituted = False

    def positional(match):
        nonlocal substituted
        index = int(match.group(1))
        if 1 <= index <= len(args):
            substituted = True
            return args[index - 1]
        return match.group(0)

    result = POSITIONAL_PATTERN.sub(positional, template)

    joined = ' '.join(args)
    for token in ('$*', '$@'):
        if token in result:
            result = result.replace(token, joined)
            substituted = True

    if args and not substituted:
        result = f"{result} {joined}"
    return result


class AliasManager:
    """
    Manages command aliases for one shell session.

    resolve_alias() never raises: a cycle or a chain deeper than
    MAX_ALIAS_DEPTH makes the whole resolution return None, and callers
    fall back to running the literal command.
    """

    def __init__(self):
        self.aliases: Dict[str, AliasDefinition] = {}

    def set_alias(self, name: str, command: str) -> bool:
        """Add or replace an alias. Returns False if name or command is invalid."""
        command = (command or '').strip()
        if not is_valid_alias_name(name):
            logger.debug('rejected alias name %r', name)
            return False
        if not command:
            logger.debug('rejected empty alias %r', name)
            return False
        self.aliases[name] = AliasDefinition(name=name, command=command)
        return True

    def remove_alias(self, name: str) -> bool:
        """Remove an alias. Returns True if removed."""
        if name in self.aliases:
            del self.aliases[name]
            return True
        return False

    def get_alias(self, name: str) -> Optional[str]:
        definition = self.aliases.get(name)
        return definition.command if definition else None

    def has_alias(self, name: str) -> bool:
        return name in self.aliases

    def get_all_aliases(self) -> List[AliasDefinition]:
        """All aliases, sorted by name."""
        return [self.aliases[name] for name in sorted(self.aliases)]

    def get_alias_names(self) -> List[str]:
        return sorted(self.aliases)

    def clear_aliases(self):
        self.aliases.clear()

    def list_aliases(self) -> List[str]:
        """List aliases in `alias name='command'` form."""
        return [str(definition) for definition in self.get_all_aliases()]

    def resolve_alias(self, name: str, args: Optional[List[str]] = None) -> Optional[str]:
        """
        Resolve name with args into a command line.

        Returns None if name is not an alias, if the expansion revisits an
        alias, or if it nests deeper than MAX_ALIAS_DEPTH.
        """
        return self._resolve(name, list(args or []), frozenset(), 0)

    def _resolve(self, name: str, args: List[str], visited: FrozenSet[str],
                 depth: int) -> Optional[str]:
        if depth >= MAX_ALIAS_DEPTH:
            logger.debug('alias %r exceeds depth %d', name, MAX_ALIAS_DEPTH)
            return None
        if name in visited:
            logger.debug('alias cycle through %r', name)
            return None

        definition = self.aliases.get(name)
        if definition is None:
            return None

        resolved = substitute_parameters(definition.command, args)

        words = resolved.split(' ')
        first = words[0]
        if first in self.aliases:
            return self._resolve(first, words[1:], visited | {name}, depth + 1)
        return resolved

    def serialize(self) -> List[dict]:
        return [
            {'name': d.name, 'command': d.command, 'createdAt': d.created_at.isoformat()}
            for d in self.get_all_aliases()
        ]

    def deserialize(self, data: List[dict]):
        """Replace the alias table with serialized entries, skipping invalid ones."""
        self.clear_aliases()
        for entry in data or []:
            if not isinstance(entry, dict):
                continue
            name = entry.get('name', '')
            command = entry.get('command', '')
            if self.set_alias(name, command):
                self.aliases[name].created_at = parse_timestamp(entry.get('createdAt'))
