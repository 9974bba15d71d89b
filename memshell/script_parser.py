"""
Parser for rc files and `source`d scripts.

Only a safe subset of shell is applied: alias definitions and
`export NAME=value` lines. Comments and blank lines are skipped, and any
other command line is recorded but never executed.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .aliases import AliasManager, is_valid_alias_name
from .environment import EnvironmentManager


logger = logging.getLogger(__name__)

QUOTED_ALIAS = re.compile(r'''^alias\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*['"](.*)['"]$''')
UNQUOTED_ALIAS = re.compile(r'^alias\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*(.+)$')
EXPORT_LINE = re.compile(r'''^export\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*['"]?([^'"]*)['"]?$''')

DANGEROUS_PATTERNS = [
    re.compile(r'rm\s+-rf\s+/'),
    re.compile(r'>\s*/dev/null\s*2>&1.*rm'),
    re.compile(r'eval\s*\('),
    re.compile(r'\$\(.*\)'),
    re.compile(r'`.*`'),
    re.compile(r'\bmkfs\b'),
    re.compile(r'\bdd\s+if='),
    re.compile(r':\(\)\s*\{'),
]


@dataclass
class ParsedLine:
    """One classified script line."""
    type: str  # alias, export, command, comment, empty, error
    content: str
    line_number: int = 0
    name: Optional[str] = None
    value: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ScriptParseResult:
    lines: List[ParsedLine] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    alias_count: int = 0
    export_count: int = 0
    command_count: int = 0


@dataclass
class ScriptExecution:
    """What applying a parsed script changed."""
    applied_aliases: List[str] = field(default_factory=list)
    applied_exports: List[str] = field(default_factory=list)
    skipped_commands: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def validate_alias(name: str, command: str) -> Tuple[bool, Optional[str]]:
    """Check an alias definition. Returns (valid, error)."""
    if not name or not name.strip():
        return False, 'Alias name cannot be empty'
    if not is_valid_alias_name(name):
        return False, 'Invalid alias name. Use only letters, numbers, and underscores'
    if not command or not command.strip():
        return False, 'Alias command cannot be empty'
    for pattern in DANGEROUS_PATTERNS:
        if pattern.search(command):
            return False, 'Potentially dangerous command detected'
    return True, None


class ShellParser:
    """Classifies script lines and applies the safe ones to a session."""

    def parse(self, content: str) -> ScriptParseResult:
        """Parse script content line by line."""
        result = ScriptParseResult()
        if not content:
            return result

        for number, raw in enumerate(content.split('\n'), start=1):
            line = self._parse_line(raw.strip(), number)
            result.lines.append(line)
            if line.type == 'alias':
                result.alias_count += 1
            elif line.type == 'export':
                result.export_count += 1
            elif line.type == 'command':
                result.command_count += 1
            elif line.type == 'error':
                result.errors.append(f"Line {number}: {line.error}")
        return result

    def _parse_line(self, line: str, number: int) -> ParsedLine:
        if not line:
            return ParsedLine('empty', line, number)
        if line.startswith('#'):
            return ParsedLine('comment', line, number)

        match = QUOTED_ALIAS.match(line) or UNQUOTED_ALIAS.match(line)
        if match:
            name, command = match.group(1), match.group(2).strip()
            valid, error = validate_alias(name, command)
            if not valid:
                return ParsedLine('error', line, number, error=error)
            return ParsedLine('alias', line, number, name=name, value=command)

        match = EXPORT_LINE.match(line)
        if match:
            return ParsedLine('export', line, number, name=match.group(1), value=match.group(2))

        if line.startswith('alias '):
            return ParsedLine('error', line, number,
                              error="Invalid alias syntax. Use: alias name='command'")

        return ParsedLine('command', line, number)

    def execute(self, result: ScriptParseResult, aliases: AliasManager,
                environment: Optional[EnvironmentManager] = None) -> ScriptExecution:
        """Apply aliases (and exports, when an environment is given)."""
        execution = ScriptExecution(errors=list(result.errors))

        for line in result.lines:
            if line.type == 'alias':
                if aliases.set_alias(line.name, line.value):
                    execution.applied_aliases.append(line.name)
                else:
                    execution.errors.append(f"Failed to set alias: {line.name}")
            elif line.type == 'export' and environment is not None:
                if environment.set(line.name, line.value):
                    execution.applied_exports.append(line.name)
                else:
                    execution.errors.append(f"Failed to export: {line.name}")
            elif line.type == 'command':
                execution.skipped_commands.append(line.content)

        if execution.errors:
            logger.warning('script applied with %d error(s)', len(execution.errors))
        return execution
