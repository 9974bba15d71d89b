"""
Environment variables for a shell session.

Variables are plain name/value strings. substitute() expands $NAME and
${NAME}; references to unknown variables are left in the text as typed.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .filesystem import HOME_PATH, format_path


logger = logging.getLogger(__name__)

MAX_VARIABLES = 100
MAX_NAME_LENGTH = 100
MAX_VALUE_LENGTH = 1000

RESERVED_VARIABLES = frozenset({'HOME', 'USER', 'SHELL', 'TERM'})

NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')
ASSIGNMENT_PATTERN = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)=(.*)$', re.DOTALL)
REFERENCE_PATTERN = re.compile(r'\$\{([^}]+)\}|\$([a-zA-Z_][a-zA-Z0-9_]*)')


def default_variables(current_path: Optional[List[str]] = None,
                      user: str = 'user') -> Dict[str, str]:
    """The variables every session starts with."""
    home = format_path(HOME_PATH)
    return {
        'HOME': home,
        'USER': user,
        'SHELL': '/bin/bash',
        'TERM': 'terminal-emulator',
        'PATH': '/usr/bin:/bin:/usr/local/bin',
        'LANG': 'en_US.UTF-8',
        'PWD': format_path(current_path) if current_path is not None else home,
        'TERMINAL_VERSION': '1.0.0',
        'EDITOR': 'vi',
    }


def parse_variable_assignment(text: str) -> Optional[Tuple[str, str]]:
    """Split 'NAME=value' into (name, value), or None if it is not an assignment."""
    match = ASSIGNMENT_PATTERN.match(text.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def extract_variable_references(text: str) -> List[str]:
    """Names referenced by $NAME or ${NAME} in text, in order, without duplicates."""
    names = []
    for match in REFERENCE_PATTERN.finditer(text):
        name = match.group(1) or match.group(2)
        if name not in names:
            names.append(name)
    return names


class EnvironmentManager:
    """Named string variables with $VAR substitution."""

    def __init__(self, current_path: Optional[List[str]] = None, user: str = 'user'):
        self._defaults = default_variables(current_path, user)
        self.variables: Dict[str, str] = dict(self._defaults)

    def validate(self, name: str, value: str) -> Optional[str]:
        """Return an error message if name=value may not be set, else None."""
        if not name or not NAME_PATTERN.match(name):
            return f"invalid variable name '{name}'"
        if len(name) > MAX_NAME_LENGTH:
            return f"variable name too long (max {MAX_NAME_LENGTH} characters)"
        if len(value) > MAX_VALUE_LENGTH:
            return f"variable value too long (max {MAX_VALUE_LENGTH} characters)"
        if name not in self.variables and len(self.variables) >= MAX_VARIABLES:
            return f"too many variables (max {MAX_VARIABLES})"
        return None

    def set(self, name: str, value: str) -> bool:
        error = self.validate(name, value)
        if error:
            logger.debug('rejected variable %r: %s', name, error)
            return False
        self.variables[name] = value
        return True

    def get(self, name: str) -> Optional[str]:
        return self.variables.get(name)

    def has(self, name: str) -> bool:
        return name in self.variables

    def unset(self, name: str) -> bool:
        """Remove a variable. Reserved and unknown names return False."""
        if name in RESERVED_VARIABLES:
            return False
        if name not in self.variables:
            return False
        del self.variables[name]
        return True

    def get_all(self) -> Dict[str, str]:
        return dict(sorted(self.variables.items()))

    def substitute(self, text: str) -> str:
        """Expand ${NAME} and $NAME; unknown names are kept verbatim."""
        def replace(match):
            name = match.group(1) or match.group(2)
            value = self.variables.get(name)
            return match.group(0) if value is None else value

        return REFERENCE_PATTERN.sub(replace, text)

    def update_pwd(self, current_path: List[str]):
        self.variables['PWD'] = format_path(current_path)

    def export_user_variables(self) -> Dict[str, str]:
        """Variables that were added or changed since the session started."""
        return {name: value for name, value in self.variables.items()
                if name != 'PWD' and self._defaults.get(name) != value}

    def import_user_variables(self, variables: Dict[str, str]) -> int:
        """Set each valid entry; returns how many were applied."""
        applied = 0
        for name, value in (variables or {}).items():
            if isinstance(value, str) and self.set(name, value):
                applied += 1
        return applied
