"""
Option parsing for built-in commands.

Splits an argument list into flags and positional arguments:

    -la        -> flags {'l', 'a'}
    --all      -> flags {'all'}
    --         -> every later argument is positional
    -          -> positional (conventionally stdin)
"""

from dataclasses import dataclass, field
from typing import List, Set


@dataclass
class ParsedOptions:
    """Flags and positional arguments split out of a raw argument list."""
    flags: Set[str] = field(default_factory=set)
    positional: List[str] = field(default_factory=list)

    def has(self, *names: str) -> bool:
        """Check whether any of the given flags was passed."""
        return any(name in self.flags for name in names)


def parse_options(args: List[str]) -> ParsedOptions:
    """Split args into short/long flags and positional arguments."""
    options = ParsedOptions()

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == '--':
            options.positional.extend(args[i + 1:])
            break
        elif arg.startswith('--'):
            options.flags.add(arg[2:])
        elif arg.startswith('-') and len(arg) > 1:
            for char in arg[1:]:
                options.flags.add(char)
        else:
            options.positional.append(arg)
        i += 1

    return options
