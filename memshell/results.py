"""
Structured command results.

Commands return a CommandResult. Output is either plain text or a list
of typed OutputSegments, so a host can colorize listings without the
interpreter knowing about colors. Requests for the host to act (clear the
screen, open the editor) travel in the `action` field.
"""

import base64
from dataclasses import dataclass
from typing import List, Optional, Union


EDITOR_SENTINEL = 'OPEN_EDITOR:'
CLEAR_SENTINEL = 'CLEAR'

SEGMENT_TYPES = ('normal', 'directory', 'file', 'error', 'success', 'info', 'hidden')


@dataclass
class OutputSegment:
    """A run of output text tagged with its meaning."""
    text: str
    type: str = 'normal'


@dataclass(frozen=True)
class ClearScreen:
    """Ask the host to clear the screen."""

    def encode(self) -> str:
        return CLEAR_SENTINEL


@dataclass(frozen=True)
class OpenEditor:
    """Ask the host to open its line editor on filename."""
    filename: str
    content: str = ''

    def encode(self) -> str:
        """Legacy textual form: OPEN_EDITOR:<filename>:<base64 content>."""
        encoded = base64.b64encode(self.content.encode('utf-8')).decode('ascii')
        return f"{EDITOR_SENTINEL}{self.filename}:{encoded}"

    @classmethod
    def decode(cls, text: str) -> Optional['OpenEditor']:
        if not text.startswith(EDITOR_SENTINEL):
            return None
        filename, sep, encoded = text[len(EDITOR_SENTINEL):].rpartition(':')
        if not sep:
            return None
        try:
            content = base64.b64decode(encoded.encode('ascii')).decode('utf-8')
        except ValueError:
            return None
        return cls(filename=filename, content=content)


HostAction = Union[ClearScreen, OpenEditor]
Output = Union[str, List[OutputSegment]]


def flatten(output: Output) -> str:
    """Plain text of an output value."""
    if isinstance(output, str):
        return output
    return ''.join(segment.text for segment in output)


@dataclass
class CommandResult:
    """
    Result of running a command line.

    exit_code follows POSIX: 0 success, 1 failure, 127 unknown command.
    success and exit_code usually agree; grep without a match is the
    exception (success, exit code 1).
    """
    success: bool = True
    output: Output = ''
    error: Optional[str] = None
    exit_code: int = 0
    action: Optional[HostAction] = None

    @property
    def text(self) -> str:
        return flatten(self.output)

    @classmethod
    def ok(cls, output: Output = '', action: Optional[HostAction] = None) -> 'CommandResult':
        return cls(success=True, output=output, exit_code=0, action=action)

    @classmethod
    def fail(cls, error: str, exit_code: int = 1, output: Output = '') -> 'CommandResult':
        return cls(success=False, output=output, error=error, exit_code=exit_code)

    def __str__(self) -> str:
        if self.error and not self.text:
            return self.error
        return self.text
