"""
Saving and restoring a session as a JSON document.

The document records the whole tree, the working directory and the
filesystem mode:

    {
      "filesystem": {...root node...},
      "mode": "default",
      "version": "1.0.0",
      "savedAt": "2026-01-01T00:00:00+00:00",
      "currentPath": ["home", "user"],
      "environment": {...},   # optional: user-set variables
      "aliases": [...]        # optional
    }

Node dates are written as ISO-8601 strings and come back as datetime
objects; missing or unreadable dates become the load time.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .errors import PersistenceError
from .filesystem import FileSystemNode, FileSystemState, HOME_PATH, get_node_at_path
from .session import ShellSession


logger = logging.getLogger(__name__)

CURRENT_VERSION = '1.0.0'


@dataclass
class PersistedState:
    """A validated, re-hydrated state document."""
    filesystem: FileSystemNode
    mode: str
    version: str
    saved_at: str
    current_path: List[str]
    environment: Dict[str, str] = field(default_factory=dict)
    aliases: Optional[List[dict]] = None


def export_state(session: ShellSession) -> str:
    """Serialize session to a JSON document."""
    data = {
        'filesystem': session.filesystem.root.to_dict(),
        'mode': session.mode,
        'version': CURRENT_VERSION,
        'savedAt': datetime.now(timezone.utc).isoformat(),
        'currentPath': list(session.filesystem.current_path),
        'environment': session.environment.export_user_variables(),
        'aliases': session.aliases.serialize(),
    }
    return json.dumps(data, indent=2)


def _validate(data) -> None:
    if not isinstance(data, dict):
        raise PersistenceError('Invalid saved filesystem data format')

    root = data.get('filesystem')
    if not isinstance(root, dict) or not isinstance(root.get('name'), str) \
            or not isinstance(root.get('type'), str):
        raise PersistenceError('Invalid saved filesystem data format')

    for key in ('mode', 'version', 'savedAt'):
        if not isinstance(data.get(key), str):
            raise PersistenceError('Invalid saved filesystem data format')

    current_path = data.get('currentPath')
    if not isinstance(current_path, list) or \
            not all(isinstance(segment, str) for segment in current_path):
        raise PersistenceError('Invalid saved filesystem data format')

    environment = data.get('environment', {})
    if environment is not None and not isinstance(environment, dict):
        raise PersistenceError('environment must be an object')
    aliases = data.get('aliases', [])
    if aliases is not None and not isinstance(aliases, list):
        raise PersistenceError('aliases must be a list')


def _migrate(data: dict) -> dict:
    """Bring an older document up to CURRENT_VERSION."""
    # 1.0.0 is the only format so far; nothing to rewrite.
    logger.warning('Version mismatch: saved %s, current %s', data['version'], CURRENT_VERSION)
    data['version'] = CURRENT_VERSION
    return data


def import_state(text: str) -> PersistedState:
    """
    Parse and validate a state document.

    Raises:
        PersistenceError: if text is not JSON or not a valid document
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to parse saved data: {e}") from e

    _validate(data)
    if data['version'] != CURRENT_VERSION:
        data = _migrate(data)

    try:
        root = FileSystemNode.from_dict(data['filesystem'])
    except ValueError as e:
        raise PersistenceError(f"Invalid node structure: {e}") from e
    if not root.is_dir():
        raise PersistenceError('filesystem root must be a directory')

    return PersistedState(
        filesystem=root,
        mode=data['mode'],
        version=data['version'],
        saved_at=data['savedAt'],
        current_path=list(data['currentPath']),
        environment=dict(data.get('environment') or {}),
        aliases=None if data.get('aliases') is None else list(data['aliases']),
    )


def apply_state(session: ShellSession, state: PersistedState) -> None:
    """
    Replace session's filesystem, mode, variables and aliases with state.

    A saved working directory that no longer names a directory falls back
    to the home directory, or the root if home is gone too.
    """
    filesystem = FileSystemState(root=state.filesystem, current_path=list(state.current_path))
    node = get_node_at_path(filesystem, filesystem.current_path)
    if node is None or not node.is_dir():
        home = get_node_at_path(filesystem, HOME_PATH)
        fallback = list(HOME_PATH) if home is not None and home.is_dir() else []
        logger.warning('saved directory %s is missing, using %s',
                       state.current_path, fallback)
        filesystem.current_path = fallback

    session.filesystem = filesystem
    session.mode = state.mode
    session.environment.import_user_variables(state.environment)
    session.environment.update_pwd(filesystem.current_path)
    if state.aliases is not None:
        session.aliases.deserialize(state.aliases)


def save_to_file(session: ShellSession, filename: str) -> None:
    """Write session's state document to a file on the host."""
    try:
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(export_state(session))
    except OSError as e:
        raise PersistenceError(f"cannot save state to {filename}: {e}") from e


def load_from_file(filename: str, session: Optional[ShellSession] = None) -> ShellSession:
    """
    Restore a state document from a host file.

    The state is applied to session, or to a fresh session without rc
    file processing when none is given.
    """
    try:
        with open(filename, encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise PersistenceError(f"cannot load state from {filename}: {e}") from e

    state = import_state(text)
    if session is None:
        session = ShellSession.create(load_rc=False)
    apply_state(session, state)
    return session
