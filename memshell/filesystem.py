#!/usr/bin/env python3
"""
memshell.filesystem - an in-memory hierarchical filesystem.

The tree is made of plain mutable nodes. Directories own their children in
an insertion-ordered dict; there are no parent back-references, so every
traversal starts at the root and is addressed by a list of path segments.

Core philosophy:
- Paths are resolved to segment lists first, then walked top-down
- Primitives report domain failures through return values, never raise
- Resource ceilings belong to the caller, not to these primitives
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from .errors import FilesystemInvariantError


HOME_PATH = ['home', 'user']
DIRECTORY_SIZE = 4096
FILE_PERMISSIONS = '-rw-r--r--'
DIRECTORY_PERMISSIONS = 'drwxr-xr-x'


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NodeKind(str, Enum):
    """Kinds of filesystem nodes."""
    FILE = 'file'
    DIRECTORY = 'directory'


@dataclass
class FileSystemNode:
    """A file or directory in the in-memory tree."""
    name: str
    kind: NodeKind
    content: Optional[str] = None
    children: Optional[Dict[str, 'FileSystemNode']] = None
    permissions: str = FILE_PERMISSIONS
    created_at: datetime = field(default_factory=_now)
    modified_at: datetime = field(default_factory=_now)

    def is_file(self) -> bool:
        """Check if this is a regular file."""
        return self.kind == NodeKind.FILE

    def is_dir(self) -> bool:
        """Check if this is a directory."""
        return self.kind == NodeKind.DIRECTORY

    @property
    def size(self) -> int:
        if self.is_file():
            return len(self.content or '')
        return DIRECTORY_SIZE

    def touch(self) -> None:
        self.modified_at = _now()

    def to_dict(self) -> dict:
        """Convert node (and its subtree) to a JSON-compatible dict."""
        d = {
            'name': self.name,
            'type': self.kind.value,
            'size': self.size,
            'permissions': self.permissions,
            'createdAt': self.created_at.isoformat(),
            'modifiedAt': self.modified_at.isoformat(),
        }
        if self.is_file():
            d['content'] = self.content or ''
        else:
            d['children'] = {name: child.to_dict()
                             for name, child in (self.children or {}).items()}
        return d

    @classmethod
    def from_dict(cls, data: dict) -> 'FileSystemNode':
        """
        Rebuild a node from to_dict() output.

        Dates are re-hydrated from ISO-8601 strings; missing or unreadable
        dates fall back to the current time.
        """
        if not isinstance(data, dict):
            raise ValueError('node must be an object')
        try:
            kind = NodeKind(data.get('type'))
        except ValueError:
            raise ValueError(f"unknown node type: {data.get('type')!r}")

        name = data.get('name', '')
        if not isinstance(name, str):
            raise ValueError('node name must be a string')

        node = cls(
            name=name,
            kind=kind,
            permissions=data.get('permissions') or (
                FILE_PERMISSIONS if kind == NodeKind.FILE else DIRECTORY_PERMISSIONS),
            created_at=parse_timestamp(data.get('createdAt')),
            modified_at=parse_timestamp(data.get('modifiedAt')),
        )
        if kind == NodeKind.FILE:
            content = data.get('content', '')
            if not isinstance(content, str):
                raise ValueError(f"file content must be a string: {name}")
            node.content = content
        else:
            children = data.get('children', {})
            if not isinstance(children, dict):
                raise ValueError(f"directory children must be an object: {name}")
            node.children = {key: cls.from_dict(child) for key, child in children.items()}
        return node


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 string, falling back to now for bad input."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            pass
    return _now()


def make_file(name: str, content: str = '', permissions: str = FILE_PERMISSIONS) -> FileSystemNode:
    """Create a detached file node."""
    return FileSystemNode(name=name, kind=NodeKind.FILE, content=content,
                          permissions=permissions)


def make_directory(name: str, children: Optional[List[FileSystemNode]] = None,
                   permissions: str = DIRECTORY_PERMISSIONS) -> FileSystemNode:
    """Create a detached directory node holding the given children."""
    return FileSystemNode(name=name, kind=NodeKind.DIRECTORY,
                          children={child.name: child for child in (children or [])},
                          permissions=permissions)


@dataclass
class FileSystemState:
    """The tree root plus the working directory as path segments."""
    root: FileSystemNode
    current_path: List[str] = field(default_factory=list)


class LookupStatus(Enum):
    FOUND = 'found'
    MISSING = 'missing'
    NOT_A_DIRECTORY = 'not_a_directory'


@dataclass
class Lookup:
    """
    Result of walking a path.

    Unlike get_node_at_path(), which collapses every failure into None,
    this tells a missing segment apart from a file used as a directory.
    """
    status: LookupStatus
    node: Optional[FileSystemNode] = None

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND


def _children_of(node: FileSystemNode, path: List[str]) -> Dict[str, FileSystemNode]:
    if node.children is None:
        raise FilesystemInvariantError('directory has no children collection',
                                       format_path(path))
    return node.children


def lookup(state: FileSystemState, path: List[str]) -> Lookup:
    """Walk path from the root and report what was found."""
    current = state.root
    for i, segment in enumerate(path):
        if not current.is_dir():
            return Lookup(LookupStatus.NOT_A_DIRECTORY)
        child = _children_of(current, path[:i]).get(segment)
        if child is None:
            return Lookup(LookupStatus.MISSING)
        current = child
    return Lookup(LookupStatus.FOUND, current)


def get_node_at_path(state: FileSystemState, path: List[str]) -> Optional[FileSystemNode]:
    """Return the node at path, or None if it is missing or unreachable."""
    return lookup(state, path).node


def get_current_directory(state: FileSystemState) -> Optional[FileSystemNode]:
    """Return the node for the working directory."""
    return get_node_at_path(state, state.current_path)


def expand_tilde(input_path: str, home: Optional[List[str]] = None) -> str:
    """Expand a leading ~ to the home directory."""
    home_str = format_path(home or HOME_PATH)
    if input_path == '~':
        return home_str
    if input_path.startswith('~/'):
        return home_str + input_path[1:]
    return input_path


def _apply_segments(base: List[str], parts: List[str]) -> List[str]:
    result = list(base)
    for part in parts:
        if part == '' or part == '.':
            continue
        if part == '..':
            if result:
                result.pop()
        else:
            result.append(part)
    return result


def resolve_path(state: FileSystemState, input_path: str) -> List[str]:
    """
    Resolve a user-supplied path to absolute segments.

    Absolute paths ignore the working directory, relative ones are applied
    on top of it, and .. never climbs above the root.
    """
    expanded = expand_tilde(input_path)
    if expanded.startswith('/'):
        return _apply_segments([], expanded.split('/'))
    if expanded == '.':
        return list(state.current_path)
    return _apply_segments(state.current_path, expanded.split('/'))


def format_path(path: List[str]) -> str:
    """Format segments as an absolute path string."""
    return '/' + '/'.join(path) if path else '/'


def format_path_with_tilde(path: List[str], home: Optional[List[str]] = None) -> str:
    """Format segments, abbreviating the home directory to ~."""
    home = home or HOME_PATH
    if path[:len(home)] == home:
        rest = path[len(home):]
        return '~' + ('/' + '/'.join(rest) if rest else '')
    return format_path(path)


def _parent_directory(state: FileSystemState, path: List[str]) -> Optional[FileSystemNode]:
    parent = get_node_at_path(state, path)
    if parent is None or not parent.is_dir():
        return None
    return parent


def create_file(state: FileSystemState, path: List[str], name: str, content: str = '') -> bool:
    """Create (or replace) file name inside the directory at path."""
    parent = _parent_directory(state, path)
    if parent is None:
        return False
    _children_of(parent, path)[name] = make_file(name, content)
    parent.touch()
    return True


def create_directory(state: FileSystemState, path: List[str], name: str) -> bool:
    """Create (or replace) directory name inside the directory at path."""
    parent = _parent_directory(state, path)
    if parent is None:
        return False
    _children_of(parent, path)[name] = make_directory(name)
    parent.touch()
    return True


def delete_node(state: FileSystemState, path: List[str], name: str) -> bool:
    """Remove entry name from the directory at path."""
    parent = _parent_directory(state, path)
    if parent is None:
        return False
    children = _children_of(parent, path)
    if name not in children:
        return False
    del children[name]
    parent.touch()
    return True


def write_file(state: FileSystemState, path: List[str], content: str) -> bool:
    """
    Replace the content of the file at path, creating it if needed.

    Returns False when the parent is not a directory or the path names a
    directory.
    """
    if not path:
        return False
    node = get_node_at_path(state, path)
    if node is not None:
        if not node.is_file():
            return False
        node.content = content
        node.touch()
        return True
    return create_file(state, path[:-1], path[-1], content)


def calculate_size(node: FileSystemNode) -> int:
    """Total size of file content under node."""
    if node.is_file():
        return node.size
    return sum(calculate_size(child) for child in (node.children or {}).values())
