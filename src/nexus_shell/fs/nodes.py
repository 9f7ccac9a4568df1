"""Virtual filesystem nodes and the stock desktop tree.

The tree is made of two node kinds:

- **FileNode**: a named text file.  ``size`` is always derived from the
  content, never stored independently.
- **DirectoryNode**: a named mapping of child name → node.  A child is
  stored under exactly its own name, so names are unique per parent.

Unlike an inode table, the nodes nest directly: the root directory *is*
the tree.  The state store holds that root as the value of its
``file_system`` field, and the persisted snapshot wraps it as
``{"/": <root>}``.

Timestamps are integer milliseconds since the epoch so that snapshots
stay plain JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from time import time
from typing import Any, TypeAlias

ROOT_KEY = "/"
ROOT_NAME = "root"


class NodeType(StrEnum):
    """The kind of object a node represents."""

    FILE = "file"
    DIRECTORY = "directory"


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time() * 1000)


@dataclass
class FileNode:
    """A text file in the virtual filesystem."""

    name: str
    content: str = ""
    created: int = field(default_factory=now_ms)
    modified: int | None = None

    node_type = NodeType.FILE

    @property
    def size(self) -> int:
        """Return the length of the file content."""
        return len(self.content)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the file to a JSON-ready dictionary."""
        data: dict[str, Any] = {
            "type": self.node_type.value,
            "name": self.name,
            "content": self.content,
            "size": self.size,
            "created": self.created,
        }
        if self.modified is not None:
            data["modified"] = self.modified
        return data


@dataclass
class DirectoryNode:
    """A directory holding named children."""

    name: str
    children: dict[str, Node] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    created: int = field(default_factory=now_ms)
    modified: int | None = None

    node_type = NodeType.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        """Serialize the directory and its whole subtree."""
        data: dict[str, Any] = {
            "type": self.node_type.value,
            "name": self.name,
            "children": {key: child.to_dict() for key, child in self.children.items()},
            "created": self.created,
        }
        if self.modified is not None:
            data["modified"] = self.modified
        return data


Node: TypeAlias = FileNode | DirectoryNode


def _timestamp(value: Any, default: int | None) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return int(value)


def node_from_dict(data: Any, *, name: str | None = None) -> Node:
    """Rebuild a node (and its subtree) from ``to_dict()`` output.

    Args:
        data: The serialized node.
        name: The key the node is stored under.  When given it wins over
            the serialized ``name`` so a child always matches its key.

    Raises:
        ValueError: If the data does not describe a valid node.

    """
    if not isinstance(data, dict):
        msg = f"Node must be an object, got {type(data).__name__}"
        raise ValueError(msg)

    node_name = name if name is not None else data.get("name")
    if not isinstance(node_name, str):
        msg = "Node is missing a name"
        raise ValueError(msg)

    created = _timestamp(data.get("created"), now_ms())
    modified = _timestamp(data.get("modified"), None)
    match data.get("type"):
        case NodeType.FILE:
            content = data.get("content", "")
            if not isinstance(content, str):
                msg = f"File content must be a string: {node_name}"
                raise ValueError(msg)
            return FileNode(name=node_name, content=content, created=created or 0, modified=modified)
        case NodeType.DIRECTORY:
            raw_children = data.get("children") or {}
            if not isinstance(raw_children, dict):
                msg = f"Directory children must be an object: {node_name}"
                raise ValueError(msg)
            children: dict[str, Node] = {
                key: node_from_dict(child, name=key) for key, child in raw_children.items()
            }
            return DirectoryNode(name=node_name, children=children, created=created or 0, modified=modified)
        case other:
            msg = f"Unknown node type: {other!r}"
            raise ValueError(msg)


def tree_to_dict(root: DirectoryNode) -> dict[str, Any]:
    """Wrap the root directory in the persisted ``{"/": ...}`` layout."""
    return {ROOT_KEY: root.to_dict()}


def tree_from_dict(data: Any) -> DirectoryNode:
    """Unwrap a persisted tree and return its root directory.

    Raises:
        ValueError: If the layout is wrong or the root is not a directory.

    """
    if not isinstance(data, dict) or ROOT_KEY not in data:
        msg = "File tree must be an object with a '/' root"
        raise ValueError(msg)
    root = node_from_dict(data[ROOT_KEY])
    if not isinstance(root, DirectoryNode):
        msg = "File tree root must be a directory"
        raise ValueError(msg)
    return root


def _file(name: str, content: str, created: int) -> FileNode:
    return FileNode(name=name, content=content, created=created)


def _dir(name: str, created: int, *children: Node) -> DirectoryNode:
    return DirectoryNode(name=name, children={c.name: c for c in children}, created=created)


def default_file_tree() -> DirectoryNode:
    """Build the stock tree a fresh desktop starts with."""
    now = now_ms()
    readme = (
        "Welcome to Nexus Shell!\n\n"
        "Tips:\n"
        "- Double click folders to open\n"
        "- Right click for actions\n"
        "- Use the path bar to jump to any directory\n"
    )
    notes = (
        "# Notes\n\n"
        "- Terminal + File Explorer are connected to the virtual FS\n"
        "- Wallpapers live in assets/wallpapers\n"
    )
    return _dir(
        ROOT_NAME,
        now,
        _dir(
            "home",
            now,
            _dir(
                "documents",
                now,
                _file("readme.txt", readme, now),
                _file("notes.md", notes, now),
                _dir(
                    "projects",
                    now,
                    _dir(
                        "nexus-shell",
                        now,
                        _file("ROADMAP.txt", "Next ideas:\n- File search\n- Drag & drop move\n- More apps\n", now),
                    ),
                ),
            ),
            _dir(
                "downloads",
                now,
                _file("installer.log", "[ok] downloaded: nexus-shell.zip\n[ok] extracted\n[ok] launched\n", now),
            ),
            _dir(
                "pictures",
                now,
                _dir(
                    "wallpapers",
                    now,
                    _file("preview-1.jpg", "assets/wallpapers/1.jpg", now),
                    _file("preview-2.jpg", "assets/wallpapers/2.jpg", now),
                    _file("preview-18.png", "assets/wallpapers/18.png", now),
                ),
                _dir(
                    "camera",
                    now,
                    _file("IMG_0001.jpg", "assets/wallpapers/3.jpg", now),
                    _file("IMG_0002.png", "assets/wallpapers/33.png", now),
                ),
            ),
        ),
        _dir(
            "system",
            now,
            _dir("bin", now, _file("nexus", '#!/bin/sh\necho "nexus"\n', now)),
            _dir("config", now, _file("settings.json", '{\n  "theme": "dark"\n}\n', now)),
        ),
    )


def merge_defaults(existing: Node, defaults: Node) -> Node:
    """Deep-merge *defaults* into *existing* without destroying user edits.

    - A default child missing from the existing tree is added.
    - A child present in both is merged recursively when both are
      directories; otherwise the existing node is kept as-is.
    - Children that exist only in the existing tree are untouched.

    The existing tree is modified in place and returned.
    """
    if not isinstance(existing, DirectoryNode) or not isinstance(defaults, DirectoryNode):
        return existing
    for name, default_child in defaults.children.items():
        current = existing.children.get(name)
        if current is None:
            existing.children[name] = default_child
        else:
            existing.children[name] = merge_defaults(current, default_child)
    return existing
