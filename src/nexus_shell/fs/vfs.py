"""The virtual filesystem shared by the terminal and the file explorer.

The VFS owns no data.  Every operation reads the current tree from the
store's ``file_system`` field and the current directory from
``current_directory``, works on that tree in place, and — for mutating
operations — writes the tree back through ``set_state`` so subscribers
re-render.  Skipping the write-back would leave the data changed but
every view stale.

Paths:
    - **Absolute** paths start with ``/`` and are walked from the root.
    - **Relative** paths are resolved against the current directory.
    - ``.`` and empty segments are dropped; ``..`` pops one segment and
      stops at the root.  The canonical form has no trailing slash and
      the root is exactly ``/``.

Errors are returned, not raised: every operation answers with an
``FsResult`` (see ``nexus_shell.fs.results``).

The current directory changes in exactly two ways: ``cd`` (and its
history-keeping sibling ``navigate_to``), and ``rename`` of the current
directory or one of its ancestors, which rewrites the renamed prefix so
the user stays in the same logical place under its new name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nexus_shell.fs.nodes import DirectoryNode, FileNode, Node, now_ms
from nexus_shell.fs.results import DirEntry, FsError, FsResult
from nexus_shell.state.fields import StoreField

if TYPE_CHECKING:
    from collections.abc import Callable

    from nexus_shell.state.store import Store

ROOT_PATH = "/"
DEFAULT_HISTORY_LIMIT = 50
_RESERVED_NAMES = frozenset({".", ".."})


def normalize_path(path: str | None, base: str = ROOT_PATH) -> str:
    """Resolve *path* against *base* into a canonical absolute path.

    Examples::

        normalize_path("docs/../notes", "/home")  → "/home/notes"
        normalize_path("/a//b/./", "/ignored")    → "/a/b"
        normalize_path("../../..", "/home")       → "/"

    Whitespace around each segment is dropped.  Normalizing an
    already-canonical path returns it unchanged.
    """
    raw = (path or "").strip()
    joined = raw if raw.startswith("/") else f"{base.rstrip('/')}/{raw}"
    stack: list[str] = []
    for segment in joined.split("/"):
        part = segment.strip()
        if not part or part == ".":
            continue
        if part == "..":
            if stack:
                stack.pop()
            continue
        stack.append(part)
    return "/" + "/".join(stack)


def split_path(path: str) -> tuple[str, str]:
    """Split a canonical path into (parent_path, child_name).

    Examples::

        "/foo/bar/baz.txt" → ("/foo/bar", "baz.txt")
        "/hello.txt"       → ("/", "hello.txt")
        "/"                → ("", "")

    """
    if path == ROOT_PATH:
        return ("", "")
    last_slash = path.rfind("/")
    if last_slash == 0:
        return (ROOT_PATH, path[1:])
    return (path[:last_slash], path[last_slash + 1 :])


def join_path(parent: str, name: str) -> str:
    """Append *name* to a canonical *parent* path."""
    return f"/{name}" if parent == ROOT_PATH else f"{parent}/{name}"


def _last_segment(raw: str) -> str:
    return raw.rstrip("/").rsplit("/", 1)[-1].strip()


@dataclass(frozen=True)
class NodeLookup:
    """A resolved node together with where it hangs in the tree."""

    node: Node
    parent: DirectoryNode | None
    name: str
    path: str


class VirtualFileSystem:
    """Path resolution and node CRUD over the store's file tree."""

    def __init__(
        self,
        store: Store,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Create a filesystem view over *store*.

        Args:
            store: The store that owns the tree and current directory.
            history_limit: How many directories ``navigate_to`` remembers.
            clock: Source of epoch-millisecond timestamps.

        """
        self._store = store
        self._history: list[str] = []
        self._history_limit = history_limit
        self._clock = clock

    # -- Resolution -----------------------------------------------------------

    def _root(self) -> DirectoryNode:
        return self._store.get(StoreField.FILE_SYSTEM)

    def _commit(self, extra: dict[str, object] | None = None) -> None:
        """Write the (mutated) tree back so subscribers see the change."""
        self._store.set_state({StoreField.FILE_SYSTEM: self._root(), **(extra or {})})

    def pwd(self) -> str:
        """Return the current directory."""
        return self._store.get(StoreField.CURRENT_DIRECTORY) or ROOT_PATH

    def normalize_path(self, path: str | None, base: str | None = None) -> str:
        """Resolve *path* against *base* (default: the current directory)."""
        return normalize_path(path, self.pwd() if base is None else base)

    def get_node(self, path: str | None) -> NodeLookup | None:
        """Walk from the root to *path*, one segment at a time.

        Returns:
            The lookup, or None if any segment is missing or an
            intermediate segment is not a directory.

        """
        target = self.normalize_path(path)
        current: Node = self._root()
        parent: DirectoryNode | None = None
        name = ROOT_PATH
        for part in target.split("/"):
            if not part:
                continue
            if not isinstance(current, DirectoryNode):
                return None
            child = current.children.get(part)
            if child is None:
                return None
            parent, name, current = current, part, child
        return NodeLookup(node=current, parent=parent, name=name, path=target)

    def exists(self, path: str) -> bool:
        """Check whether *path* resolves to a node."""
        return self.get_node(path) is not None

    def _parent_dir(self, parent_path: str) -> DirectoryNode | None:
        lookup = self.get_node(parent_path)
        if lookup is None or not isinstance(lookup.node, DirectoryNode):
            return None
        return lookup.node

    # -- Queries --------------------------------------------------------------

    def list(self, path: str | None = None) -> FsResult:
        """List a directory, sorted by name.

        Names are compared case-insensitively first, so ``ROADMAP.txt``
        sorts next to ``readme.txt`` rather than before every lowercase
        name.
        """
        target = self.normalize_path(path)
        lookup = self.get_node(target)
        if lookup is None or not isinstance(lookup.node, DirectoryNode):
            return FsResult.failure(FsError.NOT_A_DIRECTORY, path=target)
        children = lookup.node.children
        names = sorted(children, key=lambda n: (n.casefold(), n))
        items = tuple(DirEntry(name=n, node_type=children[n].node_type) for n in names)
        return FsResult.success(path=target, items=items)

    def read_file(self, path: str) -> FsResult:
        """Return the content of a file."""
        target = self.normalize_path(path)
        lookup = self.get_node(target)
        if lookup is None or not isinstance(lookup.node, FileNode):
            return FsResult.failure(FsError.FILE_NOT_FOUND, path=target)
        return FsResult.success(path=target, name=lookup.name, content=lookup.node.content)

    # -- Current directory ----------------------------------------------------

    def cd(self, path: str | None = None) -> FsResult:
        """Change the current directory (``None`` means the root)."""
        target = self.normalize_path(path if path is not None else ROOT_PATH)
        lookup = self.get_node(target)
        if lookup is None or not isinstance(lookup.node, DirectoryNode):
            return FsResult.failure(FsError.DIRECTORY_NOT_FOUND, path=target)
        self._store.set_state({StoreField.CURRENT_DIRECTORY: target})
        return FsResult.success(path=target)

    def navigate_to(self, path: str | None = None) -> FsResult:
        """Like ``cd``, but remember the directory being left for ``go_back``."""
        origin = self.pwd()
        result = self.cd(path)
        if result and result.path != origin:
            self._history.append(origin)
            del self._history[: -self._history_limit]
        return result

    def go_back(self) -> FsResult:
        """Return to the directory left by the last ``navigate_to``."""
        if not self._history:
            return FsResult.failure(FsError.NO_HISTORY)
        return self.cd(self._history.pop())

    @property
    def history(self) -> tuple[str, ...]:
        """Return the back-history, oldest first."""
        return tuple(self._history)

    # -- Mutations ------------------------------------------------------------

    def mkdir(self, name_or_path: str | None) -> FsResult:
        """Create an empty directory.

        Accepts a bare name (created in the current directory), a
        relative path, or an absolute path whose last segment is the
        new name.
        """
        raw = (name_or_path or "").strip()
        if not raw:
            return FsResult.failure(FsError.MISSING_NAME)
        if _last_segment(raw) in _RESERVED_NAMES:
            return FsResult.failure(FsError.INVALID_NAME, name=_last_segment(raw))

        target = self.normalize_path(raw)
        if target == ROOT_PATH:
            return FsResult.failure(FsError.ALREADY_EXISTS, name=ROOT_PATH)
        parent_path, name = split_path(target)
        parent = self._parent_dir(parent_path)
        if parent is None:
            return FsResult.failure(FsError.PARENT_NOT_FOUND, path=parent_path)
        if name in parent.children:
            return FsResult.failure(FsError.ALREADY_EXISTS, name=name)

        parent.children[name] = DirectoryNode(name=name, created=self._clock())
        self._commit()
        return FsResult.success(name=name, path=target)

    def touch(self, name_or_path: str | None, content: str = "") -> FsResult:
        """Create a file, or overwrite an existing file's content.

        Overwriting keeps the original ``created`` timestamp and updates
        ``modified``.
        """
        raw = (name_or_path or "").strip()
        if not raw:
            return FsResult.failure(FsError.MISSING_NAME)
        if _last_segment(raw) in _RESERVED_NAMES:
            return FsResult.failure(FsError.INVALID_NAME, name=_last_segment(raw))

        target = self.normalize_path(raw)
        if target == ROOT_PATH:
            return FsResult.failure(FsError.NAME_COLLISION_WITH_DIRECTORY, name=ROOT_PATH)
        parent_path, name = split_path(target)
        parent = self._parent_dir(parent_path)
        if parent is None:
            return FsResult.failure(FsError.PARENT_NOT_FOUND, path=parent_path)

        existing = parent.children.get(name)
        now = self._clock()
        match existing:
            case DirectoryNode():
                return FsResult.failure(FsError.NAME_COLLISION_WITH_DIRECTORY, name=name)
            case FileNode():
                existing.content = content
                existing.modified = now
            case None:
                parent.children[name] = FileNode(name=name, content=content, created=now, modified=now)

        self._commit()
        return FsResult.success(name=name, path=target)

    def rm(self, name_or_path: str | None) -> FsResult:
        """Delete a file or a whole directory subtree."""
        raw = (name_or_path or "").strip()
        if not raw:
            return FsResult.failure(FsError.MISSING_NAME)

        target = self.normalize_path(raw)
        if target == ROOT_PATH:
            return FsResult.failure(FsError.ROOT_PROTECTED, path=ROOT_PATH)
        parent_path, name = split_path(target)
        parent = self._parent_dir(parent_path)
        if parent is None:
            return FsResult.failure(FsError.PARENT_NOT_FOUND, path=parent_path)
        if name not in parent.children:
            return FsResult.failure(FsError.NOT_FOUND, name=name)

        del parent.children[name]
        self._commit()
        return FsResult.success(name=name, path=target)

    def rename(self, name_or_path: str | None, new_name: str | None) -> FsResult:
        """Give a node a new name within the same parent directory.

        If the current directory is the renamed node or lies beneath it,
        the current directory is rewritten with the new name in place of
        the old one.  The rewrite is a plain string-prefix substitution
        on canonical paths.
        """
        raw = (name_or_path or "").strip()
        new = (new_name or "").strip()
        if not raw:
            return FsResult.failure(FsError.MISSING_NAME)
        if not new or "/" in new or new in _RESERVED_NAMES:
            return FsResult.failure(FsError.INVALID_NAME, name=new)

        source = self.normalize_path(raw)
        if source == ROOT_PATH:
            return FsResult.failure(FsError.ROOT_PROTECTED, path=ROOT_PATH)
        parent_path, old = split_path(source)
        parent = self._parent_dir(parent_path)
        if parent is None:
            return FsResult.failure(FsError.PARENT_NOT_FOUND, path=parent_path)
        node = parent.children.get(old)
        if node is None:
            return FsResult.failure(FsError.NOT_FOUND, name=old)
        if new in parent.children:
            return FsResult.failure(FsError.ALREADY_EXISTS, name=new)

        del parent.children[old]
        node.name = new
        node.modified = self._clock()
        parent.children[new] = node
        target = join_path(parent_path, new)

        cwd = self.pwd()
        if cwd == source or cwd.startswith(source + "/"):
            moved = target + cwd[len(source) :]
            self._commit({StoreField.CURRENT_DIRECTORY: moved})
            return FsResult.success(name=new, source=source, target=target, cwd=moved)

        self._commit()
        return FsResult.success(name=new, source=source, target=target)
