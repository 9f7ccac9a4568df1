"""Outcomes of virtual filesystem operations.

Filesystem operations never raise for user mistakes (a missing path, a
name collision).  They return an ``FsResult`` instead, and the caller
decides whether that becomes an inline message, an alert, or a terminal
line.  ``FsResult`` is truthy on success, so the common pattern reads::

    result = vfs.mkdir("notes")
    if not result:
        print(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from nexus_shell.fs.nodes import NodeType


class FsError(StrEnum):
    """Every way a filesystem operation can fail."""

    MISSING_NAME = "missing_name"
    NOT_FOUND = "not_found"
    FILE_NOT_FOUND = "file_not_found"
    DIRECTORY_NOT_FOUND = "directory_not_found"
    ALREADY_EXISTS = "already_exists"
    NAME_COLLISION_WITH_DIRECTORY = "name_collision_with_directory"
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    INVALID_NAME = "invalid_name"
    PARENT_NOT_FOUND = "parent_not_found"
    ROOT_PROTECTED = "root_protected"
    NO_HISTORY = "no_history"


ERROR_MESSAGES: dict[FsError, str] = {
    FsError.MISSING_NAME: "Missing name",
    FsError.NOT_FOUND: "Not found",
    FsError.FILE_NOT_FOUND: "File not found",
    FsError.DIRECTORY_NOT_FOUND: "Directory not found",
    FsError.ALREADY_EXISTS: "Already exists",
    FsError.NAME_COLLISION_WITH_DIRECTORY: "A directory with that name exists",
    FsError.NOT_A_DIRECTORY: "Not a directory",
    FsError.NOT_A_FILE: "Not a file",
    FsError.INVALID_NAME: "Invalid name",
    FsError.PARENT_NOT_FOUND: "Parent directory not found",
    FsError.ROOT_PROTECTED: "Refusing to modify root",
    FsError.NO_HISTORY: "No previous directory",
}


@dataclass(frozen=True)
class DirEntry:
    """One line of a directory listing."""

    name: str
    node_type: NodeType


@dataclass(frozen=True)
class FsResult:
    """The outcome of a filesystem operation.

    Only the attributes relevant to the operation are set: ``items`` for
    ``list``, ``content`` for ``read_file``, ``source``/``target`` for
    ``rename``, ``cwd`` when the current directory moved as a side effect.
    """

    ok: bool
    error: FsError | None = None
    path: str | None = None
    name: str | None = None
    items: tuple[DirEntry, ...] = ()
    content: str | None = None
    source: str | None = None
    target: str | None = None
    cwd: str | None = None

    @classmethod
    def success(cls, **fields: Any) -> FsResult:
        """Build a successful result."""
        return cls(ok=True, **fields)

    @classmethod
    def failure(cls, error: FsError, **fields: Any) -> FsResult:
        """Build a failed result carrying *error*."""
        return cls(ok=False, error=error, **fields)

    @property
    def message(self) -> str:
        """Return a human-readable description of the outcome."""
        if self.error is None:
            return "OK"
        subject = self.name or self.path
        text = ERROR_MESSAGES[self.error]
        return f"{text}: {subject}" if subject else text

    def __bool__(self) -> bool:
        """Return True when the operation succeeded."""
        return self.ok
