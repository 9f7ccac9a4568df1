"""Durable key-value storage for the persisted snapshot.

The store writes its snapshot as one JSON string under one key, the
same way a browser page would use ``localStorage``.  Two backends
implement the ``Storage`` protocol:

- ``MemoryStorage`` — a dict; state survives only as long as the object.
  Used by tests and by desktops that opt out of persistence.
- ``FileStorage`` — one ``<key>.json`` file per key in a directory,
  written and read whole with ``pathlib``.

Backends report failure by raising (``OSError`` for I/O, ``ValueError``
for bad keys).  They do not swallow errors: the store decides that a
failed write is non-fatal, not the backend.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class Storage(Protocol):
    """Anything that can hold string values under string keys."""

    def read(self, key: str) -> str | None:
        """Return the value stored under *key*, or None if absent."""
        ...

    def write(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete *key*; absent keys are ignored."""
        ...


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Create a storage area, optionally pre-populated (copied)."""
        self._items: dict[str, str] = dict(initial) if initial else {}

    def read(self, key: str) -> str | None:
        """Return the value stored under *key*, or None if absent."""
        return self._items.get(key)

    def write(self, key: str, value: str) -> None:
        """Store *value* under *key*."""
        self._items[key] = value

    def remove(self, key: str) -> None:
        """Delete *key* if present."""
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        """Return every stored key."""
        return list(self._items)

    def usage(self) -> int:
        """Return the total number of characters held (keys + values)."""
        return sum(len(k) + len(v) for k, v in self._items.items())


class FileStorage:
    """Directory-backed storage: each key is a ``<key>.json`` file.

    The directory is created on first write.
    """

    def __init__(self, directory: Path) -> None:
        """Create a storage area rooted at *directory*."""
        self._directory = directory

    @property
    def directory(self) -> Path:
        """Return the directory holding the stored files."""
        return self._directory

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            msg = f"Invalid storage key: {key!r}"
            raise ValueError(msg)
        return self._directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        """Return the file content for *key*, or None if there is no file.

        Raises:
            OSError: If the file exists but cannot be read.

        """
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        """Write *value* to the file for *key*.

        Raises:
            OSError: If the directory or file cannot be written.

        """
        path = self._path_for(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        """Delete the file for *key* if it exists."""
        self._path_for(key).unlink(missing_ok=True)
