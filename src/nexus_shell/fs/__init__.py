"""Virtual filesystem subsystem — nodes, results, and path operations.

Re-exports public symbols so callers can write::

    from nexus_shell.fs import VirtualFileSystem, FsError
"""

from nexus_shell.fs.nodes import (
    DirectoryNode,
    FileNode,
    Node,
    NodeType,
    default_file_tree,
    merge_defaults,
    node_from_dict,
    tree_from_dict,
    tree_to_dict,
)
from nexus_shell.fs.results import DirEntry, FsError, FsResult
from nexus_shell.fs.vfs import NodeLookup, VirtualFileSystem, normalize_path, split_path

__all__ = [
    "DirEntry",
    "DirectoryNode",
    "FileNode",
    "FsError",
    "FsResult",
    "Node",
    "NodeLookup",
    "NodeType",
    "VirtualFileSystem",
    "default_file_tree",
    "merge_defaults",
    "node_from_dict",
    "normalize_path",
    "split_path",
    "tree_from_dict",
    "tree_to_dict",
]
