# texscope/integrations/FileSystemBridge.py
"""FileSystemBridge.py
========================
Default filesystem collaborator for the texscope core.

The search and inspection components never touch the disk directly. They ask a
filesystem object for two things: the raw bytes of a file and the entries of a
directory. This module provides the local-disk implementation of that contract.
Any object exposing the same two methods (an in-memory tree in tests, a remote
workspace) can be passed in its place.

Errors are not absorbed here. `OSError` propagates to the caller, which decides
how to degrade.
"""

import os
from typing import NamedTuple, Protocol


class DirEntry(NamedTuple):
    """A single directory listing entry."""

    name: str
    is_dir: bool


class FileSystem(Protocol):
    """Structural type for filesystem collaborators."""

    def read_bytes(self, path: str) -> bytes: ...

    def list_dir(self, path: str) -> list[DirEntry]: ...


# ================= FileSystemBridge Class ==============================
class FileSystemBridge:
    """Reads files and lists directories on the local disk."""

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f_binary:
            return f_binary.read()

    def list_dir(self, path: str) -> list[DirEntry]:
        """Returns the entries of `path` sorted by name.

        Symlinks to directories are reported as files so that recursive walks
        cannot loop.
        """
        entries: list[DirEntry] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                entries.append(DirEntry(entry.name, is_dir))
        entries.sort(key=lambda e: e.name)
        return entries
