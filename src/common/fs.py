"""Read-only filesystem views over a definitions tree.

The analyzers only need to list a directory and read files by relative
path, so both a disk-backed and an in-memory implementation are provided.
Paths are always ``/``-separated and relative to the view's root.
"""
from __future__ import annotations

import os
import posixpath
from typing import Dict, List, Optional, Union


class FS:
    """Narrow read interface used by the reference collector and parsers."""

    def readdir(self, dir_path: str = "") -> List[str]:
        """Names of the immediate entries of ``dir_path``, sorted."""
        raise NotImplementedError

    def read_file(self, path: str) -> str:
        """Contents of ``path``; raises FileNotFoundError when missing."""
        raise NotImplementedError

    def is_directory(self, dir_path: str) -> bool:
        raise NotImplementedError

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def sub_dir(self, path: str) -> "FS":
        """A view rooted at ``path``."""
        raise NotImplementedError

    def debug_path(self) -> str:
        """Human readable location of the view's root."""
        raise NotImplementedError


def _normalize(path: str) -> str:
    if "\\" in path:
        raise ValueError(f"Expected '/' separators in path: {path!r}")
    if path in ("", "."):
        return ""
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized


class DiskFS(FS):
    """View of a directory on disk."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def _full(self, path: str) -> str:
        rel = _normalize(path)
        return os.path.join(self.root, *rel.split("/")) if rel else self.root

    def readdir(self, dir_path: str = "") -> List[str]:
        return sorted(os.listdir(self._full(dir_path)))

    def read_file(self, path: str) -> str:
        with open(self._full(path), "r", encoding="utf-8", newline="") as fh:
            return fh.read()

    def is_directory(self, dir_path: str) -> bool:
        return os.path.isdir(self._full(dir_path))

    def exists(self, path: str) -> bool:
        return os.path.exists(self._full(path))

    def sub_dir(self, path: str) -> "DiskFS":
        return DiskFS(self._full(path))

    def debug_path(self) -> str:
        return self.root


Entry = Union["Dir", str]


class Dir(dict):
    """In-memory directory: maps entry names to file text or child ``Dir``s."""

    def __init__(self, parent: Optional["Dir"] = None):
        super().__init__()
        self.parent = parent

    def subdir(self, name: str) -> "Dir":
        """Return the child directory ``name``, creating it when missing."""
        existing = self.get(name)
        if isinstance(existing, Dir):
            return existing
        if existing is not None:
            raise ValueError(f"{name} is a file, not a directory")
        child = Dir(self)
        self[name] = child
        return child

    def add_file(self, path: str, text: str) -> None:
        """Add ``text`` at a possibly nested relative ``path``."""
        *dirs, base = _normalize(path).split("/")
        target = self
        for part in dirs:
            target = target.subdir(part)
        target[base] = text


class InMemoryFS(FS):
    """View of a ``Dir`` tree; ``path_to_root`` is used for messages only."""

    def __init__(self, cur_dir: Dir, path_to_root: str = ""):
        self.cur_dir = cur_dir
        self.path_to_root = path_to_root

    def _try_get_entry(self, path: str) -> Optional[Entry]:
        rel = _normalize(path)
        if rel == "":
            return self.cur_dir
        entry: Optional[Entry] = self.cur_dir
        for part in rel.split("/"):
            if not isinstance(entry, Dir):
                return None
            if part == "..":
                entry = entry.parent
            else:
                entry = entry.get(part)
            if entry is None:
                return None
        return entry

    def readdir(self, dir_path: str = "") -> List[str]:
        entry = self._try_get_entry(dir_path)
        if not isinstance(entry, Dir):
            raise NotADirectoryError(posixpath.join(self.path_to_root, dir_path))
        return sorted(entry.keys())

    def read_file(self, path: str) -> str:
        entry = self._try_get_entry(path)
        if not isinstance(entry, str):
            raise FileNotFoundError(posixpath.join(self.path_to_root, path))
        return entry

    def is_directory(self, dir_path: str) -> bool:
        return isinstance(self._try_get_entry(dir_path), Dir)

    def exists(self, path: str) -> bool:
        return self._try_get_entry(path) is not None

    def sub_dir(self, path: str) -> "InMemoryFS":
        entry = self._try_get_entry(path)
        if not isinstance(entry, Dir):
            raise NotADirectoryError(posixpath.join(self.path_to_root, path))
        return InMemoryFS(entry, posixpath.join(self.path_to_root, _normalize(path)))

    def debug_path(self) -> str:
        return self.path_to_root


def files_by_path(fs: FS, dir_path: str = "") -> Dict[str, str]:
    """Every file below ``dir_path`` keyed by its path relative to the view."""
    found: Dict[str, str] = {}
    for name in fs.readdir(dir_path):
        path = posixpath.join(dir_path, name) if dir_path else name
        if fs.is_directory(path):
            found.update(files_by_path(fs, path))
        else:
            found[path] = fs.read_file(path)
    return found
