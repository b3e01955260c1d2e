"""Virtual read-only filesystem primitives and the path storage behind them."""

from __future__ import annotations

import posixpath
import stat
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime

SEPARATOR = "/"


class File(ABC):
    """A read-only file or directory."""

    @abstractmethod
    def size(self) -> int: ...

    @abstractmethod
    def is_dir(self) -> bool: ...

    @abstractmethod
    def read(self, size: int = -1) -> bytes: ...

    @abstractmethod
    def read_at(self, size: int, offset: int) -> bytes: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self) -> File:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Filesystem(ABC):
    """A read-only tree of files."""

    @abstractmethod
    def open(self, filename: str) -> File:
        """Return the file at ``filename``; raise FileNotFoundError if missing."""

    @abstractmethod
    def read_dir(self, path: str) -> dict[str, File]:
        """Return the entries of the directory at ``path`` by name."""


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    is_dir: bool

    def mode(self) -> int:
        if self.is_dir:
            return stat.S_IFDIR | 0o555
        return 0o555

    def mod_time(self) -> datetime:
        return datetime.now().astimezone()


class Dir(File):
    """An empty directory node."""

    def size(self) -> int:
        return 0

    def is_dir(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        return b""

    def read_at(self, size: int, offset: int) -> bytes:
        return b""

    def close(self) -> None:
        pass


class MemoryFile(File):
    """A file whose content is held in memory."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._lock = threading.Lock()

    def size(self) -> int:
        return len(self._data)

    def is_dir(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        with self._lock:
            end = len(self._data) if size < 0 else self._pos + size
            chunk = self._data[self._pos:end]
            self._pos += len(chunk)
            return chunk

    def read_at(self, size: int, offset: int) -> bytes:
        if offset < 0:
            raise ValueError("negative offset")
        return self._data[offset:offset + size]

    def close(self) -> None:
        pass


FsFactory = Callable[[File], Filesystem]


def clean_path(path: str) -> str:
    """Normalise a path to an absolute, slash separated form."""
    cleaned = posixpath.normpath(SEPARATOR + path.replace("\\", "/"))
    if cleaned.startswith("//"):
        cleaned = SEPARATOR + cleaned.lstrip("/")
    return cleaned


def _extension(path: str) -> str:
    name = path.rpartition(SEPARATOR)[2]
    index = name.rfind(".")
    return name[index:] if index >= 0 else ""


class Storage:
    """Path index of files and mounted filesystems.

    Files whose extension has a factory are turned into filesystems of their
    own, so that their contents appear below their path.
    """

    def __init__(self, factories: Mapping[str, FsFactory] | None = None) -> None:
        self._factories: Mapping[str, FsFactory] = factories or {}
        self._files: dict[str, File] = {}
        self._filesystems: dict[str, Filesystem] = {}
        self._children: dict[str, dict[str, File]] = {}

    def clear(self) -> None:
        self._files = {}
        self._filesystems = {}
        self._children = {}
        self.add(Dir(), SEPARATOR)

    def has(self, path: str) -> bool:
        path = clean_path(path)
        if path in self._files:
            return True
        try:
            return self._get_file_from_fs(path) is not None
        except Exception:
            return False

    def _ensure_free(self, path: str) -> bool:
        """Return True if ``path`` is unused; raise if a file already occupies it."""
        if not self.has(path):
            return True
        try:
            existing = self.get(path)
        except Exception:
            return False
        if not existing.is_dir():
            raise FileExistsError(path)
        return False

    def add_fs(self, fs: Filesystem, path: str) -> None:
        path = clean_path(path)
        if not self._ensure_free(path):
            return
        self._filesystems[path] = fs
        self._create_parent(path, Dir())

    def add(self, file: File, path: str) -> None:
        path = clean_path(path)
        if not self._ensure_free(path):
            return
        factory = self._factories.get(_extension(path))
        if factory is not None:
            self._filesystems[path] = factory(file)
        else:
            self._files[path] = file
        self._create_parent(path, file)

    def _create_parent(self, path: str, file: File) -> None:
        base, _, filename = path.rpartition(SEPARATOR)
        base = clean_path(base)
        self.add(Dir(), base)
        siblings = self._children.setdefault(base, {})
        if filename:
            siblings[filename] = file

    def children(self, path: str) -> dict[str, File]:
        path = clean_path(path)
        try:
            return self._get_dir_from_fs(path)
        except FileNotFoundError:
            return dict(self._children.get(path, {}))

    def get(self, path: str) -> File:
        path = clean_path(path)
        if not self.has(path):
            raise FileNotFoundError(path)
        file = self._files.get(path)
        if file is not None:
            return file
        return self._get_file_from_fs(path)

    def _get_file_from_fs(self, path: str) -> File:
        for prefix, fs in self._filesystems.items():
            if path.startswith(prefix):
                return fs.open(SEPARATOR + path[len(prefix):])
        raise FileNotFoundError(path)

    def _get_dir_from_fs(self, path: str) -> dict[str, File]:
        for prefix, fs in self._filesystems.items():
            if path.startswith(prefix):
                return fs.read_dir(path[len(prefix):])
        raise FileNotFoundError(path)


class Memory(Filesystem):
    """A filesystem kept entirely in memory."""

    def __init__(self) -> None:
        self.storage = Storage()

    def open(self, filename: str) -> File:
        return self.storage.get(filename)

    def read_dir(self, path: str) -> dict[str, File]:
        return self.storage.children(path)