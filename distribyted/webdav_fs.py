"""Read-only view of a virtual filesystem in the shape a WebDAV server needs."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from typing import NoReturn

from distribyted.vfs import File, FileInfo, Filesystem, clean_path


class OperationNotSupported(Exception):
    """Raised for operations that a read-only filesystem does not support."""

    def __init__(self, operation: str, paths: tuple[str, ...] = ()) -> None:
        self.operation = operation
        self.paths = paths
        target = ", ".join(paths)
        message = f"{operation} is not supported on a read-only filesystem"
        super().__init__(f"{message}: {target}" if target else message)


def _refuse(operation: str, *names: str) -> NoReturn:
    raise OperationNotSupported(operation, tuple(clean_path(n) for n in names))


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rpartition("/")[2]


class WebDAVFile:
    """An open file or directory with its own read position."""

    def __init__(
        self,
        name: str,
        file: File,
        dir_func: Callable[[], list[FileInfo]],
    ) -> None:
        self._file = file
        self._info = FileInfo(name, file.size(), file.is_dir())
        self._dir_func = dir_func
        self._dir_content: list[FileInfo] | None = None
        self._dir_pos = 0
        self._dir_lock = threading.Lock()
        self._pos = 0
        self._pos_lock = threading.Lock()

    def __enter__(self) -> WebDAVFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def readdir(self, count: int) -> list[FileInfo]:
        """Return up to ``count`` further entries, or all of them if ``count`` <= 0.

        Raises EOFError when no entries remain and ``count`` > 0.
        """
        with self._dir_lock:
            if not self._info.is_dir:
                raise NotADirectoryError(self._info.name)
            if self._dir_content is None:
                self._dir_content = self._dir_func()
            content = self._dir_content
            start = self._dir_pos
            if start >= len(content):
                if count > 0:
                    raise EOFError("no more directory entries")
                return []
            if count > 0:
                self._dir_pos = min(start + count, len(content))
            else:
                self._dir_pos = len(content)
                start = 0
            return content[start:self._dir_pos]

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        with self._pos_lock:
            if size < 0:
                size = max(self._info.size - self._pos, 0)
            data = self._file.read_at(size, self._pos)
            self._pos += len(data)
            return data

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self._pos_lock:
            if whence == os.SEEK_SET:
                self._pos = offset
            elif whence == os.SEEK_CUR:
                self._pos += offset
            elif whence == os.SEEK_END:
                self._pos = self._info.size + offset
            else:
                raise ValueError(f"invalid whence: {whence}")
            return self._pos

    def write(self, data: bytes) -> int:
        _refuse("write", self._info.name)

    def close(self) -> None:
        self._file.close()


class WebDAVFs:
    """Exposes a filesystem through the operations of a WebDAV server."""

    def __init__(self, fs: Filesystem) -> None:
        self._fs = fs

    def open_file(self, name: str, flag: int = os.O_RDONLY, perm: int = 0) -> WebDAVFile:
        path = "/" + name
        file = self._fs.open(path)
        return WebDAVFile(_base_name(path), file, lambda: self._list_dir(path))

    def stat(self, name: str) -> FileInfo:
        file = self._fs.open("/" + name)
        return FileInfo(name, file.size(), file.is_dir())

    def mkdir(self, name: str, perm: int = 0) -> None:
        _refuse("mkdir", name)

    def remove_all(self, name: str) -> None:
        _refuse("remove_all", name)

    def rename(self, old_name: str, new_name: str) -> None:
        _refuse("rename", old_name, new_name)

    def _list_dir(self, path: str) -> list[FileInfo]:
        return [
            FileInfo(name, file.size(), file.is_dir())
            for name, file in self._fs.read_dir(path).items()
        ]