"""Adapter that serves a virtual filesystem as files for an HTTP file server."""

from __future__ import annotations

import os
import threading

from distribyted.iio import SeekerWrapper
from distribyted.vfs import File, FileInfo, Filesystem


class HTTPFile:
    """An open file with seeking and listing, as an HTTP file server uses them."""

    def __init__(self, file: File, dir_content: list[FileInfo], info: FileInfo) -> None:
        self._reader = SeekerWrapper(file, file.size())
        self._dir_content = dir_content
        self._info = info
        self._dir_pos = 0
        self._lock = threading.Lock()

    def __enter__(self) -> HTTPFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def readdir(self, count: int) -> list[FileInfo]:
        """Return up to ``count`` further entries, or all of them if ``count`` <= 0.

        Raises EOFError when no entries remain and ``count`` > 0.
        """
        with self._lock:
            if not self._info.is_dir:
                raise NotADirectoryError(self._info.name)
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

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._reader.seek(offset, whence)

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def read_at(self, size: int, offset: int) -> bytes:
        return self._reader.read_at(size, offset)

    def close(self) -> None:
        self._reader.close()


class HTTPFS:
    """Opens files of a virtual filesystem for serving over HTTP."""

    def __init__(self, fs: Filesystem) -> None:
        self._fs = fs

    def open(self, name: str) -> HTTPFile:
        file = self._fs.open(name)
        info = FileInfo(name, file.size(), file.is_dir())
        entries = [
            FileInfo(entry, child.size(), child.is_dir())
            for entry, child in self._fs.read_dir(name).items()
        ]
        return HTTPFile(file, entries, info)