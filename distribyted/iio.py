"""Readers that add random access or seeking on top of other readers."""

from __future__ import annotations

import os
import tempfile
import threading
from typing import IO, Protocol

_CHUNK_SIZE = 64 * 1024


class _RandomAccess(Protocol):
    def read_at(self, size: int, offset: int) -> bytes: ...

    def close(self) -> None: ...


class DiskTeeReader:
    """Random access over a sequential stream.

    Everything read from the source is copied to a temporary file, so that
    earlier parts of the stream can be read again at any offset.
    """

    def __init__(self, source: IO[bytes]) -> None:
        self._source = source
        self._cache = tempfile.TemporaryFile(prefix="dtb_tmp")
        self._cached = 0
        self._closed = False
        self._lock = threading.Lock()

    def __enter__(self) -> DiskTeeReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed reader")

    def _tee(self, size: int) -> bytes:
        data = self._source.read(size)
        if data:
            self._cache.seek(0, os.SEEK_END)
            self._cache.write(data)
            self._cached += len(data)
        return data

    def read_at(self, size: int, offset: int) -> bytes:
        """Return up to ``size`` bytes starting at ``offset``; fewer at end of stream."""
        if offset < 0:
            raise ValueError("negative offset")
        if size < 0:
            raise ValueError("negative size")
        with self._lock:
            self._check_open()
            missing = offset + size - self._cached
            while missing > 0:
                chunk = self._tee(min(missing, _CHUNK_SIZE))
                if not chunk:
                    break
                missing -= len(chunk)
            self._cache.seek(offset)
            return self._cache.read(size)

    def read(self, size: int = -1) -> bytes:
        """Read the next bytes of the source stream, keeping a copy on disk."""
        with self._lock:
            self._check_open()
            return self._tee(size)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cache.close()
            self._source.close()


class SeekerWrapper:
    """Adds a read position and seeking to a reader that only reads at offsets."""

    def __init__(self, reader: _RandomAccess, size: int) -> None:
        self._reader = reader
        self._size = size
        self._pos = 0
        self._lock = threading.Lock()

    def __enter__(self) -> SeekerWrapper:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self._lock:
            if whence == os.SEEK_SET:
                self._pos = offset
            elif whence == os.SEEK_CUR:
                self._pos += offset
            elif whence == os.SEEK_END:
                self._pos = self._size + offset
            else:
                raise ValueError(f"invalid whence: {whence}")
            return self._pos

    def read(self, size: int = -1) -> bytes:
        with self._lock:
            if size < 0:
                size = max(self._size - self._pos, 0)
            data = self._reader.read_at(size, self._pos)
            self._pos += len(data)
            return data

    def read_at(self, size: int, offset: int) -> bytes:
        return self._reader.read_at(size, offset)

    def close(self) -> None:
        self._reader.close()