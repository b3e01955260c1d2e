"""Filesystem over the files of torrents, read on demand with timeouts."""

from __future__ import annotations

import contextlib
import os
import threading
from collections.abc import Callable, Iterable
from typing import Protocol

from distribyted.container import SUPPORTED_FACTORIES
from distribyted.vfs import File, Filesystem, Storage


class _TorrentReader(Protocol):
    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int: ...

    def read(self, size: int, timeout: float) -> bytes:
        """Read up to ``size`` bytes; raise TimeoutError after ``timeout`` seconds."""

    def close(self) -> None: ...


class _TorrentFileHandle(Protocol):
    @property
    def path(self) -> str: ...

    @property
    def length(self) -> int: ...

    def new_reader(self) -> _TorrentReader: ...


class _TorrentHandle(Protocol):
    @property
    def info_hash(self) -> str: ...

    def wait_info(self) -> None: ...

    def files(self) -> Iterable[_TorrentFileHandle]: ...


def read_at_least(reader: _TorrentReader, timeout: float, size: int, minimum: int) -> bytes:
    """Read from ``reader`` until at least ``minimum`` of at most ``size`` bytes arrive.

    Returns b"" if the stream ends before any byte, and raises EOFError if it
    ends part way. Each single read may take at most ``timeout`` seconds.
    """
    if size < minimum:
        raise ValueError("short buffer")
    data = bytearray()
    while len(data) < minimum:
        chunk = reader.read(size - len(data), timeout)
        if not chunk:
            break
        data += chunk
    if len(data) >= minimum:
        return bytes(data)
    if data:
        raise EOFError("unexpected EOF")
    return b""


class _ReadAtWrapper:
    """Random access reads over a seekable torrent reader."""

    def __init__(self, reader: _TorrentReader, timeout: float) -> None:
        self._reader = reader
        self._timeout = timeout
        self._lock = threading.Lock()

    def read(self, size: int) -> bytes:
        return self._reader.read(size, self._timeout)

    def read_at(self, size: int, offset: int) -> bytes:
        with self._lock:
            self._reader.seek(offset, os.SEEK_SET)
            return read_at_least(self._reader, self._timeout, size, size)

    def close(self) -> None:
        with self._lock:
            self._reader.close()


class TorrentFile(File):
    """A file inside a torrent; its reader is created on first use."""

    def __init__(
        self,
        reader_factory: Callable[[], _TorrentReader],
        length: int,
        timeout: float,
    ) -> None:
        self._reader_factory = reader_factory
        self._reader: _ReadAtWrapper | None = None
        self._length = length
        self._timeout = timeout

    def _load(self) -> _ReadAtWrapper:
        if self._reader is None:
            self._reader = _ReadAtWrapper(self._reader_factory(), self._timeout)
        return self._reader

    def size(self) -> int:
        return self._length

    def is_dir(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = self._length
        return self._load().read(size)

    def read_at(self, size: int, offset: int) -> bytes:
        return self._load().read_at(size, offset)

    def close(self) -> None:
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()


class TorrentFs(Filesystem):
    """Shows the files of a set of torrents as one tree."""

    def __init__(self, read_timeout: float) -> None:
        self._read_timeout = read_timeout
        self._storage = Storage(SUPPORTED_FACTORIES)
        self._torrents: dict[str, _TorrentHandle] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def add_torrent(self, torrent: _TorrentHandle) -> None:
        with self._lock:
            self._loaded = False
            self._torrents[torrent.info_hash] = torrent

    def remove_torrent(self, info_hash: str) -> None:
        with self._lock:
            self._storage.clear()
            self._loaded = False
            self._torrents.pop(info_hash, None)

    def _load(self) -> None:
        with self._lock:
            if self._loaded:
                return
            for torrent in self._torrents.values():
                torrent.wait_info()
                for handle in torrent.files():
                    file = TorrentFile(handle.new_reader, handle.length, self._read_timeout)
                    with contextlib.suppress(FileExistsError):
                        self._storage.add(file, handle.path)
            self._loaded = True

    def open(self, filename: str) -> File:
        self._load()
        return self._storage.get(filename)

    def read_dir(self, path: str) -> dict[str, File]:
        self._load()
        return self._storage.children(path)