"""Filesystems backed by the contents of an archive file."""

from __future__ import annotations

import io
import threading
import zipfile
from collections.abc import Callable
from functools import partial
from typing import Protocol

from distribyted.iio import DiskTeeReader
from distribyted.vfs import Dir, File, Filesystem, Storage, clean_path


class _RandomAccess(Protocol):
    def read_at(self, size: int, offset: int) -> bytes: ...


class _Loader(Protocol):
    def get_files(self, reader: File, size: int) -> dict[str, ArchiveFile]: ...


class _ReadAtStream(io.RawIOBase):
    """A seekable binary stream over a reader that reads at offsets."""

    def __init__(self, reader: _RandomAccess, size: int) -> None:
        super().__init__()
        self._reader = reader
        self._size = size
        self._pos = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            pos = offset
        elif whence == io.SEEK_CUR:
            pos = self._pos + offset
        elif whence == io.SEEK_END:
            pos = self._size + offset
        else:
            raise ValueError(f"invalid whence: {whence}")
        if pos < 0:
            raise ValueError("negative seek position")
        self._pos = pos
        return pos

    def readinto(self, buffer) -> int:
        data = self._reader.read_at(len(buffer), self._pos)
        count = len(data)
        buffer[:count] = data
        self._pos += count
        return count


class ArchiveFile(File):
    """A file inside an archive, decompressed lazily on first read."""

    def __init__(self, reader_factory: Callable[[], DiskTeeReader], length: int) -> None:
        self._reader_factory = reader_factory
        self._reader: DiskTeeReader | None = None
        self._length = length

    def _load(self) -> DiskTeeReader:
        if self._reader is None:
            self._reader = self._reader_factory()
        return self._reader

    def size(self) -> int:
        return self._length

    def is_dir(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        return self._load().read(size)

    def read_at(self, size: int, offset: int) -> bytes:
        return self._load().read_at(size, offset)

    def close(self) -> None:
        if self._reader is not None:
            reader, self._reader = self._reader, None
            reader.close()


class ZipLoader:
    """Lists the files of a zip archive."""

    def get_files(self, reader: File, size: int) -> dict[str, ArchiveFile]:
        stream = io.BufferedReader(_ReadAtStream(reader, size))
        archive = zipfile.ZipFile(stream)
        return {
            clean_path(info.filename): ArchiveFile(
                partial(self._open_member, archive, info), info.file_size
            )
            for info in archive.infolist()
            if not info.is_dir()
        }

    @staticmethod
    def _open_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> DiskTeeReader:
        return DiskTeeReader(archive.open(info))


class Archive(Filesystem):
    """A filesystem exposing the files inside an archive."""

    def __init__(self, reader: File, size: int, loader: _Loader) -> None:
        self._reader = reader
        self._size = size
        self._loader = loader
        self._storage = Storage()
        self._loaded = False
        self._error: Exception | None = None
        self._lock = threading.Lock()

    def _load_once(self) -> None:
        with self._lock:
            if self._error is not None:
                raise self._error
            if self._loaded:
                return
            try:
                files = self._loader.get_files(self._reader, self._size)
                for name, file in files.items():
                    self._storage.add(file, name)
            except Exception as exc:
                self._error = exc
                raise
            self._loaded = True

    def open(self, filename: str) -> File:
        if filename == "/":
            return Dir()
        self._load_once()
        return self._storage.get(filename)

    def read_dir(self, path: str) -> dict[str, File]:
        self._load_once()
        return self._storage.children(path)