"""A filesystem that mounts several filesystems under their own paths."""

from __future__ import annotations

from collections.abc import Mapping

from distribyted.archive import Archive, ZipLoader
from distribyted.vfs import File, Filesystem, FsFactory, Storage

SUPPORTED_FACTORIES: dict[str, FsFactory] = {
    ".zip": lambda f: Archive(f, f.size(), ZipLoader()),
}


class ContainerFs(Filesystem):
    """Joins filesystems, each mounted at a path, into one tree."""

    def __init__(self, filesystems: Mapping[str, Filesystem]) -> None:
        self._storage = Storage(SUPPORTED_FACTORIES)
        for path, fs in filesystems.items():
            self._storage.add_fs(fs, path)

    def open(self, filename: str) -> File:
        return self._storage.get(filename)

    def read_dir(self, path: str) -> dict[str, File]:
        return self._storage.children(path)