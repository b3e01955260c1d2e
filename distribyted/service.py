"""Adds torrents to the client, the statistics and the route filesystems."""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from distribyted.loader import Loader, LoaderAdder
from distribyted.stats import Stats
from distribyted.torrentfs import TorrentFs
from distribyted.vfs import Filesystem, clean_path

_log = logging.getLogger("distribyted.torrent-service")

_HASH_SIZE = 20


class _Client(Protocol):
    def add_magnet(self, magnet: str) -> Any: ...

    def add_torrent_from_file(self, path: str) -> Any: ...

    def torrent(self, info_hash: str) -> Any | None: ...


class Service:
    """Keeps torrents of every route in the client, the stats and the filesystems."""

    def __init__(
        self,
        config_loader: Loader,
        db: LoaderAdder,
        stats: Stats,
        client: _Client,
        add_timeout: float,
        read_timeout: float,
    ) -> None:
        self._config_loader = config_loader
        self._db = db
        self._stats = stats
        self._client = client
        self._add_timeout = add_timeout
        self._read_timeout = read_timeout
        self._filesystems: dict[str, Filesystem] = {}
        self._lock = threading.Lock()

    def load(self) -> dict[str, Filesystem]:
        """Add the torrents of the configuration and the database; return filesystems by folder."""
        _log.info("adding torrents from configuration")
        self._load(self._config_loader)
        _log.info("adding torrents from database")
        self._load(self._db)
        return self._filesystems

    def _load(self, loader: Loader) -> None:
        for route, magnets in loader.list_magnets().items():
            self._add_route(route)
            for magnet in magnets:
                self._add_magnet(route, magnet)
        for route, paths in loader.list_torrent_paths().items():
            self._add_route(route)
            for path in paths:
                self._add_torrent(route, self._client.add_torrent_from_file(path))

    def add_magnet(self, route: str, magnet: str) -> None:
        self._add_magnet(route, magnet)
        self._db.add_magnet(route, magnet)

    def _add_magnet(self, route: str, magnet: str) -> None:
        self._add_torrent(route, self._client.add_magnet(magnet))

    def _add_route(self, route: str) -> None:
        self._stats.add_route(route)
        folder = clean_path(route)
        with self._lock:
            if folder not in self._filesystems:
                self._filesystems[folder] = TorrentFs(self._read_timeout)

    def _add_torrent(self, route: str, torrent: Any) -> None:
        if torrent.info is None:
            _log.info("getting torrent info: %s", torrent.info_hash)
            if not torrent.wait_info(self._add_timeout):
                _log.error("timeout getting torrent info: %s", torrent.info_hash)
                raise TimeoutError("timeout getting torrent info")
            _log.info("obtained torrent info: %s", torrent.info_hash)

        self._stats.add(route, torrent)

        folder = clean_path(route)
        with self._lock:
            fs = self._filesystems.get(folder)
            if not isinstance(fs, TorrentFs):
                raise RuntimeError("error adding torrent to filesystem")
            fs.add_torrent(torrent)
        _log.info("torrent added: %s on route %s", torrent.name, route)

    def remove_from_hash(self, route: str, info_hash: str) -> None:
        if not self._db.remove_from_hash(route, info_hash):
            raise LookupError(
                f"element with hash {info_hash} on route {route} cannot be removed"
            )

        self._stats.delete(route, info_hash)

        folder = clean_path(route)
        with self._lock:
            fs = self._filesystems.get(folder)
        if not isinstance(fs, TorrentFs):
            raise RuntimeError("error removing torrent from filesystem")
        fs.remove_torrent(info_hash)

        if len(info_hash) != 2 * _HASH_SIZE:
            raise ValueError(f"hash string has bad length: {len(info_hash)}")
        bytes.fromhex(info_hash)

        torrent = self._client.torrent(info_hash)
        if torrent is not None:
            torrent.drop()