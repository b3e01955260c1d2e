"""Sources of magnets and torrent files to load, by route."""

from __future__ import annotations

import base64
import binascii
import posixpath
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from distribyted.config import Route

_ROUTE_ROOT_KEY = "/route/"
_DB_FILE = "magnets.sqlite"
_HASH_SIZE = 20


class Loader(ABC):
    """Lists torrents to load, keyed by route name."""

    @abstractmethod
    def list_magnets(self) -> dict[str, list[str]]: ...

    @abstractmethod
    def list_torrent_paths(self) -> dict[str, list[str]]: ...


class LoaderAdder(Loader):
    """A loader that torrents can also be added to and removed from."""

    @abstractmethod
    def remove_from_hash(self, route: str, info_hash: str) -> bool: ...

    @abstractmethod
    def add_magnet(self, route: str, magnet: str) -> None: ...


class ConfigLoader(Loader):
    """Torrents listed in the configuration file."""

    def __init__(self, routes: Iterable[Route]) -> None:
        self._routes = list(routes)

    def list_magnets(self) -> dict[str, list[str]]:
        return {
            route.name: [t.magnet_uri for t in route.torrents if t.magnet_uri]
            for route in self._routes
        }

    def list_torrent_paths(self) -> dict[str, list[str]]:
        return {
            route.name: [t.torrent_path for t in route.torrents if t.torrent_path]
            for route in self._routes
        }


def _decode_hex_hash(value: str) -> bytes:
    if len(value) != 2 * _HASH_SIZE:
        raise ValueError(f"hash string has bad length: {len(value)}")
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"invalid hex hash: {value!r}") from exc


def parse_magnet_info_hash(uri: str) -> str:
    """Return the lower case hex info hash of a magnet URI."""
    parts = urlsplit(uri)
    if parts.scheme != "magnet":
        raise ValueError(f"unexpected scheme: {parts.scheme!r}")
    for topic in parse_qs(parts.query).get("xt", []):
        prefix, _, encoded = topic.rpartition(":")
        if prefix != "urn:btih":
            continue
        if len(encoded) == 2 * _HASH_SIZE:
            raw = _decode_hex_hash(encoded)
        elif len(encoded) == 32:
            try:
                raw = base64.b32decode(encoded.upper())
            except binascii.Error as exc:
                raise ValueError(f"invalid base32 hash: {encoded!r}") from exc
        else:
            raise ValueError(f"unhandled info hash length: {len(encoded)}")
        return raw.hex()
    raise ValueError("missing xt parameter with a btih topic")


class MagnetDB(LoaderAdder):
    """Magnets added at run time, persisted in a database directory."""

    def __init__(self, path: str | Path) -> None:
        directory = Path(path)
        directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(directory / _DB_FILE, check_same_thread=False)
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS entries "
                "(key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )

    def __enter__(self) -> MagnetDB:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _route_key(info_hash: str, route: str) -> str:
        return posixpath.normpath(posixpath.join(_ROUTE_ROOT_KEY, info_hash, route))

    def add_magnet(self, route: str, magnet: str) -> None:
        key = self._route_key(parse_magnet_info_hash(magnet), route)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO entries (key, value) VALUES (?, ?)",
                (key, magnet),
            )

    def remove_from_hash(self, route: str, info_hash: str) -> bool:
        _decode_hex_hash(info_hash)
        key = self._route_key(info_hash, route)
        with self._lock, self._conn:
            cursor = self._conn.execute("DELETE FROM entries WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def list_magnets(self) -> dict[str, list[str]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT key, value FROM entries ORDER BY key"
            ).fetchall()
        out: dict[str, list[str]] = {}
        for key, value in rows:
            if not key.startswith(_ROUTE_ROOT_KEY):
                continue
            route = posixpath.basename(key)
            out.setdefault(route, []).append(value)
        return out

    def list_torrent_paths(self) -> dict[str, list[str]]:
        return {}

    def close(self) -> None:
        with self._lock:
            self._conn.close()