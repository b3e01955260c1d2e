"""Download, upload and piece statistics of torrents, grouped by route."""

from __future__ import annotations

import enum
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

_GAP_SECONDS = 2.0


class TorrentNotFoundError(LookupError):
    """Raised when statistics are asked for a torrent that is not tracked."""

    def __init__(self, info_hash: str) -> None:
        super().__init__(f"torrent not found: {info_hash}")
        self.info_hash = info_hash


class PieceStatus(str, enum.Enum):
    CHECKING = "H"
    PARTIAL = "P"
    COMPLETE = "C"
    WAITING = "W"
    ERROR = "?"


@dataclass
class PieceChunk:
    status: PieceStatus
    num_pieces: int


@dataclass
class TorrentStats:
    name: str = ""
    hash: str = ""
    downloaded_bytes: int = 0
    uploaded_bytes: int = 0
    peers: int = 0
    seeders: int = 0
    time_passed: float = 0.0
    piece_chunks: list[PieceChunk] = field(default_factory=list)
    total_pieces: int = 0
    piece_size: int = 0


@dataclass
class GlobalTorrentStats:
    downloaded_bytes: int
    uploaded_bytes: int
    time_passed: float


@dataclass
class RouteStats:
    name: str
    torrent_stats: list[TorrentStats]


class _Counters(Protocol):
    bytes_read_data: int
    bytes_written_data: int
    total_peers: int
    connected_seeders: int


class _PieceStateRun(Protocol):
    checking: bool
    partial: bool
    complete: bool
    ok: bool
    length: int


class _Info(Protocol):
    piece_length: int


class _Torrent(Protocol):
    @property
    def info_hash(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def info(self) -> _Info | None: ...

    def stats(self) -> _Counters: ...

    def piece_state_runs(self) -> Iterable[_PieceStateRun]: ...


@dataclass
class _Sample:
    total_download_bytes: int = 0
    download_bytes: int = 0
    total_upload_bytes: int = 0
    upload_bytes: int = 0
    peers: int = 0
    seeders: int = 0
    time: float = 0.0


def _piece_status(run: _PieceStateRun) -> PieceStatus:
    if run.checking:
        return PieceStatus.CHECKING
    if run.partial:
        return PieceStatus.PARTIAL
    if run.complete:
        return PieceStatus.COMPLETE
    if not run.ok:
        return PieceStatus.ERROR
    return PieceStatus.WAITING


class Stats:
    """Tracks torrents by route and measures their transfer between calls.

    Measurements taken less than two seconds after the last global
    measurement repeat the previous values instead of sampling again.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._torrents: dict[str, _Torrent] = {}
        self._by_route: dict[str, dict[str, _Torrent]] = {}
        self._previous: dict[str, _Sample] = {}
        self._global_time = clock()

    def add_route(self, route: str) -> None:
        with self._lock:
            self._by_route.setdefault(route, {})

    def add(self, route: str, torrent: _Torrent) -> None:
        with self._lock:
            info_hash = torrent.info_hash
            self._torrents[info_hash] = torrent
            self._previous[info_hash] = _Sample()
            self._by_route.setdefault(route, {})[info_hash] = torrent

    def delete(self, route: str, info_hash: str) -> None:
        with self._lock:
            self._torrents.pop(info_hash, None)
            self._previous.pop(info_hash, None)
            route_torrents = self._by_route.get(route)
            if route_torrents is not None:
                route_torrents.pop(info_hash, None)

    def stats(self, info_hash: str) -> TorrentStats:
        with self._lock:
            torrent = self._torrents.get(info_hash)
            if torrent is None:
                raise TorrentNotFoundError(info_hash)
            return self._stats(self._clock(), torrent, chunks=True)

    def routes_stats(self) -> list[RouteStats]:
        """Statistics of every route, routes and torrents sorted by name."""
        with self._lock:
            now = self._clock()
            out = []
            for route, torrents in self._by_route.items():
                torrent_stats = sorted(
                    (self._stats(now, t, chunks=True) for t in torrents.values()),
                    key=lambda ts: ts.name,
                )
                out.append(RouteStats(name=route, torrent_stats=torrent_stats))
            out.sort(key=lambda rs: rs.name)
            return out

    def global_stats(self) -> GlobalTorrentStats:
        with self._lock:
            now = self._clock()
            downloaded = 0
            uploaded = 0
            for torrent in self._torrents.values():
                ts = self._stats(now, torrent, chunks=False)
                downloaded += ts.downloaded_bytes
                uploaded += ts.uploaded_bytes
            passed = now - self._global_time
            self._global_time = now
            return GlobalTorrentStats(
                downloaded_bytes=downloaded,
                uploaded_bytes=uploaded,
                time_passed=passed,
            )

    def _return_previous(self, now: float) -> bool:
        return now - self._global_time < _GAP_SECONDS

    def _stats(self, now: float, torrent: _Torrent, chunks: bool) -> TorrentStats:
        info_hash = torrent.info_hash
        previous = self._previous.get(info_hash)
        if previous is None:
            return TorrentStats()

        ts = TorrentStats()
        if self._return_previous(now):
            ts.downloaded_bytes = previous.download_bytes
            ts.uploaded_bytes = previous.upload_bytes
        else:
            counters = torrent.stats()
            read = counters.bytes_read_data
            written = counters.bytes_written_data
            sample = _Sample(
                total_download_bytes=read,
                download_bytes=read - previous.total_download_bytes,
                total_upload_bytes=written,
                upload_bytes=written - previous.total_upload_bytes,
                peers=counters.total_peers,
                seeders=counters.connected_seeders,
                time=now,
            )
            ts.downloaded_bytes = sample.download_bytes
            ts.uploaded_bytes = sample.upload_bytes
            ts.peers = sample.peers
            ts.seeders = sample.seeders
            self._previous[info_hash] = sample

        ts.time_passed = now - previous.time
        if chunks:
            ts.piece_chunks = [
                PieceChunk(status=_piece_status(run), num_pieces=run.length)
                for run in torrent.piece_state_runs()
            ]
        ts.total_pieces = sum(chunk.num_pieces for chunk in ts.piece_chunks)
        ts.hash = info_hash
        ts.name = torrent.name
        info = torrent.info
        if info is not None:
            ts.piece_size = info.piece_length
        return ts