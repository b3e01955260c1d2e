"""Configuration model, defaults and the YAML file that holds them."""

import dataclasses
import types
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

METADATA_FOLDER = "./distribyted-data/metadata"
MOUNT_FOLDER = "./distribyted-data/mount"
LOGS_FOLDER = "./distribyted-data/logs"
SERVER_FOLDER = "./distribyted-data/served-folders/server"

_WEBDAV_CREDENTIAL_KEY = "pass"

_DEFAULT_MAGNETS = (
    "magnet:?xt=urn:btih:c9e15763f722f23e98a29decdfae341b98d53056&dn=Cosmos+Laundromat",
    "magnet:?xt=urn:btih:dd8255ecdc7ca55fb0bbf81323d87062db1f6d1c&dn=Big+Buck+Bunny",
    "magnet:?xt=urn:btih:08ada5a7a6183aae1e09d831df6748d566095a10&dn=Sintel",
    "magnet:?xt=urn:btih:209c8226b299b308beaf2b9cd3fb49212dbd13ec&dn=Tears+of+Steel",
    "magnet:?xt=urn:btih:a88fda5954e89178c372716a6a78b8180ed4dad3"
    "&dn=The+WIRED+CD+-+Rip.+Sample.+Mash.+Share",
)


def _key(name: str, *, omitempty: bool = False, **kwargs: Any) -> Any:
    return field(metadata={"yaml": name, "omitempty": omitempty}, **kwargs)


@dataclass
class Log:
    debug: bool = _key("debug", default=False)
    max_backups: int = _key("max_backups", default=0)
    max_size: int = _key("max_size", default=0)
    max_age: int = _key("max_age", default=0)
    path: str = _key("path", default="")


@dataclass
class TorrentGlobal:
    read_timeout: int = _key("read_timeout", omitempty=True, default=0)
    add_timeout: int = _key("add_timeout", omitempty=True, default=0)
    global_cache_size: int = _key("global_cache_size", omitempty=True, default=0)
    metadata_folder: str = _key("metadata_folder", omitempty=True, default="")
    disable_ipv6: bool = _key("disable_ipv6", omitempty=True, default=False)


@dataclass
class WebDAVGlobal:
    port: int = _key("port", default=0)
    user: str = _key("user", default_factory=str)
    password: str = _key(_WEBDAV_CREDENTIAL_KEY, default_factory=str)


@dataclass
class HTTPGlobal:
    port: int = _key("port", default=0)
    ip: str = _key("ip", default="")
    httpfs: bool = _key("httpfs", default=False)


@dataclass
class FuseGlobal:
    allow_other: bool = _key("allow_other", omitempty=True, default=False)
    path: str = _key("path", default="")


@dataclass
class Torrent:
    magnet_uri: str = _key("magnet_uri", omitempty=True, default="")
    torrent_path: str = _key("torrent_path", omitempty=True, default="")


@dataclass
class Route:
    name: str = _key("name", default="")
    torrents: list[Torrent] = _key("torrents", default_factory=list)


@dataclass
class Server:
    name: str = _key("name", default="")
    path: str = _key("path", default="")
    trackers: list[str] = _key("trackers", default_factory=list)
    tracker_url: str = _key("tracker_url", default="")


@dataclass
class Root:
    """The whole configuration file."""

    http_global: HTTPGlobal | None = _key("http", default=None)
    webdav: WebDAVGlobal | None = _key("webdav", default=None)
    torrent: TorrentGlobal | None = _key("torrent", default=None)
    fuse: FuseGlobal | None = _key("fuse", default=None)
    log: Log | None = _key("log", default=None)
    routes: list[Route] = _key("routes", default_factory=list)
    servers: list[Server] = _key("servers", default_factory=list)


def default_config() -> Root:
    """The configuration written when no configuration file exists."""
    password = "password"
    return Root(
        http_global=HTTPGlobal(port=4444, ip="0.0.0.0", httpfs=True),
        webdav=WebDAVGlobal(port=36911, user="admin", password=password),
        torrent=TorrentGlobal(
            global_cache_size=2048,
            metadata_folder=METADATA_FOLDER,
            add_timeout=60,
            read_timeout=120,
        ),
        fuse=FuseGlobal(allow_other=False, path=MOUNT_FOLDER),
        log=Log(path=LOGS_FOLDER, max_backups=2, max_size=50),
        routes=[
            Route(
                name="multimedia",
                torrents=[Torrent(magnet_uri=m) for m in _DEFAULT_MAGNETS],
            )
        ],
        servers=[Server(name="server", path=SERVER_FOLDER, trackers=[])],
    )


def add_defaults(root: Root) -> Root:
    """Fill in missing values of ``root`` in place and return it."""
    if root.torrent is None:
        root.torrent = TorrentGlobal()
    if root.torrent.add_timeout == 0:
        root.torrent.add_timeout = 60
    if root.torrent.read_timeout == 0:
        root.torrent.read_timeout = 120
    if root.torrent.global_cache_size == 0:
        root.torrent.global_cache_size = 2048  # megabytes
    if not root.torrent.metadata_folder:
        root.torrent.metadata_folder = METADATA_FOLDER

    if root.fuse is not None and not root.fuse.path:
        root.fuse.path = MOUNT_FOLDER

    if root.http_global is None:
        root.http_global = HTTPGlobal()
    if not root.http_global.ip:
        root.http_global.ip = "0.0.0.0"

    if root.log is None:
        root.log = Log()

    return root


def _decode_scalar(tp: type, value: Any, where: str) -> Any:
    if tp is bool:
        if isinstance(value, bool):
            return value
        raise ValueError(f"{where}: expected a boolean, got {value!r}")
    if tp is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ValueError(f"{where}: expected an integer, got {value!r}")
    if tp is str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        raise ValueError(f"{where}: expected a string, got {value!r}")
    raise TypeError(f"{where}: unsupported field type {tp!r}")


def _decode(tp: Any, value: Any, where: str) -> Any:
    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        if value is None:
            return None
        (inner,) = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        return _decode(inner, value, where)
    if origin is list:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError(f"{where}: expected a list")
        (item_type,) = typing.get_args(tp)
        return [
            _decode(item_type, item, f"{where}[{index}]")
            for index, item in enumerate(value)
        ]
    if dataclasses.is_dataclass(tp):
        if value is None:
            return tp()
        return _decode_dataclass(tp, value, where)
    return _decode_scalar(tp, value, where)


def _decode_dataclass(cls: type, mapping: Any, where: str) -> Any:
    if not isinstance(mapping, dict):
        raise ValueError(f"{where}: expected a mapping")
    values = {}
    for f in dataclasses.fields(cls):
        key = f.metadata["yaml"]
        raw = mapping.get(key)
        if raw is not None:
            values[f.name] = _decode(f.type, raw, f"{where}.{key}")
    return cls(**values)


def load_root(data: str | bytes) -> Root:
    """Parse a YAML document into a configuration; raise ValueError if invalid."""
    try:
        document = yaml.safe_load(data)
        if document is None:
            return Root()
        return _decode_dataclass(Root, document, "config")
    except (yaml.YAMLError, ValueError) as exc:
        raise ValueError(f"error parsing configuration file: {exc}") from exc


def _encode(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        out = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if f.metadata["omitempty"] and not item:
                continue
            out[f.metadata["yaml"]] = _encode(item)
        return out
    if isinstance(value, list):
        return [_encode(item) for item in value]
    return value


def dump_root(root: Root) -> str:
    """Render a configuration as a YAML document."""
    return yaml.safe_dump(_encode(root), sort_keys=False, allow_unicode=True)


class Handler:
    """Reads the configuration file, creating it from the defaults if missing."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _create_from_template(self) -> bytes:
        data = dump_root(default_config()).encode("utf-8")
        try:
            self.path.parent.mkdir(mode=0o744, parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(
                f"error creating path for configuration file: {self.path}"
            ) from exc
        self.path.write_bytes(data)
        return data

    def get_raw(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            print(
                "configuration file does not exist, creating from template file:",
                self.path,
            )
            return self._create_from_template()

    def get(self) -> Root:
        return add_defaults(load_root(self.get_raw()))