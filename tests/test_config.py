import pytest

from distribyted.config import (
    METADATA_FOLDER,
    MOUNT_FOLDER,
    FuseGlobal,
    Handler,
    HTTPGlobal,
    Log,
    Root,
    Route,
    Torrent,
    TorrentGlobal,
    add_defaults,
    default_config,
    dump_root,
    load_root,
)


def test_template_config(tmp_path):
    path = tmp_path / "config" / "config.yaml"
    handler = Handler(path)

    raw = handler.get_raw()

    assert path.read_bytes() == raw
    assert load_root(raw) == default_config()


def test_handler_get_of_created_file_matches_defaults(tmp_path):
    handler = Handler(tmp_path / "config.yaml")
    assert handler.get() == default_config()


def test_defaults():
    dr = add_defaults(Root())

    assert dr.fuse is None
    assert dr.http_global is not None
    assert dr.log is not None
    assert dr.torrent is not None

    dr = add_defaults(Root(fuse=FuseGlobal()))
    assert dr.fuse is not None
    assert dr.fuse.path == MOUNT_FOLDER


def test_defaults_values():
    dr = add_defaults(Root())
    assert dr.torrent.add_timeout == 60
    assert dr.torrent.read_timeout == 120
    assert dr.torrent.global_cache_size == 2048
    assert dr.torrent.metadata_folder == METADATA_FOLDER
    assert dr.http_global.ip == "0.0.0.0"


def test_defaults_keep_given_values():
    root = Root(
        torrent=TorrentGlobal(add_timeout=5, read_timeout=7, metadata_folder="meta"),
        http_global=HTTPGlobal(ip="127.0.0.1"),
        fuse=FuseGlobal(path="mnt"),
    )
    dr = add_defaults(root)
    assert dr is root
    assert dr.torrent.add_timeout == 5
    assert dr.torrent.read_timeout == 7
    assert dr.torrent.metadata_folder == "meta"
    assert dr.http_global.ip == "127.0.0.1"
    assert dr.fuse.path == "mnt"


def test_load_root_fields():
    text = """
http:
  port: 8080
  ip: 127.0.0.1
  httpfs: true
webdav:
  port: 9000
  user: someone
  pass: password
log:
  debug: true
  path: logs
routes:
  - name: films
    torrents:
      - magnet_uri: "magnet:?xt=urn:btih:abc"
      - torrent_path: /tmp/x.torrent
unknown_key: 1
"""
    root = load_root(text)
    assert root.http_global == HTTPGlobal(port=8080, ip="127.0.0.1", httpfs=True)
    assert root.webdav.user == "someone"
    assert root.webdav.password == "password"
    assert root.log == Log(debug=True, path="logs")
    assert root.torrent is None
    assert root.fuse is None
    assert root.routes == [
        Route(
            name="films",
            torrents=[
                Torrent(magnet_uri="magnet:?xt=urn:btih:abc"),
                Torrent(torrent_path="/tmp/x.torrent"),
            ],
        )
    ]


def test_load_empty_document():
    assert load_root("") == Root()


def test_load_invalid_yaml():
    with pytest.raises(ValueError):
        load_root("http: [")


def test_load_wrong_type():
    with pytest.raises(ValueError):
        load_root("http:\n  port: abc\n")


def test_load_wrong_section_type():
    with pytest.raises(ValueError):
        load_root("routes: 3\n")


def test_dump_omits_empty_optional_fields():
    text = dump_root(Root(torrent=TorrentGlobal(), routes=[Route(name="r", torrents=[Torrent()])]))
    assert "read_timeout" not in text
    assert "magnet_uri" not in text
    assert load_root(text) == Root(torrent=TorrentGlobal(), routes=[Route(name="r", torrents=[Torrent()])])


def test_dump_load_round_trip():
    root = default_config()
    assert load_root(dump_root(root)) == root


def test_get_raw_existing_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_bytes(b"http:\n  port: 1234\n")
    handler = Handler(path)
    assert handler.get_raw() == b"http:\n  port: 1234\n"
    assert handler.get().http_global.port == 1234


def test_get_raw_unreadable(tmp_path):
    with pytest.raises(OSError):
        Handler(tmp_path).get_raw()