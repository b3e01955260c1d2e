import base64
import sqlite3

import pytest

from distribyted.config import Route, Torrent
from distribyted.loader import ConfigLoader, MagnetDB, parse_magnet_info_hash

M1 = "magnet:?xt=urn:btih:c9e15763f722f23e98a29decdfae341b98d53056"
H1 = "c9e15763f722f23e98a29decdfae341b98d53056"


@pytest.fixture
def db(tmp_path):
    store = MagnetDB(tmp_path / "service")
    yield store
    store.close()


def test_db(db):
    with pytest.raises(ValueError):
        db.add_magnet("route1", "WRONG MAGNET")

    db.add_magnet("route1", M1)
    db.add_magnet("route2", M1)

    listed = db.list_magnets()
    assert len(listed) == 2
    assert listed["route1"] == [M1]
    assert listed["route2"] == [M1]

    assert db.remove_from_hash("other", H1) is False
    assert db.remove_from_hash("route1", H1) is True

    listed = db.list_magnets()
    assert len(listed) == 1
    assert listed["route2"] == [M1]


def test_db_persists_between_opens(tmp_path):
    with MagnetDB(tmp_path / "db") as first:
        first.add_magnet("films", M1)
    with MagnetDB(tmp_path / "db") as second:
        assert second.list_magnets() == {"films": [M1]}


def test_db_close(tmp_path):
    store = MagnetDB(tmp_path / "db")
    store.close()
    with pytest.raises(sqlite3.ProgrammingError):
        store.list_magnets()


def test_db_remove_bad_hash(db):
    with pytest.raises(ValueError):
        db.remove_from_hash("route1", "not-a-hash")


def test_db_uppercase_magnet_hash_stored_lowercase(db):
    db.add_magnet("r", "magnet:?xt=urn:btih:" + H1.upper())
    assert db.remove_from_hash("r", H1) is True


def test_db_has_no_torrent_paths(db):
    db.add_magnet("r", M1)
    assert db.list_torrent_paths() == {}


def test_parse_magnet_hex():
    assert parse_magnet_info_hash(M1) == H1


def test_parse_magnet_base32_round_trip():
    encoded = base64.b32encode(bytes.fromhex(H1)).decode()
    assert parse_magnet_info_hash("magnet:?xt=urn:btih:" + encoded) == H1


@pytest.mark.parametrize(
    "uri",
    [
        "WRONG MAGNET",
        "http://example.com/?xt=urn:btih:" + H1,
        "magnet:?dn=nothing",
        "magnet:?xt=urn:btih:1234",
        "magnet:?xt=urn:btih:" + "z" * 40,
    ],
)
def test_parse_magnet_errors(uri):
    with pytest.raises(ValueError):
        parse_magnet_info_hash(uri)


def test_config_loader():
    loader = ConfigLoader(
        [
            Route(
                name="r1",
                torrents=[Torrent(magnet_uri=M1), Torrent(torrent_path="/data/a.torrent")],
            ),
            Route(name="r2", torrents=[]),
        ]
    )
    assert loader.list_magnets() == {"r1": [M1], "r2": []}
    assert loader.list_torrent_paths() == {"r1": ["/data/a.torrent"], "r2": []}