import io
import zipfile

import pytest

from distribyted.archive import Archive, ArchiveFile, ZipLoader
from distribyted.vfs import MemoryFile

FILE_CONTENT = b"Hello World"


def make_zip():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zw:
        zw.writestr("path/to/test/file/1.txt", FILE_CONTENT)
        zw.writestr("path/to/empty/", b"")
    return buf.getvalue()


def make_archive():
    data = make_zip()
    return Archive(MemoryFile(data), len(data), ZipLoader())


def test_zip_filesystem():
    zfs = make_archive()
    files = zfs.read_dir("/path/to/test/file")
    assert set(files) == {"1.txt"}
    f = files["1.txt"]
    assert f.read(11) == FILE_CONTENT


def test_directory_entries_are_skipped():
    zfs = make_archive()
    assert set(zfs.read_dir("/path/to")) == {"test"}


def test_open_root_is_dir():
    zfs = make_archive()
    assert zfs.open("/").is_dir()


def test_open_file_and_read_at():
    zfs = make_archive()
    f = zfs.open("/path/to/test/file/1.txt")
    assert f.size() == 11
    assert f.is_dir() is False
    assert f.read_at(5, 6) == b"World"
    assert f.read_at(5, 0) == b"Hello"
    f.close()
    assert f.read(5) == b"Hello"
    f.close()


def test_open_missing_file():
    zfs = make_archive()
    with pytest.raises(FileNotFoundError):
        zfs.open("/path/to/nothing.txt")


def test_zip_loader_get_files():
    data = make_zip()
    files = ZipLoader().get_files(MemoryFile(data), len(data))
    assert set(files) == {"/path/to/test/file/1.txt"}
    assert files["/path/to/test/file/1.txt"].size() == 11


def test_invalid_archive_raises_every_time():
    data = b"not a zip file at all"
    zfs = Archive(MemoryFile(data), len(data), ZipLoader())
    with pytest.raises(zipfile.BadZipFile):
        zfs.read_dir("/")
    with pytest.raises(zipfile.BadZipFile):
        zfs.open("/a.txt")


def test_archive_file_close_without_read():
    calls = []

    def factory():
        calls.append(1)
        raise AssertionError("should not be opened")

    af = ArchiveFile(factory, 3)
    af.close()
    assert calls == []
    assert af.size() == 3