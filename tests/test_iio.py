import io
import os

import pytest

from distribyted.iio import DiskTeeReader, SeekerWrapper
from distribyted.vfs import MemoryFile

TEST_DATA = b"Hello World"


def test_read_data():
    reader = DiskTeeReader(io.BytesIO(TEST_DATA))
    assert reader.read_at(5, 6) == b"World"
    assert reader.read_at(5, 0) == b"Hello"
    reader.close()


def test_read_data_eof():
    reader = DiskTeeReader(io.BytesIO(TEST_DATA))
    assert reader.read_at(6, 6) == b"World"
    reader.close()


def test_read_beyond_end_is_empty():
    reader = DiskTeeReader(io.BytesIO(TEST_DATA))
    assert reader.read_at(4, 50) == b""
    reader.close()


def test_sequential_read_then_random_access():
    reader = DiskTeeReader(io.BytesIO(TEST_DATA))
    assert reader.read(5) == b"Hello"
    assert reader.read(1) == b" "
    assert reader.read_at(5, 0) == b"Hello"
    assert reader.read_at(5, 6) == b"World"
    assert reader.read() == b""
    reader.close()


def test_negative_offset_rejected():
    reader = DiskTeeReader(io.BytesIO(TEST_DATA))
    with pytest.raises(ValueError):
        reader.read_at(2, -1)
    reader.close()


def test_close_closes_source_and_reader():
    source = io.BytesIO(TEST_DATA)
    with DiskTeeReader(source) as reader:
        assert reader.read_at(2, 0) == b"He"
    assert source.closed
    with pytest.raises(ValueError):
        reader.read_at(2, 0)


def test_seeker_wrapper():
    mf = MemoryFile(TEST_DATA)
    wrapper = SeekerWrapper(mf, mf.size())
    assert wrapper.seek(6, os.SEEK_SET) == 6
    assert wrapper.read(5) == b"World"
    wrapper.close()


def test_seeker_wrapper_current_and_end():
    mf = MemoryFile(TEST_DATA)
    wrapper = SeekerWrapper(mf, mf.size())
    assert wrapper.read(2) == b"He"
    assert wrapper.seek(1, os.SEEK_CUR) == 3
    assert wrapper.read(2) == b"lo"
    assert wrapper.seek(-5, os.SEEK_END) == 6
    assert wrapper.read() == b"World"
    assert wrapper.read_at(4, 0) == b"Hell"


def test_seeker_wrapper_invalid_whence():
    mf = MemoryFile(TEST_DATA)
    wrapper = SeekerWrapper(mf, mf.size())
    with pytest.raises(ValueError):
        wrapper.seek(0, 7)