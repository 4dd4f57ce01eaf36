import struct

import pytest

from scmavl.scm import META_SIZE, SCM_SIGNATURE, Scm, ScmError
from scmavl.system import page_size


@pytest.fixture
def backing(tmp_path):
    path = tmp_path / "scm.bin"
    path.write_bytes(b"\xff" * (page_size() * 4))
    return str(path)


def test_truncate_gives_empty_region(backing):
    with Scm(backing, truncate=True) as scm:
        assert scm.utilized() == 0
        assert scm.capacity() == page_size() * 4
        assert scm.mbase() == 0


def test_truncate_zeroes_data(backing):
    with Scm(backing, truncate=True) as scm:
        assert scm.read(0, 64) == bytes(64)


def test_malloc_is_sequential(backing):
    with Scm(backing, truncate=True) as scm:
        first = scm.malloc(10)
        second = scm.malloc(5)
        assert first == scm.mbase()
        assert second == first + 10
        assert scm.utilized() == 15


def test_strdup_round_trip(backing):
    with Scm(backing, truncate=True) as scm:
        offset = scm.strdup("hello")
        assert scm.read_string(offset) == "hello"
        assert scm.utilized() == len("hello") + 1


def test_write_read_round_trip(backing):
    with Scm(backing, truncate=True) as scm:
        offset = scm.malloc(4)
        scm.write(offset, b"abcd")
        assert scm.read(offset, 4) == b"abcd"


def test_data_persists_after_reopen(backing):
    with Scm(backing, truncate=True) as scm:
        offset = scm.strdup("persistent")
        used = scm.utilized()
    with Scm(backing) as scm:
        assert scm.utilized() == used
        assert scm.read_string(offset) == "persistent"


def test_metadata_layout(backing):
    with Scm(backing, truncate=True) as scm:
        scm.strdup("abc")
        used = scm.utilized()
    with open(backing, "rb") as fh:
        size, signature, checksum = struct.unpack("<QQQ", fh.read(META_SIZE))
    assert size == used
    assert signature == SCM_SIGNATURE
    assert checksum == size ^ signature


def test_invalid_metadata_starts_empty(backing, capsys):
    with Scm(backing) as scm:
        assert scm.utilized() == 0
    assert "signature" in capsys.readouterr().err


def test_malloc_out_of_space(backing):
    with Scm(backing, truncate=True) as scm:
        with pytest.raises(ScmError):
            scm.malloc(scm.capacity())
        assert scm.utilized() == 0


def test_malloc_negative(backing):
    with Scm(backing, truncate=True) as scm:
        with pytest.raises(ValueError):
            scm.malloc(-1)


def test_read_out_of_range(backing):
    with Scm(backing, truncate=True) as scm:
        with pytest.raises(ScmError):
            scm.read(scm.capacity(), 1)


def test_capacity_rounds_down_to_page(tmp_path):
    path = tmp_path / "odd.bin"
    path.write_bytes(bytes(page_size() * 2 + 100))
    with Scm(str(path), truncate=True) as scm:
        assert scm.capacity() == page_size() * 2


def test_file_smaller_than_page(tmp_path):
    path = tmp_path / "tiny.bin"
    path.write_bytes(bytes(100))
    with pytest.raises(ScmError):
        Scm(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(ScmError):
        Scm(str(tmp_path / "missing.bin"))


def test_use_after_close(backing):
    scm = Scm(backing, truncate=True)
    scm.close()
    with pytest.raises(ScmError):
        scm.malloc(1)