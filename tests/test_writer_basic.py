import pytest

from decalpak.errors import WriteError, E_WRITE_IO
from decalpak.packing.writer import write_entry


def test_write_creates_parents(tmp_path):
    out = tmp_path / "nested" / "dir" / "entry.pak"
    n = write_entry(b"abc" * 100, out)
    assert n == 300
    assert out.read_bytes() == b"abc" * 100
    assert sorted(p.name for p in out.parent.iterdir()) == ["entry.pak"]


def test_write_replaces_existing(tmp_path):
    out = tmp_path / "entry.pak"
    out.write_bytes(b"old contents")
    write_entry(bytearray(b"new"), out)
    assert out.read_bytes() == b"new"


def test_failed_write_leaves_no_temp(tmp_path):
    target = tmp_path / "entry.pak"
    target.mkdir()  # a directory cannot be replaced by a file
    with pytest.raises(WriteError) as exc:
        write_entry(b"data", target)
    assert exc.value.code == E_WRITE_IO
    assert isinstance(exc.value.__cause__, OSError)
    assert [p.name for p in tmp_path.iterdir()] == ["entry.pak"]
    assert target.is_dir()
