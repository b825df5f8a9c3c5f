import pytest
from hypothesis import given, settings, HealthCheck
from hypothesis import strategies as st

from distwt.process_tool import filter_file, main


def test_copy_without_filter(tmp_path):
    data = bytes(range(256)) * 3
    src = tmp_path / "in.bin"
    dst = tmp_path / "out.bin"
    src.write_bytes(data)
    assert filter_file(src, dst, None, 10) == (len(data), len(data))
    assert dst.read_bytes() == data


def test_empty_filter_copies_everything(tmp_path):
    src = tmp_path / "in.txt"
    dst = tmp_path / "out.txt"
    src.write_bytes(b"xyz")
    filter_file(src, dst, "", 2)
    assert dst.read_bytes() == b"xyz"


def test_output_is_truncated(tmp_path):
    src = tmp_path / "in.txt"
    dst = tmp_path / "out.txt"
    src.write_bytes(b"ab")
    dst.write_bytes(b"old contents that are longer")
    filter_file(src, dst)
    assert dst.read_bytes() == b"ab"


def test_bad_bufsize(tmp_path):
    src = tmp_path / "in.txt"
    src.write_bytes(b"a")
    with pytest.raises(ValueError):
        filter_file(src, tmp_path / "out.txt", None, 0)


def test_main_reports_counts(tmp_path, capsys):
    src = tmp_path / "in.txt"
    dst = tmp_path / "out.txt"
    src.write_bytes(b"hello world")
    assert main([str(src), str(dst), "-f", "lo", "-b", "2"]) == 0
    assert dst.read_bytes() == b"llool"
    assert capsys.readouterr().out == "11 bytes read, 5 bytes written\n"


def test_main_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing"), str(tmp_path / "out")]) == 1
    assert "error" in capsys.readouterr().err


@settings(max_examples=30, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    data=st.binary(max_size=200),
    keep=st.binary(min_size=1, max_size=10),
    bufsize=st.integers(min_value=1, max_value=32),
)
def test_filter_invariants(tmp_path, data, keep, bufsize):
    src = tmp_path / "in.bin"
    dst = tmp_path / "out.bin"
    src.write_bytes(data)
    read, written = filter_file(src, dst, keep, bufsize)
    out = dst.read_bytes()
    assert read == len(data)
    assert written == len(out)
    assert set(out) <= set(keep)
    assert out == bytes(b for b in data if b in set(keep))