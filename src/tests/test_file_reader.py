"""
Tests for file_reader.py - the seekable line/chunk reader.

Tests cover:
- open(): offsets, missing files, directories, standard input
- read_line() / read_chunk() and the switch to binary mode
- skip_lines() / skip_bytes()
- tail_lines() / tail_bytes() sliding windows
- file_length() and current_byte_position()
"""

import io
import pytest
import os
import sys

# Add the src directory to the path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from textstream import file_reader
from textstream.common import NoLengthError
from textstream.file_reader import FileReader


@pytest.fixture
def reader(tail_test_file):
    r = FileReader(tail_test_file)
    r.open(0)
    yield r
    r.close()


class TestOpen:
    """Tests for open()."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileReader(tmp_path / "nonexistent.txt").open(0)

    def test_directory(self, tmp_path):
        with pytest.raises(IsADirectoryError) as excinfo:
            FileReader(tmp_path).open(0)
        assert excinfo.value.strerror == "Is a directory"

    def test_start_offset(self, tail_test_file):
        with FileReader(tail_test_file) as r:
            r.open(len("line 1\n"))
            assert r.read_line() == "line 2\n"

    def test_offset_past_end_is_clamped(self, tail_test_file):
        with FileReader(tail_test_file) as r:
            r.open(10_000)
            assert r.read_line() is None
            assert r.read_chunk(10) is None
            assert r.current_byte_position() == 0

    def test_reopen_starts_over(self, reader):
        reader.read_line()
        reader.open(0)
        assert reader.read_line() == "line 1\n"
        assert reader.current_byte_position() == len("line 1\n")

    def test_stdin_ignores_offset(self):
        r = FileReader("-", stdin=io.BytesIO(b"a\nb\n"))
        r.open(3)
        assert r.is_stdin
        assert r.read_line() == "a\n"

    def test_close_leaves_stdin_open(self):
        stream = io.BytesIO(b"a\n")
        r = FileReader("-", stdin=stream)
        r.open(0)
        r.close()
        assert not stream.closed


class TestReading:
    """Tests for read_line() and read_chunk()."""

    def test_read_lines_until_end(self, tmp_path):
        path = tmp_path / "two.txt"
        path.write_text("a\nb\n")
        with FileReader(path) as r:
            r.open(0)
            assert r.read_line() == "a\n"
            assert r.read_line() == "b\n"
            assert r.read_line() is None

    def test_unterminated_last_line(self, tmp_path):
        path = tmp_path / "partial.txt"
        path.write_text("a\nb")
        with FileReader(path) as r:
            r.open(0)
            assert r.read_line() == "a\n"
            assert r.read_line() == "b"
            assert r.read_line() is None

    def test_read_chunk(self, reader):
        assert reader.read_chunk(4) == b"line"
        assert reader.read_chunk(3) == b" 1\n"
        assert reader.current_byte_position() == 7

    def test_binary_mode_after_bad_line(self, tmp_path):
        path = tmp_path / "mixed.bin"
        path.write_bytes(b"ok\n\xff\xfe\n rest")
        with FileReader(path) as r:
            r.open(0)
            assert r.read_line() == "ok\n"
            assert r.read_line() is None
            assert not r.is_text
            assert r.read_line() is None

            raw = b""
            while True:
                chunk = r.read_chunk(100)
                if chunk is None:
                    break
                raw += chunk
            assert raw == b"\xff\xfe\n rest"

    def test_open_resets_binary_mode(self, tmp_path):
        path = tmp_path / "bad.bin"
        path.write_bytes(b"\xff\n")
        with FileReader(path) as r:
            r.open(0)
            r.read_line()
            assert not r.is_text
            r.open(0)
            assert r.is_text


class TestSkipping:
    """Tests for skip_lines() and skip_bytes()."""

    def test_skip_lines(self, reader):
        assert reader.skip_lines(3) == 3
        assert reader.read_line() == "line 4\n"

    def test_skip_more_lines_than_file(self, reader):
        assert reader.skip_lines(100) == 20
        assert reader.read_line() is None

    def test_skip_bytes(self, reader):
        assert reader.skip_bytes(7) == 7
        assert reader.read_line() == "line 2\n"

    def test_skips_are_noops_on_stdin(self):
        r = FileReader("-", stdin=io.BytesIO(b"a\nb\n"))
        r.open(0)
        assert r.skip_lines(1) == 0
        assert r.skip_bytes(1) == 0
        assert r.read_line() == "a\n"


class TestTailLines:
    """Tests for tail_lines()."""

    def test_default_10_lines(self, reader):
        consumed, lines = reader.tail_lines(10)
        assert consumed == 20
        assert len(lines) == 10
        assert lines[0] == "line 11\n"
        assert lines[-1] == "line 20\n"

    def test_single_line(self, reader):
        consumed, lines = reader.tail_lines(1)
        assert lines == ["line 20\n"]

    def test_more_lines_than_file(self, reader):
        consumed, lines = reader.tail_lines(100)
        assert consumed == 20
        assert len(lines) == 20
        assert lines[0] == "line 1\n"
        assert lines[-1] == "line 20\n"

    def test_exactly_file_length(self, reader):
        consumed, lines = reader.tail_lines(20)
        assert consumed == 20
        assert lines[0] == "line 1\n"

    def test_zero_lines(self, reader):
        consumed, lines = reader.tail_lines(0)
        assert consumed == 20
        assert lines == []

    def test_empty_file(self, empty_file):
        with FileReader(empty_file) as r:
            r.open(0)
            assert r.tail_lines(10) == (0, [])

    def test_from_current_position(self, reader):
        reader.skip_lines(15)
        consumed, lines = reader.tail_lines(10)
        assert consumed == 5
        assert lines[0] == "line 16\n"


class TestTailBytes:
    """Tests for tail_bytes()."""

    @pytest.fixture
    def hello(self, tmp_path):
        path = tmp_path / "hello.txt"
        path.write_bytes(b"hello world\n")
        return path

    def test_last_bytes(self, hello):
        with FileReader(hello) as r:
            r.open(0)
            assert r.tail_bytes(5) == (12, b"orld\n")

    def test_zero_bytes(self, hello):
        with FileReader(hello) as r:
            r.open(0)
            assert r.tail_bytes(0) == (12, b"")

    def test_window_larger_than_file(self, hello):
        with FileReader(hello) as r:
            r.open(0)
            assert r.tail_bytes(1000) == (12, b"hello world\n")

    def test_window_across_many_small_reads(self, hello, monkeypatch):
        monkeypatch.setattr(file_reader, "READ_BLOCK_SIZE", 3)
        with FileReader(hello) as r:
            r.open(0)
            assert r.tail_bytes(7) == (12, b" world\n")


class TestLengthAndPosition:
    """Tests for file_length() and current_byte_position()."""

    def test_length_follows_the_path(self, tail_test_file, reader):
        before = reader.file_length()
        with open(tail_test_file, "a") as f:
            f.write("line 21\n")
        assert reader.file_length() == before + len("line 21\n")

    def test_stdin_has_no_length(self):
        r = FileReader("-", stdin=io.BytesIO(b""))
        with pytest.raises(NoLengthError):
            r.file_length()

    def test_position_counts_consumed_bytes(self, reader):
        reader.read_line()
        reader.read_line()
        assert reader.current_byte_position() == len("line 1\nline 2\n")
