"""
file_reader.py: Seekable, line- and chunk-oriented reader over one path.

A FileReader wraps a regular file or standard input ("-") and offers the
primitives every command builds on:

    reader = FileReader("app.log")
    reader.open(start_byte_offset=0)
    line = reader.read_line()          # None at end of input
    consumed, last = reader.tail_lines(10)

Content is read as bytes. read_line() decodes UTF-8 strictly; the first line
that does not decode switches the reader to binary mode, after which
read_line() only reports end of input and the raw bytes stay available to
read_chunk().

Tail extraction keeps a fixed-size sliding window (a deque for lines, a
trimmed bytearray for bytes), so memory stays bounded by the window size no
matter how long the stream is.
"""

import os
import sys
import stat
import errno
import logging
from collections import deque

from .common import NoLengthError

STDIN_PATH = "-"

# Unit of work for bulk reads (skip_bytes, tail_bytes, binary fallbacks).
READ_BLOCK_SIZE = 64 * 1024


class FileReader:
    """
    Reader over a single path or standard input.

    Attributes:
        path: The path given at construction; "-" means standard input.
    """

    def __init__(self, path, stdin=None, logger=None):
        """
        Args:
            path: File path, or "-" for standard input.
            stdin: Binary stream to use for "-" (defaults to sys.stdin.buffer).
            logger: Diagnostics logger (defaults to this module's logger).
        """
        self.path = str(path)
        self._stdin = stdin
        self._handle = None
        self._is_text = True
        self._pending = b""
        self._position = 0
        self.logger = logger or logging.getLogger(__name__)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_stdin(self) -> bool:
        return self.path == STDIN_PATH

    @property
    def is_text(self) -> bool:
        """False once a line failed to decode."""
        return self._is_text

    def open(self, start_byte_offset: int = 0):
        """
        Open (or reopen) the path and position it at `start_byte_offset`.

        The offset is clamped to the file length, so overshooting is not an
        error. Standard input ignores the offset.

        Raises:
            IsADirectoryError: The path is a directory.
            OSError: Any other failure to stat or open the path
                (FileNotFoundError, PermissionError, ...).
        """
        self.close()
        self._is_text = True
        self._pending = b""
        self._position = 0

        if self.is_stdin:
            self.logger.info("opening stdin")
            self._handle = self._stdin if self._stdin is not None else sys.stdin.buffer
            return

        st = os.stat(self.path)
        if stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self.path)

        handle = open(self.path, 'rb')
        try:
            length = os.fstat(handle.fileno()).st_size
            handle.seek(min(max(start_byte_offset, 0), length))
        except OSError:
            handle.close()
            raise
        self._handle = handle
        self.logger.debug(f"opened {self.path} at byte {handle.tell()}")

    def close(self):
        """Release the file handle. Standard input is never closed."""
        if self._handle is not None and not self.is_stdin:
            self._handle.close()
        self._handle = None

    def read_line(self):
        """
        Return the next line including its terminator, or None at end of input.

        The last line of a stream may come back without a terminator.
        """
        if self._handle is None or not self._is_text:
            return None
        raw = self._handle.readline()
        if not raw:
            return None
        try:
            line = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            self.logger.debug(f"read_line on {self.path} is not text ({e}), switching to binary")
            self._is_text = False
            self._pending = raw
            return None
        self._position += len(raw)
        return line

    def read_chunk(self, size: int):
        """Return up to `size` raw bytes, or None when nothing was read."""
        if self._handle is None or size <= 0:
            return None
        if self._pending:
            data = self._pending[:size]
            self._pending = self._pending[len(data):]
        else:
            read = getattr(self._handle, 'read1', self._handle.read)
            data = read(size)
        if not data:
            return None
        self._position += len(data)
        return data

    def skip_lines(self, count: int) -> int:
        """Read and drop `count` lines. No-op on standard input. Returns lines skipped."""
        if self.is_stdin:
            return 0
        skipped = 0
        while skipped < count and self.read_line() is not None:
            skipped += 1
        return skipped

    def skip_bytes(self, count: int) -> int:
        """Read and drop `count` bytes. No-op on standard input. Returns bytes skipped."""
        if self.is_stdin:
            return 0
        skipped = 0
        while skipped < count:
            chunk = self.read_chunk(min(count - skipped, READ_BLOCK_SIZE))
            if chunk is None:
                break
            skipped += len(chunk)
        return skipped

    def tail_bytes(self, count: int):
        """
        Consume the rest of the stream keeping only the last `count` bytes.

        Returns:
            (bytes_consumed, retained_bytes)
        """
        window = bytearray()
        consumed = 0
        while True:
            chunk = self.read_chunk(READ_BLOCK_SIZE)
            if chunk is None:
                break
            consumed += len(chunk)
            window += chunk
            if len(window) > count:
                del window[:len(window) - count]
        return consumed, bytes(window)

    def tail_lines(self, count: int):
        """
        Consume the rest of the stream keeping only the last `count` lines.

        Returns:
            (lines_consumed, retained_lines) with lines in original order.
        """
        window = deque(maxlen=count)
        consumed = 0
        while True:
            line = self.read_line()
            if line is None:
                break
            consumed += 1
            window.append(line)
        return consumed, list(window)

    def current_byte_position(self) -> int:
        """Bytes consumed since the last open()."""
        return self._position

    def file_length(self) -> int:
        """
        Current size of the file at `path`.

        Stats the path rather than the open handle so a replaced or
        truncated file is seen across reopens.

        Raises:
            NoLengthError: For standard input.
            OSError: When the path cannot be stat'd.
        """
        if self.is_stdin:
            raise NoLengthError(errno.ESPIPE, "standard input has no length", self.path)
        return os.stat(self.path).st_size
