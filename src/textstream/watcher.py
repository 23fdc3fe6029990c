"""
watcher.py: Poll one file and emit whatever new content it has.

A FileWatcher owns one FileReader and one FileWatchState. Each poll walks the
same phases:

    OPENING      open the path at the strategy's start offset
    POSITIONING  skip lines / compute the tail window
    DRAINING     emit content until end of input
    SLEEPING     wait one poll interval (only when following)
    CLOSED       done; run() returns

Before reading, a size guard compares the stat'd length with the length seen
on the previous poll. A smaller file means it was truncated or rotated, so
the strategy restarts from zero. An unchanged length means there is nothing
new, so the poll reads nothing. Standard input has no length and always reads.

Last-N strategies run once: after the tail window is emitted they turn into
the matching From-N strategy positioned where reading stopped, so later polls
only emit what was appended since.

While following a file, a final line without its newline is left unread
until a later poll finds it complete, so a line is never split across polls.
"""

import time
import codecs
import logging
import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import Any

from .common import NoLengthError, describe_os_error
from .collector import EmittedChunk
from .file_reader import FileReader, STDIN_PATH
from .read_strategy import ReadStrategy, FromByte, LastBytes, FromLine, LastLines

UTILITY = "tail"

STDIN_FOLLOW_WARNING = "tail: warning: following standard input indefinitely is ineffective\n"


def _new_decoder():
    return codecs.getincrementaldecoder('utf-8')(errors='replace')


class WatchPhase(Enum):
    OPENING = "opening"
    POSITIONING = "positioning"
    DRAINING = "draining"
    SLEEPING = "sleeping"
    CLOSED = "closed"


@dataclass
class FileWatchState:
    """Mutable per-file state. Owned by exactly one watcher."""
    path: str
    strategy: ReadStrategy
    follow: bool = False
    retry: bool = False
    poll_interval_ms: int = 1000
    max_unchanged_stats: int = 5
    byte_chunk_size: int = 1
    last_size: int = 0
    unchanged_count: int = 0
    notify_error: bool = True
    phase: WatchPhase = WatchPhase.OPENING
    decoder: Any = field(default_factory=_new_decoder, repr=False)

    @property
    def is_stdin(self) -> bool:
        return self.path == STDIN_PATH


class FileWatcher:
    """
    Runs the poll loop for one FileWatchState, emitting EmittedChunk onto `channel`.

    Args:
        state: The file's FileWatchState.
        channel: Queue-like object with put(); shared with the collector.
        stdin: Binary stream standing in for "-" (defaults to sys.stdin.buffer).
        logger: Diagnostics logger.
        sleep: Callable taking seconds; time.sleep by default.
        stop: Event that ends the watcher at its next check (the collector's
            `closed` event); nothing is emitted once it is set.
    """

    def __init__(self, state: FileWatchState, channel, stdin=None, logger=None, sleep=time.sleep,
                 stop=None):
        self.state = state
        self.channel = channel
        self.stop = stop if stop is not None else threading.Event()
        self.logger = logger or logging.getLogger(__name__)
        self.reader = FileReader(state.path, stdin=stdin, logger=self.logger)
        self._sleep = sleep

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, content: str):
        if self.stop.is_set():
            return
        self.channel.put(EmittedChunk(self.state.path, content))

    def notify(self, content: str):
        """Emit a diagnostic line that belongs to no file."""
        if self.stop.is_set():
            return
        self.channel.put(EmittedChunk(None, content))

    # -------------------------------------------------------------------------
    # Poll loop
    # -------------------------------------------------------------------------

    def run(self):
        """Poll until the watcher closes. Without follow that is a single poll."""
        state = self.state
        self.logger.debug(f"file_watcher => {state}")

        if state.is_stdin and state.follow:
            self.notify(STDIN_FOLLOW_WARNING)
        if state.retry and not state.follow:
            self.logger.warning(f"--retry ignored for {state.path}; it only applies when following")

        try:
            while not self.stop.is_set():
                self.logger.info(f"file_watcher polling => {state.path}")
                if not self.poll() or not state.follow:
                    break
                self.wait()
        finally:
            self.reader.close()
            state.phase = WatchPhase.CLOSED
        self.logger.info(f"file watcher for {state.path} closed")

    def wait(self):
        self.state.phase = WatchPhase.SLEEPING
        self.logger.debug(f"file_watcher, going to sleep for {self.state.poll_interval_ms}ms")
        self._sleep(self.state.poll_interval_ms / 1000.0)

    def poll(self) -> bool:
        """
        Run one Opening -> Positioning -> Draining pass.

        Returns:
            False when the watcher must close (permanent open failure, open
            failure without retry, or end of standard input under a line
            strategy); True otherwise.
        """
        state = self.state
        state.phase = WatchPhase.OPENING

        start = state.strategy.start_offset(self._current_length())
        self.logger.debug(f"file_watcher start_pos => {start}")
        try:
            self.reader.open(start)
        except IsADirectoryError as e:
            self._report_open_error(e)
            return False
        except OSError as e:
            self._report_open_error(e)
            return state.retry and state.follow
        state.notify_error = True

        state.phase = WatchPhase.POSITIONING
        before = state.strategy
        if not self._size_changed():
            return True
        if state.strategy != before:
            start = 0

        self.logger.debug(f"file read strategy => {state.strategy}")
        state.phase = WatchPhase.DRAINING
        strategy = state.strategy
        if isinstance(strategy, FromByte):
            self._drain_bytes(strategy.value, start)
        elif isinstance(strategy, LastBytes):
            self._emit_last_bytes(strategy.value, start)
        elif isinstance(strategy, FromLine):
            return self._drain_lines(strategy.value)
        elif isinstance(strategy, LastLines):
            return self._emit_last_lines(strategy.value)
        return True

    # -------------------------------------------------------------------------
    # Guards and errors
    # -------------------------------------------------------------------------

    def _current_length(self) -> int:
        try:
            return self.reader.file_length()
        except NoLengthError:
            return 0
        except OSError as e:
            self.logger.debug(f"could not stat {self.state.path}: {e}")
            return 0

    def _report_open_error(self, e: OSError):
        state = self.state
        if state.notify_error:
            state.notify_error = False
            self.logger.warning(f"error found when trying to open file: {state.path} - {e}")
            self.notify(f"{UTILITY}: cannot open '{state.path}' for reading: {describe_os_error(e)}\n")

    def _size_changed(self) -> bool:
        """
        Compare the stat'd length with the previous poll's.

        Shrinking resets the strategy to read from zero and reopens the file.
        Returns False when the poll should read nothing.
        """
        state = self.state
        if state.is_stdin:
            return True

        ok = True
        try:
            current = self.reader.file_length()
        except OSError as e:
            self.logger.warning(f"size check failed for {state.path} => {e}")
            current = 0
            ok = False

        self.logger.debug(f"last file size ({state.last_size}) <=> current file size ({current})")
        if ok and current < state.last_size:
            self.logger.info(f"{state.path} shrank from {state.last_size} to {current} bytes, starting from zero")
            state.strategy = state.strategy.restart()
            state.decoder = _new_decoder()
            state.unchanged_count = 0
            try:
                self.reader.open(0)
            except OSError as e:
                self._report_open_error(e)
                ok = False
        elif ok and current == state.last_size:
            state.unchanged_count += 1
            if state.max_unchanged_stats and state.unchanged_count % state.max_unchanged_stats == 0:
                self.logger.debug(f"{state.path} unchanged for {state.unchanged_count} polls")
            ok = False
        elif ok:
            state.unchanged_count = 0
        state.last_size = current
        return ok

    # -------------------------------------------------------------------------
    # Draining, one method per strategy
    # -------------------------------------------------------------------------

    def _drain_bytes(self, offset: int, start: int):
        state = self.state
        consumed = 0
        while not self.stop.is_set():
            chunk = self.reader.read_chunk(state.byte_chunk_size)
            if chunk is None:
                break
            consumed += len(chunk)
            text = state.decoder.decode(chunk)
            if text:
                self.emit(text)
        self.logger.debug(f"got none on read chunk after {consumed} bytes")
        state.strategy = FromByte(max(offset, start + consumed))

    def _emit_last_bytes(self, count: int, start: int):
        state = self.state
        consumed, window = self.reader.tail_bytes(count)
        if window:
            self.emit(window.decode('utf-8', errors='replace'))
        state.strategy = FromByte(start + consumed)
        self.logger.debug(f"last bytes emitted, strategy now {state.strategy}")

    def _holds_back(self, line: str) -> bool:
        """An unterminated line is still being written while a file is followed."""
        state = self.state
        return state.follow and not state.is_stdin and not line.endswith("\n")

    def _drain_lines(self, skip: int) -> bool:
        state = self.state
        self.reader.skip_lines(skip)
        read = 0
        while not self.stop.is_set():
            line = self.reader.read_line()
            if line is None:
                break
            if self._holds_back(line):
                self.logger.debug(f"unterminated line in {state.path}, leaving it for the next poll")
                break
            read += 1
            self.emit(line)
        if state.is_stdin:
            self.logger.debug("FromLine reached end of stdin, closing")
            return False
        state.strategy = FromLine(skip + read)
        return True

    def _emit_last_lines(self, count: int) -> bool:
        state = self.state
        # One extra line, in case the last one is unterminated and held back
        consumed, lines = self.reader.tail_lines(count + 1)
        if lines and self._holds_back(lines[-1]):
            lines.pop()
            consumed -= 1
        lines = lines[max(len(lines) - count, 0):]
        if lines:
            self.emit("".join(lines))
        state.strategy = FromLine(consumed)
        self.logger.debug(f"last lines emitted, strategy now {state.strategy}")
        if state.is_stdin:
            self.logger.debug("LastLines reached end of stdin, closing")
            return False
        return True
