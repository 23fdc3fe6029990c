"""
collector.py: Single consumer that turns emitted chunks into command output.

Watchers never write to stdout themselves. Each one puts EmittedChunk items on
a shared bounded queue; the OutputCollector drains that queue in arrival
order and writes the content out, printing a `==>  <path>  <==` header
whenever the origin changes. Chunks with no origin (diagnostics) are written
as-is and do not change the current origin.

The queue is bounded, so a producer blocks on put() while the consumer is
behind. Shutdown is a separate threading.Event; the collector only stops once
it has seen the event AND found the queue empty, so nothing queued before
shutdown is lost. If the output itself fails, the collector sets its
`closed` event and keeps emptying the queue without writing; watchers given
that event stop at their next check.
"""

import sys
import queue
import logging
import threading
from typing import NamedTuple, Optional

DEFAULT_CHANNEL_CAPACITY = 100

# How long one get() waits before re-checking the shutdown event.
DRAIN_TIMEOUT = 0.05


class EmittedChunk(NamedTuple):
    """A piece of output. `origin` is the source path, or None for diagnostics."""
    origin: Optional[str]
    content: str


def make_channel(capacity: int = DEFAULT_CHANNEL_CAPACITY) -> queue.Queue:
    """Create the bounded queue watchers share with the collector."""
    if capacity < 1:
        raise ValueError(f"channel capacity must be at least 1, got {capacity}")
    return queue.Queue(maxsize=capacity)


def format_header(origin: str) -> str:
    return f"\n==>  {origin}  <==\n"


class OutputCollector:
    """
    Drains a channel of EmittedChunk and writes them to `out`.

    Attributes:
        channel: Queue shared with the producers.
        shutdown: Event set once every producer has finished.
        closed: Event set once writing to `out` has failed; later chunks are
            discarded and producers should stop.
        out: Text stream receiving the output (sys.stdout by default).
        show_headers: Print a header line when the origin changes.
    """

    def __init__(self, channel, shutdown=None, out=None, show_headers=True, logger=None):
        self.channel = channel
        self.shutdown = shutdown if shutdown is not None else threading.Event()
        self.closed = threading.Event()
        self.out = out if out is not None else sys.stdout
        self.show_headers = show_headers
        self.logger = logger or logging.getLogger(__name__)
        self.last_origin = None

    def write_chunk(self, chunk: EmittedChunk):
        if chunk.origin is not None and chunk.origin != self.last_origin:
            if self.show_headers:
                self.out.write(format_header(chunk.origin))
            self.last_origin = chunk.origin
        self.out.write(chunk.content)

    def drain(self) -> int:
        """Write everything currently queued without blocking. Returns chunks written."""
        written = 0
        while True:
            try:
                chunk = self.channel.get_nowait()
            except queue.Empty:
                break
            self.write_chunk(chunk)
            written += 1
        return written

    def run(self):
        """
        Consume until shutdown is signalled and the channel is empty.

        A failed write (closed pipe, full disk) sets `closed`. The channel is
        still emptied after that, but nothing more is written.
        """
        while True:
            try:
                chunk = self.channel.get(timeout=DRAIN_TIMEOUT)
            except queue.Empty:
                if self.shutdown.is_set() and self.channel.empty():
                    self.logger.debug("output collector received shutdown, quitting")
                    break
                continue
            if self.closed.is_set():
                continue
            try:
                self.write_chunk(chunk)
                self.drain()
                self.out.flush()
            except OSError as e:
                self._close_output(e)
        if not self.closed.is_set():
            try:
                self.out.flush()
            except OSError as e:
                self._close_output(e)

    def _close_output(self, e: OSError):
        self.logger.warning(f"output collector cannot write ({e}), discarding further output")
        self.closed.set()

    def start(self) -> threading.Thread:
        """Run the collector on a daemon thread and return it."""
        thread = threading.Thread(target=self.run, name="output-collector", daemon=True)
        thread.start()
        return thread
