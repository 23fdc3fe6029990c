"""
tail.py: Display the last part of files, optionally following them as they grow.

Mimics Unix 'tail' command:
  tail <file>...         - Show last 10 lines of each file
  tail -n 20 <file>      - Show last 20 lines
  tail -n +20 <file>     - Show everything from line 20 on
  tail -c 100 <file>     - Show last 100 bytes
  tail -c +100 <file>    - Show everything from byte 100 on
  tail -f <file>...      - Follow files for new content (implies --retry)

With more than one FILE, each file's output is preceded by a header giving
the file name. With no FILE, standard input is read and followed.

Each file is handled by a FileWatcher that pushes output onto one bounded
queue; a single OutputCollector thread writes it to stdout. Without -f the
watchers run one after another on the calling thread, so files never
interleave. With -f every watcher gets its own thread and they run until
interrupted.
"""

import argparse
import sys
import time
import logging
import threading

from .common import (
    DEFAULT_SETTINGS,
    get_config,
    setup_logging,
    sleep_time,
    print_error,
    install_interrupt_handler,
)
from .collector import OutputCollector, make_channel
from .file_reader import STDIN_PATH
from .read_strategy import Invalid, select
from .watcher import FileWatchState, FileWatcher

UTILITY = "tail"

logger = logging.getLogger(__name__)


def run_tail(files, byte_spec="0", line_spec="0", follow=False, retry=False,
             sleep_interval=DEFAULT_SETTINGS["SLEEP_INTERVAL"],
             max_unchanged_stats=DEFAULT_SETTINGS["MAX_UNCHANGED_STATS"],
             show_headers=True,
             channel_capacity=DEFAULT_SETTINGS["CHANNEL_CAPACITY"],
             byte_chunk_size=DEFAULT_SETTINGS["BYTE_CHUNK_SIZE"],
             out=None, stdin=None, sleep=time.sleep) -> int:
    """
    Run one watcher per file and collect their output.

    The read strategy is selected once and shared by every file. An invalid
    offset spec skips each file with an error on stderr; nothing is read.

    Args:
        files: Paths to tail, "-" meaning standard input.
        byte_spec: -c value ("K" or "+K").
        line_spec: -n value ("K" or "+K").
        follow: Keep polling for appended content.
        retry: Keep trying files that cannot be opened (while following).
        sleep_interval: Seconds between polls.
        max_unchanged_stats: Unchanged polls between "still unchanged" debug logs.
        show_headers: Print `==>  <path>  <==` when the output switches file.
        channel_capacity: Size of the bounded queue between watchers and output.
        byte_chunk_size: Read unit for byte-offset streaming.
        out: Text stream for output (sys.stdout by default).
        stdin: Binary stream used for "-" (sys.stdin.buffer by default).
        sleep: Sleep function used between polls.

    Once output can no longer be written the watchers stop and the run
    returns.

    Returns:
        Process exit status (always 0; per-file problems are reported inline).
    """
    strategy = select(byte_spec, line_spec)
    logger.debug(f"read strategy => {strategy}")

    channel = make_channel(channel_capacity)
    shutdown = threading.Event()
    collector = OutputCollector(channel, shutdown, out=out, show_headers=show_headers)
    collector_thread = collector.start()

    watcher_pool = []
    for path in files:
        if isinstance(strategy, Invalid):
            print_error(UTILITY, strategy.reason)
            continue

        state = FileWatchState(
            path=path,
            strategy=strategy,
            follow=follow,
            retry=retry,
            poll_interval_ms=sleep_time(sleep_interval),
            max_unchanged_stats=max_unchanged_stats,
            byte_chunk_size=byte_chunk_size,
        )
        watcher = FileWatcher(state, channel, stdin=stdin, sleep=sleep, stop=collector.closed)

        if follow:
            thread = threading.Thread(target=watcher.run, name=f"watcher:{path}", daemon=True)
            thread.start()
            watcher_pool.append(thread)
        else:
            watcher.run()

    for thread in watcher_pool:
        thread.join()

    shutdown.set()
    collector_thread.join()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=UTILITY,
        description="Print the last 10 lines of each FILE to standard output. "
                    "With more than one FILE, precede each with a header giving the file name. "
                    "With no FILE, or when FILE is -, read standard input.",
        usage="tail [-c [+]K] [-n [+]K] [-f] [-q|-v] [--retry] [-s N] [FILE ...]"
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Files to display.")
    parser.add_argument("-c", "--bytes", default="0",
                        help="Output the last K bytes; or use -c +K to output bytes starting with the Kth.")
    parser.add_argument("-n", "--lines", default="0",
                        help="Output the last K lines, instead of the last 10; or use -n +K to skip K lines.")
    parser.add_argument("-f", "--follow", action="store_true",
                        help="Output appended data as the file grows (implies --retry).")
    parser.add_argument("--max-unchanged-stats", type=int, default=None, metavar="N",
                        help="With --follow, report a file that has not changed size after N iterations.")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Never print headers giving file names.")
    parser.add_argument("--silent", action="store_true", help="Same as --quiet.")
    parser.add_argument("--retry", action="store_true",
                        help="Keep trying to open a file if it is inaccessible.")
    parser.add_argument("-s", "--sleep-interval", type=float, default=None, metavar="N",
                        help="With -f, sleep for approximately N seconds (default 1.0) between iterations.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Always print headers giving file names.")
    return parser


def main(args_list=None):
    if args_list is None:
        args_list = sys.argv[1:]

    args = build_parser().parse_args(args_list)

    config = get_config({
        "SLEEP_INTERVAL": args.sleep_interval,
        "MAX_UNCHANGED_STATS": args.max_unchanged_stats,
    })
    setup_logging(config)

    files = args.files or [STDIN_PATH]
    # Reading stdin with no FILE arguments always follows it
    follow = args.follow or not args.files
    retry = args.retry or follow
    quiet = args.quiet or args.silent
    show_headers = args.verbose or (len(files) > 1 and not quiet)

    return run_tail(
        files,
        byte_spec=args.bytes,
        line_spec=args.lines,
        follow=follow,
        retry=retry,
        sleep_interval=float(config["SLEEP_INTERVAL"]),
        max_unchanged_stats=int(config["MAX_UNCHANGED_STATS"]),
        show_headers=show_headers,
        channel_capacity=int(config["CHANNEL_CAPACITY"]),
        byte_chunk_size=int(config["BYTE_CHUNK_SIZE"]),
    )


def cli():
    install_interrupt_handler()
    sys.exit(main())


if __name__ == "__main__":
    cli()
