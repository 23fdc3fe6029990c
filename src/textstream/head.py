"""
head.py: Output the first part of files.

Mimics Unix 'head' command:
  head <file>...       - Show first 10 lines of each file
  head -n 20 <file>    - Show first 20 lines
  head -c 100 <file>   - Show first 100 bytes

With more than one FILE, each is preceded by a `==> <path> <==` header.
With no FILE, or when FILE is -, read standard input.
"""

import argparse
import sys

from .common import (
    get_config,
    setup_logging,
    describe_os_error,
    print_error,
    write_raw,
    install_interrupt_handler,
)
from .file_reader import FileReader, STDIN_PATH, READ_BLOCK_SIZE

UTILITY = "head"


def head_bytes(reader: FileReader, count: int, out):
    remaining = count
    while remaining > 0:
        chunk = reader.read_chunk(min(remaining, READ_BLOCK_SIZE))
        if chunk is None:
            break
        write_raw(chunk, out)
        remaining -= len(chunk)


def head_lines(reader: FileReader, count: int, out):
    """
    Write the first `count` lines.

    Text is written line by line; once the reader hits undecodable input the
    rest is counted and written as raw bytes.
    """
    remaining = count
    while remaining > 0:
        line = reader.read_line()
        if line is None:
            break
        out.write(line)
        remaining -= 1

    if reader.is_text:
        return

    while remaining > 0:
        chunk = reader.read_chunk(READ_BLOCK_SIZE)
        if chunk is None:
            break
        pos = 0
        while remaining > 0:
            newline = chunk.find(b"\n", pos)
            if newline == -1:
                break
            pos = newline + 1
            remaining -= 1
        write_raw(chunk if remaining > 0 else chunk[:pos], out)


def main(args_list=None, stdin=None, out=None):
    if args_list is None:
        args_list = sys.argv[1:]
    out = out if out is not None else sys.stdout

    parser = argparse.ArgumentParser(
        prog=UTILITY,
        description="Print the first 10 lines of each FILE to standard output.",
        usage="head [-c K] [-n K] [-q|-v] [FILE ...]"
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Files to display.")
    parser.add_argument("-c", "--bytes", type=int, default=0,
                        help="Print the first K bytes of each file.")
    parser.add_argument("-n", "--lines", type=int, default=10,
                        help="Print the first K lines instead of the first 10.")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Never print headers giving file names.")
    parser.add_argument("--silent", action="store_true", help="Same as --quiet.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Always print headers giving file names.")

    args = parser.parse_args(args_list)
    setup_logging(get_config())

    files = args.files or [STDIN_PATH]
    show_headers = args.verbose or (len(files) > 1 and not (args.quiet or args.silent))

    first = True
    for path in files:
        reader = FileReader(path, stdin=stdin)
        try:
            reader.open(0)
        except OSError as e:
            print_error(UTILITY, f"cannot open '{path}' for reading: {describe_os_error(e)}")
            continue

        with reader:
            if show_headers:
                if not first:
                    out.write("\n")
                out.write(f"==> {path} <==\n")
            first = False
            if args.bytes > 0:
                head_bytes(reader, args.bytes, out)
            else:
                head_lines(reader, args.lines, out)
        out.flush()

    return 0


def cli():
    install_interrupt_handler()
    sys.exit(main())


if __name__ == "__main__":
    cli()
