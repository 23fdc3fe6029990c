"""
cat.py: Concatenate files and print on the standard output.

Mimics Unix 'cat' command:
  cat <file>...    - Print files in order
  cat -n <file>    - Number all output lines
  cat -b <file>    - Number nonempty output lines (overrides -n)
  cat -s <file>    - Suppress repeated empty output lines
  cat -E / -T / -v - Show line ends as $, TABs as ^I, control characters as ^X
  cat -A           - Same as -vET

With no FILE, or when FILE is -, read standard input. Input that is not
valid UTF-8 is passed through unformatted from the first undecodable line on.
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

UTILITY = "cat"


def show_nonprinting(line: str) -> str:
    """Render ASCII control characters (other than TAB) in ^ notation."""
    rendered = []
    for ch in line:
        code = ord(ch)
        if code < 32 and ch != "\t":
            rendered.append("^" + chr(code + 64))
        elif code == 127:
            rendered.append("^?")
        else:
            rendered.append(ch)
    return "".join(rendered)


def format_line(line, show_ends=False, show_tabs=False, nonprinting=False, line_number=None):
    """Apply the display options to one line (without its newline)."""
    if nonprinting:
        line = show_nonprinting(line)
    if show_tabs:
        line = line.replace("\t", "^I")
    if show_ends:
        line = line + "$"
    if line_number is not None:
        line = f"{line_number:6d}\t{line}"
    return line


class LineFormatter:
    """
    Carries numbering and blank-squeezing state across all files of a run.
    """

    def __init__(self, args):
        self.args = args
        self.line_count = 0
        self.blank_run = 0

    def format(self, line: str):
        """Return the formatted line, or None when squeezed out."""
        args = self.args
        newline = line.endswith("\n")
        body = line[:-1] if newline else line

        if body == "":
            self.blank_run += 1
            if args.squeeze_blank and self.blank_run > 1:
                return None
        else:
            self.blank_run = 0

        number = None
        if args.number_nonblank:
            if body != "":
                self.line_count += 1
                number = self.line_count
        elif args.number:
            self.line_count += 1
            number = self.line_count

        formatted = format_line(body, args.show_ends and newline, args.show_tabs,
                                args.show_nonprinting, number)
        return formatted + ("\n" if newline else "")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=UTILITY,
        description="Concatenate FILE(s) to standard output.",
        usage="cat [-AbeEnstTuv] [FILE ...]"
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Files to print.")
    parser.add_argument("-A", "--show-all", action="store_true", help="Equivalent to -vET.")
    parser.add_argument("-b", "--number-nonblank", action="store_true",
                        help="Number nonempty output lines, overrides -n.")
    parser.add_argument("-e", dest="enable_ve", action="store_true", help="Equivalent to -vE.")
    parser.add_argument("-E", "--show-ends", action="store_true", help="Display $ at end of each line.")
    parser.add_argument("-n", "--number", action="store_true", help="Number all output lines.")
    parser.add_argument("-s", "--squeeze-blank", action="store_true",
                        help="Suppress repeated empty output lines.")
    parser.add_argument("-t", dest="enable_vt", action="store_true", help="Equivalent to -vT.")
    parser.add_argument("-T", "--show-tabs", action="store_true", help="Display TAB characters as ^I.")
    parser.add_argument("-u", dest="ignored", action="store_true", help="(ignored)")
    parser.add_argument("-v", "--show-nonprinting", action="store_true",
                        help="Use ^ notation, except for LFD and TAB.")
    return parser


def main(args_list=None, stdin=None, out=None):
    if args_list is None:
        args_list = sys.argv[1:]
    out = out if out is not None else sys.stdout

    args = build_parser().parse_args(args_list)
    if args.show_all:
        args.show_nonprinting = args.show_tabs = args.show_ends = True
    if args.enable_vt:
        args.show_nonprinting = args.show_tabs = True
    if args.enable_ve:
        args.show_nonprinting = args.show_ends = True

    setup_logging(get_config())

    formatter = LineFormatter(args)
    for path in args.files or [STDIN_PATH]:
        reader = FileReader(path, stdin=stdin)
        try:
            reader.open(0)
        except OSError as e:
            print_error(UTILITY, f"{path}: {describe_os_error(e)}")
            continue

        with reader:
            while True:
                line = reader.read_line()
                if line is None:
                    break
                formatted = formatter.format(line)
                if formatted is not None:
                    out.write(formatted)

            if not reader.is_text:
                while True:
                    chunk = reader.read_chunk(READ_BLOCK_SIZE)
                    if chunk is None:
                        break
                    write_raw(chunk, out)
        out.flush()

    return 0


def cli():
    install_interrupt_handler()
    sys.exit(main())


if __name__ == "__main__":
    cli()
