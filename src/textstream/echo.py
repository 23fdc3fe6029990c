"""
echo.py: Display a line of text.

Mimics Unix 'echo' command:
  echo hello world     - Print the arguments separated by spaces
  echo -n text         - Do not output the trailing newline
  echo -e 'a\\tb'      - Interpret backslash escapes
  echo -E 'a\\tb'      - Do not interpret backslash escapes (default)

Recognised escapes with -e: \\\\ \\a \\b \\c \\e \\f \\n \\r \\t \\v \\0NNN.
\\c stops output there, including the trailing newline.
"""

import argparse
import re
import sys

UTILITY = "echo"

_ESCAPE_RE = re.compile(r'\\(0[0-7]{0,3}|.)', re.DOTALL)

_ESCAPES = {
    '\\': '\\',
    'a': '\a',
    'b': '\b',
    'e': '\x1b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
}


def apply_escapes(text: str):
    """
    Interpret backslash escapes.

    Returns:
        (result, stopped) where stopped is True when a \\c cut the text short.
    """
    result = []
    pos = 0
    for m in _ESCAPE_RE.finditer(text):
        result.append(text[pos:m.start()])
        code = m.group(1)
        if code == 'c':
            return "".join(result), True
        if code.startswith('0'):
            result.append(chr(int(code, 8)))
        elif code in _ESCAPES:
            result.append(_ESCAPES[code])
        else:
            # unknown escapes are kept as written
            result.append(m.group(0))
        pos = m.end()
    result.append(text[pos:])
    return "".join(result), False


def main(args_list=None, out=None):
    if args_list is None:
        args_list = sys.argv[1:]
    out = out if out is not None else sys.stdout

    parser = argparse.ArgumentParser(
        prog=UTILITY,
        description="Echo the STRING(s) to standard output.",
        usage="echo [-neE] [STRING ...]"
    )
    parser.add_argument("-n", dest="no_newline", action="store_true",
                        help="Do not output the trailing newline.")
    parser.add_argument("-e", dest="escapes", action="store_true",
                        help="Enable interpretation of backslash escapes.")
    parser.add_argument("-E", dest="escapes", action="store_false",
                        help="Disable interpretation of backslash escapes (default).")
    parser.add_argument("strings", nargs=argparse.REMAINDER, metavar="STRING")
    parser.set_defaults(escapes=False)

    args = parser.parse_args(args_list)

    output_line = " ".join(args.strings)
    stopped = False
    if args.escapes:
        output_line, stopped = apply_escapes(output_line)

    out.write(output_line)
    if not (args.no_newline or stopped):
        out.write("\n")
    out.flush()
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
