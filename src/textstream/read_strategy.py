"""
read_strategy.py: Decide where reading starts within a file.

tail accepts two offset specifications, one for bytes (-c) and one for lines
(-n). Each is a non-negative integer; a leading '+' means "counted from the
start of the file", no prefix means "counted back from the end":

    -c +K   FromByte(K)     stream starting at byte K
    -c K    LastBytes(K)    stream the last K bytes
    -n +K   FromLine(K)     skip K lines, then stream
    -n K    LastLines(K)    stream the last K lines

select() folds both specs into exactly one strategy. When several resolve to
a nonzero magnitude the precedence is FromByte > LastBytes > FromLine >
LastLines; when all are zero the default is LastLines(10).
"""

import re
from dataclasses import dataclass

DEFAULT_LAST_LINES = 10

_OFFSET_RE = re.compile(r'\+?[0-9]+')


@dataclass(frozen=True)
class ReadStrategy:
    """Base for the strategy variants. `value` is the magnitude (>= 0)."""
    value: int = 0

    def start_offset(self, file_length: int) -> int:
        """Byte offset to open the file at, given its current length."""
        return 0

    def restart(self) -> "ReadStrategy":
        """The strategy to fall back to when the file shrinks."""
        return self


@dataclass(frozen=True)
class FromByte(ReadStrategy):
    def start_offset(self, file_length: int) -> int:
        return min(self.value, file_length)

    def restart(self) -> "ReadStrategy":
        return FromByte(0)


@dataclass(frozen=True)
class LastBytes(ReadStrategy):
    def start_offset(self, file_length: int) -> int:
        return file_length - min(self.value, file_length)

    def restart(self) -> "ReadStrategy":
        return FromByte(0)


@dataclass(frozen=True)
class FromLine(ReadStrategy):
    def restart(self) -> "ReadStrategy":
        return FromLine(0)


@dataclass(frozen=True)
class LastLines(ReadStrategy):
    def restart(self) -> "ReadStrategy":
        return FromLine(0)


@dataclass(frozen=True)
class Invalid(ReadStrategy):
    """The offset specs did not parse. Nothing is streamed."""
    reason: str = ""


def parse_offset(spec: str):
    """
    Parse one offset specification.

    Args:
        spec: "K" or "+K" with K a non-negative decimal integer.

    Returns:
        (from_start, from_end) magnitudes, exactly one of which may be
        nonzero, or None when the spec is not a valid offset.
    """
    spec = str(spec)
    if not _OFFSET_RE.fullmatch(spec):
        return None
    magnitude = int(spec)
    if spec.startswith('+'):
        return magnitude, 0
    return 0, magnitude


def select(byte_spec: str, line_spec: str) -> ReadStrategy:
    """
    Map the byte and line offset specs to a single ReadStrategy.

    Pure function: no I/O, same inputs always give the same strategy.
    The byte spec is validated first, so when both are bad the reason
    names the byte spec.
    """
    parsed_bytes = parse_offset(byte_spec)
    if parsed_bytes is None:
        return Invalid(reason=f"{byte_spec}: invalid number of bytes")

    parsed_lines = parse_offset(line_spec)
    if parsed_lines is None:
        return Invalid(reason=f"{line_spec}: invalid number of lines")

    from_byte, last_bytes = parsed_bytes
    from_line, last_lines = parsed_lines

    if from_byte > 0:
        return FromByte(from_byte)
    if last_bytes > 0:
        return LastBytes(last_bytes)
    if from_line > 0:
        return FromLine(from_line)
    if last_lines > 0:
        return LastLines(last_lines)
    return LastLines(DEFAULT_LAST_LINES)
