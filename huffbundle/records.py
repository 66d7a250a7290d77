"""
records.py -- fixed-width binary digit fields.

All intermediate tables are ASCII, one field per line, each field a
string of ``'0'``/``'1'`` characters of a fixed width (symbol 8, codeword
16, length 5).  Lines are written with CRLF and read back tolerating a
bare LF.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .errors import MalformedRecord

CRLF = b"\r\n"
_BINARY = frozenset("01")


def is_binary_token(text: str) -> bool:
    """True for a non-empty string made only of '0' and '1'."""
    return bool(text) and set(text) <= _BINARY


def to_bits(value: int, width: int) -> str:
    """Render ``value`` as exactly ``width`` binary digits, MSB first."""
    if value < 0 or value >> width:
        raise ValueError(f"{value} does not fit in {width} bits")
    return format(value, f"0{width}b") if width else ""


def parse_bits(text: str, width: Optional[int] = None,
               line_no: Optional[int] = None) -> int:
    """Parse a binary digit field, rejecting anything but 0/1 digits.

    With ``width`` set the field must have exactly that many digits.
    """
    if not is_binary_token(text):
        raise MalformedRecord(f"not a binary field: {text!r}", line_no)
    if width is not None and len(text) != width:
        raise MalformedRecord(
            f"expected {width} binary digits, got {len(text)}: {text!r}", line_no)
    return int(text, 2)


def format_line(value: int, width: int) -> bytes:
    return to_bits(value, width).encode("ascii") + CRLF


def iter_lines(data: bytes) -> Iterator[str]:
    """Yield text lines with their CR/LF terminators removed."""
    for raw in data.splitlines():
        yield raw.decode("ascii", errors="replace")


def write_fields(values: Iterable[int], width: int) -> bytes:
    return b"".join(format_line(v, width) for v in values)


def read_fields(data: bytes, width: int) -> List[int]:
    """Parse every non-blank line of ``data`` as a ``width``-bit field."""
    out: List[int] = []
    for n, line in enumerate(iter_lines(data), 1):
        line = line.strip()
        if not line:
            continue
        out.append(parse_bits(line, width, n))
    return out

