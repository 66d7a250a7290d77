"""
wordsplit.py -- symbol-space reduction and the textual bitstream format.

A 32-bit word is split into four 8-bit symbols, most significant byte
first, and merged back the same way.  ``.rbt`` files carry a few text
header lines (ending with the ``Bits:`` line) followed by the payload as
lines of ``'0'``/``'1'`` characters.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence, Tuple

from .config import WORD_BITS
from .errors import SymbolOutOfRange

BITS_MARKER = "Bits:"


def split_word(word: int) -> Tuple[int, int, int, int]:
    if not 0 <= word <= 0xFFFFFFFF:
        raise ValueError(f"word {word:#x} does not fit in 32 bits")
    return (word >> 24) & 0xFF, (word >> 16) & 0xFF, (word >> 8) & 0xFF, word & 0xFF


def merge_symbols(symbols: Sequence[int]) -> int:
    if len(symbols) != 4:
        raise ValueError(f"need 4 symbols per word, got {len(symbols)}")
    word = 0
    for s in symbols:
        if not 0 <= s <= 0xFF:
            raise SymbolOutOfRange(s)
        word = (word << 8) | s
    return word


def words_to_symbols(words: Iterable[int]) -> Iterator[int]:
    for w in words:
        yield from split_word(w)


def symbols_to_words(symbols: Sequence[int]) -> List[int]:
    """Group symbols by four; a short final group is zero-padded."""
    out: List[int] = []
    for i in range(0, len(symbols), 4):
        group = list(symbols[i:i + 4])
        group += [0] * (4 - len(group))
        out.append(merge_symbols(group))
    return out


def parse_rbt(data: bytes) -> Tuple[bytes, List[int], int]:
    """Split an ``.rbt`` file into (header, symbols, payload bit count).

    Header lines are kept up to and including the first line starting
    with ``Bits:`` (each re-terminated with ``\\n``).  Every 0/1 character
    after it is payload; the final partial word is padded with zeros.
    Without a ``Bits:`` line the whole file is header.
    """
    header = bytearray()
    word = 0
    nbits = 0
    total = 0
    words: List[int] = []
    in_header = True
    for raw in data.splitlines():
        line = raw.decode("ascii", errors="replace")
        if in_header:
            header += raw + b"\n"
            if line.startswith(BITS_MARKER):
                in_header = False
            continue
        for ch in line:
            if ch == "0" or ch == "1":
                word = (word << 1) | (ch == "1")
                nbits += 1
                total += 1
                if nbits == WORD_BITS:
                    words.append(word)
                    word = 0
                    nbits = 0
    if nbits:
        words.append(word << (WORD_BITS - nbits))
    return bytes(header), list(words_to_symbols(words)), total


def render_rbt(header: bytes, symbols: Sequence[int], payload_bits: int = 0) -> bytes:
    """Header lines then one 32-digit line per word, all CRLF terminated.

    With ``payload_bits`` set, the digits are cut back to that many bits
    (dropping the zero padding added by :func:`parse_rbt`).
    """
    out = bytearray()
    for line in header.splitlines():
        out += line + b"\r\n"
    digits = "".join(format(w, "032b") for w in symbols_to_words(symbols))
    if payload_bits:
        digits = digits[:payload_bits]
    for i in range(0, len(digits), WORD_BITS):
        out += digits[i:i + WORD_BITS].encode("ascii") + b"\r\n"
    return bytes(out)
