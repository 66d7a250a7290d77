"""
codebook.py -- the symbol -> (codeword, length) mapping and its text form.

A codeword is an unsigned integer holding ``length`` significant bits,
MSB first; ``length == 0`` marks a symbol absent from the stream.  The
textual table (``HMCODES.txt``, also the codebook segment of a bundle)
looks like::

    Symbol       Codeword         Length
    --------------------------------------
    01000001   0                     1
    01000010   11                    2
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .config import (ALPHABET_SIZE, CODEWORD_BITS, LENGTH_BITS, MAX_CODE_LENGTH,
                     SYMBOL_BITS)
from .errors import CodeTooLong, MalformedRecord, SymbolOutOfRange
from .records import (is_binary_token, iter_lines, parse_bits, read_fields,
                      write_fields)

TABLE_MARKER = "Symbol"
TABLE_HEADER = b"Symbol       Codeword         Length\r\n" + b"-" * 38 + b"\r\n"


@dataclass(frozen=True)
class CodeEntry:
    codeword: int
    length: int

    @property
    def bits(self) -> str:
        return format(self.codeword, f"0{self.length}b") if self.length else ""


ABSENT = CodeEntry(0, 0)


def check_entry(symbol: int, codeword: int, length: int) -> None:
    """Validate one (symbol, codeword, length) triple."""
    if not isinstance(symbol, int) or not 0 <= symbol < ALPHABET_SIZE:
        raise SymbolOutOfRange(symbol)
    if length < 0:
        raise MalformedRecord(f"negative code length {length} for symbol 0x{symbol:02X}")
    if length > MAX_CODE_LENGTH:
        raise CodeTooLong(symbol, length, MAX_CODE_LENGTH)
    if codeword < 0 or codeword >> length:
        raise MalformedRecord(
            f"codeword {codeword:#x} does not fit in {length} bits (symbol 0x{symbol:02X})")


class Codebook:
    """Mapping of present symbols to their :class:`CodeEntry`."""

    def __init__(self, entries: Optional[Dict[int, CodeEntry]] = None) -> None:
        self._entries: Dict[int, CodeEntry] = {}
        for s, e in (entries or {}).items():
            self.set(s, e.codeword, e.length)

    def set(self, symbol: int, codeword: int, length: int) -> None:
        check_entry(symbol, codeword, length)
        self._entries[symbol] = CodeEntry(codeword, length)

    def get(self, symbol: int) -> CodeEntry:
        return self._entries.get(symbol, ABSENT)

    def __getitem__(self, symbol: int) -> CodeEntry:
        return self._entries[symbol]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._entries))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Codebook) and self._entries == other._entries

    def items(self) -> List[Tuple[int, CodeEntry]]:
        return sorted(self._entries.items())

    def triples(self) -> List[Tuple[int, int, int]]:
        return [(s, e.codeword, e.length) for s, e in self.items()]

    def max_length(self) -> int:
        return max((e.length for e in self._entries.values()), default=0)

    def is_prefix_free(self) -> bool:
        """No codeword of nonzero length is a bit-prefix of another one."""
        codes = sorted((e.bits for e in self._entries.values() if e.length), key=len)
        for i, short in enumerate(codes):
            for longer in codes[i + 1:]:
                if longer.startswith(short):
                    return False
        return True

    def encoded_bits(self, symbols: Iterable[int]) -> int:
        return sum(self.get(s).length for s in symbols)

    def __repr__(self) -> str:
        return f"Codebook({len(self)} symbols, max_length={self.max_length()})"


###############################################################################
# Text forms
###############################################################################

def format_codebook_table(book: Codebook) -> bytes:
    out = bytearray(TABLE_HEADER)
    for s, e in book.items():
        out += f"{s:08b}".ljust(10).encode("ascii") + b" "
        out += e.bits.ljust(20).encode("ascii") + b" "
        out += f"{e.length:2d}\r\n".encode("ascii")
    return bytes(out)


def parse_codebook_table(data: bytes) -> Codebook:
    """Parse a codebook table, rejecting any malformed entry line.

    Two symbols sharing a codeword, or a codeword that is a prefix of
    another, make the table undecodable and are rejected as well.
    """
    book = Codebook()
    owners: Dict[str, str] = {}
    for n, line in enumerate(iter_lines(data), 1):
        text = line.strip()
        if not text or text.startswith(TABLE_MARKER) or set(text) == {"-"}:
            continue
        fields = text.split()
        # a zero-length code leaves the codeword column empty
        if len(fields) == 2 and fields[1] == "0":
            fields = [fields[0], "", fields[1]]
        if len(fields) != 3:
            raise MalformedRecord(f"expected symbol, codeword, length: {text!r}", n)
        sym_text, code_text, len_text = fields
        symbol = parse_bits(sym_text, SYMBOL_BITS, n)
        if code_text and not is_binary_token(code_text):
            raise MalformedRecord(f"codeword is not binary: {code_text!r}", n)
        if not len_text.isdigit() or int(len_text) >= 1 << LENGTH_BITS:
            raise MalformedRecord(f"bad code length {len_text!r}", n)
        length = int(len_text)
        if len(code_text) > CODEWORD_BITS:
            raise MalformedRecord(
                f"codeword of {len(code_text)} digits exceeds {CODEWORD_BITS}", n)
        if len(code_text) != length:
            raise MalformedRecord(
                f"codeword {code_text!r} has {len(code_text)} digits, length says {length}", n)
        if symbol in book:
            raise MalformedRecord(f"duplicate entry for symbol {sym_text}", n)
        if code_text and code_text in owners:
            raise MalformedRecord(
                f"codeword {code_text} given to both {owners[code_text]} and {sym_text}", n)
        owners[code_text] = sym_text
        book.set(symbol, int(code_text, 2) if code_text else 0, length)
    if not book.is_prefix_free():
        raise MalformedRecord("codebook table is not prefix-free")
    return book


def codebook_to_fields(book: Codebook) -> Tuple[bytes, bytes, bytes]:
    """Fixed-width SYMIN / CODEWIN / CODELEN record files for ``book``."""
    triples = book.triples()
    return (
        write_fields((t[0] for t in triples), SYMBOL_BITS),
        write_fields((t[1] for t in triples), CODEWORD_BITS),
        write_fields((t[2] for t in triples), LENGTH_BITS),
    )


def fields_to_triples(symin: bytes, codewin: bytes,
                      codelen: bytes) -> List[Tuple[int, int, int]]:
    syms = read_fields(symin, SYMBOL_BITS)
    codes = read_fields(codewin, CODEWORD_BITS)
    lens = read_fields(codelen, LENGTH_BITS)
    if not len(syms) == len(codes) == len(lens):
        raise MalformedRecord(
            f"record files disagree: {len(syms)} symbols, {len(codes)} codewords, "
            f"{len(lens)} lengths")
    return list(zip(syms, codes, lens))
