"""
frequency.py -- per-symbol occurrence counters.

Counters saturate at ``2**counter_bits - 1`` rather than wrapping; the
reference hardware uses 24-bit counters.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from .config import ALPHABET_SIZE, DEFAULT_COUNTER_BITS
from .errors import ConfigError, MalformedRecord, SymbolOutOfRange
from .records import iter_lines, parse_bits

FREQ_HEADER = b"Symbol        Frequency\r\n"
FREQ_RULE = b"-" * 25 + b"\r\n"


class FrequencyTable:
    """Saturating counters for the 256-symbol alphabet."""
    __slots__ = ("counts", "counter_bits", "limit", "_frozen")

    def __init__(self, counter_bits: int = DEFAULT_COUNTER_BITS) -> None:
        if not 1 <= counter_bits <= 32:
            raise ConfigError(f"counter_bits must be in 1..32, got {counter_bits}")
        self.counter_bits = counter_bits
        self.limit = (1 << counter_bits) - 1
        self.counts: List[int] = [0] * ALPHABET_SIZE
        self._frozen = False

    def record(self, symbol: int) -> None:
        if self._frozen:
            raise RuntimeError("frequency table is read-only after accumulation")
        if not isinstance(symbol, int) or not 0 <= symbol < ALPHABET_SIZE:
            raise SymbolOutOfRange(symbol)
        if self.counts[symbol] < self.limit:
            self.counts[symbol] += 1

    def record_all(self, symbols: Iterable[int]) -> int:
        n = 0
        for s in symbols:
            self.record(s)
            n += 1
        return n

    def freeze(self) -> "FrequencyTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, symbol: int) -> int:
        return self.counts[symbol]

    def nonzero(self) -> Iterator[Tuple[int, int]]:
        """(symbol, count) pairs for observed symbols, ascending by symbol."""
        for s, c in enumerate(self.counts):
            if c:
                yield s, c

    def distinct(self) -> int:
        return sum(1 for c in self.counts if c)

    def total(self) -> int:
        return sum(self.counts)

    def as_dict(self) -> Dict[int, int]:
        return dict(self.nonzero())

    @classmethod
    def from_symbols(cls, symbols: Iterable[int],
                     counter_bits: int = DEFAULT_COUNTER_BITS) -> "FrequencyTable":
        table = cls(counter_bits)
        table.record_all(symbols)
        return table.freeze()

    def __repr__(self) -> str:
        return f"FrequencyTable(distinct={self.distinct()}, total={self.total()})"


def format_frequency_report(table: FrequencyTable) -> bytes:
    out = bytearray(FREQ_HEADER + FREQ_RULE)
    for s, c in table.nonzero():
        out += f"{s:08b}        {c}\r\n".encode("ascii")
    return bytes(out)


def parse_frequency_report(data: bytes,
                           counter_bits: int = DEFAULT_COUNTER_BITS) -> FrequencyTable:
    """Rebuild a table from :func:`format_frequency_report` output."""
    table = FrequencyTable(counter_bits)
    for n, line in enumerate(iter_lines(data), 1):
        fields = line.split()
        if not fields or line.startswith("Symbol") or set(line.strip()) == {"-"}:
            continue
        if len(fields) != 2 or not fields[1].isdigit():
            raise MalformedRecord(f"bad frequency line {line!r}", n)
        symbol = parse_bits(fields[0], 8, n)
        table.counts[symbol] = min(int(fields[1]), table.limit)
    return table.freeze()
