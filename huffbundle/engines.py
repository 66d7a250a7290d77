"""
engines.py -- the symbol-encode and codeword-decode engines.

Both engines own a 256-entry table that is filled one entry at a time
through a *load* channel, then queried through a *request* channel.  The
two channels of one engine share a lock, so the table is never modified
while a lookup against it is outstanding.

Encode: ``symbol -> (codeword, length)``; an unloaded symbol answers
``(0, 0)``.

Decode: ``(codeword, length) -> symbol`` by exact pair equality (not
prefix matching); no match answers symbol 0 with ``found=False``.  The
table is indexed by the pair, so a lookup is a dict probe rather than a
scan over all entries; the matching rule is the same.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from loguru import logger

from .codebook import ABSENT, CodeEntry, Codebook, check_entry
from .config import ALPHABET_SIZE, LOAD_RETRIES, VALID_RETRIES, CodecConfig
from .errors import (MalformedRecord, SymbolOutOfRange, UnknownCodeword,
                     UnknownSymbol)
from .handshake import Channel

Triple = Tuple[int, int, int]


class DecodeResult(NamedTuple):
    symbol: int
    found: bool


class _TableEngine:
    """Common load path: one (symbol, codeword, length) per transaction."""

    kind = "engine"

    def __init__(self, load_retries: int = LOAD_RETRIES,
                 valid_retries: int = VALID_RETRIES,
                 poll_interval: float = 0.0,
                 latency: int = 0) -> None:
        self._lock = threading.Lock()
        self.loader = Channel(self._install, load_retries, name=f"{self.kind}.load",
                              latency=latency, poll_interval=poll_interval,
                              lock=self._lock)
        self.requester = Channel(self._lookup, valid_retries, name=f"{self.kind}.request",
                                 latency=latency, poll_interval=poll_interval,
                                 lock=self._lock)

    @classmethod
    def from_config(cls, config: CodecConfig, latency: int = 0):
        return cls(config.load_retries, config.valid_retries,
                   config.poll_interval, latency)

    @classmethod
    def with_codebook(cls, book: Codebook, config: Optional[CodecConfig] = None):
        engine = cls.from_config(config or CodecConfig())
        engine.load_codebook(book)
        return engine

    def load(self, symbol: int, codeword: int, length: int) -> None:
        check_entry(symbol, codeword, length)
        self.loader.transact(symbol, codeword, length)

    def load_entries(self, triples: Iterable[Triple]) -> int:
        n = 0
        for symbol, codeword, length in triples:
            if n == ALPHABET_SIZE:
                raise MalformedRecord(f"more than {ALPHABET_SIZE} codebook entries")
            self.load(symbol, codeword, length)
            n += 1
        logger.debug("{}: loaded {} codebook entries", self.kind, n)
        return n

    def load_codebook(self, book: Codebook) -> int:
        return self.load_entries(book.triples())

    def _install(self, symbol: int, codeword: int, length: int) -> None:
        raise NotImplementedError

    def _lookup(self, *operands: int):
        raise NotImplementedError


class EncodeEngine(_TableEngine):
    kind = "encoder"

    def __init__(self, *args, **kwargs) -> None:
        self._table: List[CodeEntry] = [ABSENT] * ALPHABET_SIZE
        super().__init__(*args, **kwargs)

    def _install(self, symbol: int, codeword: int, length: int) -> None:
        self._table[symbol] = CodeEntry(codeword, length)

    def _lookup(self, symbol: int) -> Tuple[int, int]:
        e = self._table[symbol]
        return e.codeword, e.length

    def encode(self, symbol: int) -> Tuple[int, int]:
        """(codeword, length) for ``symbol``; (0, 0) when nothing is loaded."""
        if not isinstance(symbol, int) or not 0 <= symbol < ALPHABET_SIZE:
            raise SymbolOutOfRange(symbol)
        return self.requester.transact(symbol)

    def encode_strict(self, symbol: int) -> Tuple[int, int]:
        codeword, length = self.encode(symbol)
        if length == 0:
            raise UnknownSymbol(symbol)
        return codeword, length

    def loaded(self) -> Dict[int, CodeEntry]:
        return {s: e for s, e in enumerate(self._table) if e.length}


class DecodeEngine(_TableEngine):
    kind = "decoder"

    def __init__(self, *args, **kwargs) -> None:
        self._by_code: Dict[Tuple[int, int], int] = {}
        self._by_symbol: Dict[int, Tuple[int, int]] = {}
        super().__init__(*args, **kwargs)

    def _install(self, symbol: int, codeword: int, length: int) -> None:
        old = self._by_symbol.pop(symbol, None)
        if old is not None and self._by_code.get(old) == symbol:
            del self._by_code[old]
        self._by_symbol[symbol] = (codeword, length)
        self._by_code[(codeword, length)] = symbol

    def _lookup(self, codeword: int, length: int) -> DecodeResult:
        sym = self._by_code.get((codeword, length))
        if sym is None:
            return DecodeResult(0, False)
        return DecodeResult(sym, True)

    def decode(self, codeword: int, length: int) -> DecodeResult:
        return self.requester.transact(codeword, length)

    def decode_strict(self, codeword: int, length: int,
                      position: Optional[int] = None) -> int:
        result = self.decode(codeword, length)
        if not result.found:
            raise UnknownCodeword(codeword, length, position)
        return result.symbol

    def keys(self) -> frozenset:
        """All loaded (codeword, length) pairs."""
        return frozenset(self._by_code)
