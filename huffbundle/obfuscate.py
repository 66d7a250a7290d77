"""
obfuscate.py -- reversible byte obfuscation.

    encode_byte(b, key) = NOT(b) XOR key
    decode_byte(c, key) = NOT(c XOR key)

Both directions are the same map (NOT and XOR commute), so a single
256-entry lookup table per key serves encode and decode.  The transform
is byte-local: any chunking of the buffer gives the same result as long
as the key is shared end to end.  This is obfuscation, not encryption.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Iterator

from .errors import ConfigError, SymbolOutOfRange


def _byte(x: int) -> int:
    return x & 0xFF


def gate_not(a: int) -> int:
    return _byte(~a)


def gate_xor(a: int, b: int) -> int:
    return _byte(a ^ b)


def _check(value: int, what: str) -> None:
    if not 0 <= value <= 0xFF:
        if what == "key":
            raise ConfigError(f"obfuscation key must fit in 8 bits, got {value}")
        raise SymbolOutOfRange(value)


def encode_byte(b: int, key: int) -> int:
    _check(b, "byte")
    _check(key, "key")
    return gate_xor(gate_not(b), key)


def decode_byte(c: int, key: int) -> int:
    _check(c, "byte")
    _check(key, "key")
    return gate_not(gate_xor(c, key))


@lru_cache(maxsize=16)
def _table(key: int) -> bytes:
    _check(key, "key")
    return bytes(encode_byte(b, key) for b in range(256))


def obfuscate(data: bytes, key: int) -> bytes:
    """Apply ``encode_byte`` to every byte of ``data``."""
    return bytes(data).translate(_table(key))


def deobfuscate(data: bytes, key: int) -> bytes:
    """Inverse of :func:`obfuscate` (same table, the map is an involution)."""
    return bytes(data).translate(_table(key))


def obfuscate_chunks(chunks: Iterable[bytes], key: int) -> Iterator[bytes]:
    table = _table(key)
    for chunk in chunks:
        yield bytes(chunk).translate(table)
