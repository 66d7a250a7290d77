"""MSB-first bit packing for the packed encoded-stream option."""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Tuple

from .config import MAX_CODE_LENGTH
from .errors import BundleFormatError, UnknownCodeword


class BitWriter:
    __slots__ = ("buf", "cur", "bitpos", "nbits")

    def __init__(self) -> None:
        self.buf = bytearray()
        self.cur = 0
        self.bitpos = 0   # 0..7, next bit goes to (7 - bitpos)
        self.nbits = 0

    def write_bit(self, b: int) -> None:
        self.cur |= (b & 1) << (7 - self.bitpos)
        self.bitpos += 1
        self.nbits += 1
        if self.bitpos == 8:
            self.buf.append(self.cur)
            self.cur = 0
            self.bitpos = 0

    def write_kbits(self, val: int, k: int) -> None:
        for i in range(k - 1, -1, -1):
            self.write_bit((val >> i) & 1)

    def getbytes(self) -> bytes:
        """Contents padded with zero bits to a whole byte."""
        tail = bytes([self.cur]) if self.bitpos else b""
        return bytes(self.buf) + tail


class BitReader:
    __slots__ = ("buf", "byte", "bit")

    def __init__(self, buf: bytes) -> None:
        self.buf = buf
        self.byte = 0
        self.bit = 0

    def read_bit(self) -> int:
        if self.byte >= len(self.buf):
            raise BundleFormatError("packed stream ended mid-codeword")
        v = (self.buf[self.byte] >> (7 - self.bit)) & 1
        self.bit += 1
        if self.bit == 8:
            self.bit = 0
            self.byte += 1
        return v

    def tell(self) -> int:
        return self.byte * 8 + self.bit


def pack_codewords(pairs: Iterable[Tuple[int, int]]) -> Tuple[bytes, int]:
    """Concatenate (codeword, length) pairs; returns (bytes, bit count)."""
    bw = BitWriter()
    for code, length in pairs:
        bw.write_kbits(code, length)
    return bw.getbytes(), bw.nbits


def unpack_codewords(data: bytes, count: int,
                     keys: AbstractSet[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Split a packed stream into ``count`` (codeword, length) pairs.

    Boundaries come from the loaded codebook: bits are accumulated until
    the pair is a known key.  Because the code is prefix-free the first
    hit is the only one.
    """
    br = BitReader(data)
    out: List[Tuple[int, int]] = []
    for _ in range(count):
        code = 0
        for length in range(1, MAX_CODE_LENGTH + 1):
            code = (code << 1) | br.read_bit()
            if (code, length) in keys:
                out.append((code, length))
                break
        else:
            raise UnknownCodeword(code, MAX_CODE_LENGTH, len(out))
    spare = len(data) * 8 - br.tell()
    if spare > 7:
        raise BundleFormatError(
            f"{spare} bits left after {count} codewords, at most 7 padding bits allowed")
    return out
