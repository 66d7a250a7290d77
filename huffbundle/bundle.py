"""
bundle.py -- joining and splitting the three segments of an artifact.

A bundle is ``header ++ codebook table ++ encoded stream``.  Two framings
are supported.

Legacy (structural, byte-compatible with older bundles)
    Segments are concatenated as-is.  On the way back the codebook
    segment starts at the first line beginning with ``Symbol`` and the
    stream segment at the first later line that is a single bare binary
    token.  Blank lines stay with the segment being read.  This breaks if
    a header line happens to start with ``Symbol``.

Framed (default)
    ``b'HUFB'`` followed by a fixed little-endian prefix:

    * ``u8 version`` -- currently 1
    * ``u8 input_kind`` -- 0 = rbt, 1 = raw
    * ``u8 stream_format`` -- 0 = text, 1 = packed
    * ``u8`` padding
    * ``u32 header_len``, ``u32 codebook_len``, ``u32 stream_len``
    * ``u64 payload_bits`` -- exact payload size of the input, in bits
    * ``u64 symbol_count`` -- number of encoded symbols

    then the three segments back to back.  No guessing is needed, and a
    prefix that does not add up is rejected.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List

from .codebook import TABLE_MARKER
from .errors import BundleFormatError
from .records import is_binary_token

MAGIC = b"HUFB"
VERSION = 1
_PREFIX = struct.Struct("<BBBxIIIQQ")
PREFIX_SIZE = len(MAGIC) + _PREFIX.size

_KIND_CODES = {"rbt": 0, "raw": 1}
_STREAM_CODES = {"text": 0, "packed": 1}


def _reverse(table: dict) -> dict:
    return {v: k for k, v in table.items()}


@dataclass
class Bundle:
    header: bytes = b""
    codebook: bytes = b""
    stream: bytes = b""
    input_kind: str = "rbt"
    stream_format: str = "text"
    payload_bits: int = 0
    symbol_count: int = 0
    framing: str = "framed"

    def segments(self) -> List[bytes]:
        return [self.header, self.codebook, self.stream]


###############################################################################
# Legacy structural framing
###############################################################################

def _token_count(line: str) -> int:
    return len(line.split())


def join_legacy(bundle: Bundle) -> bytes:
    return bundle.header + bundle.codebook + bundle.stream


def split_legacy(data: bytes) -> Bundle:
    """Recover the segments of a legacy bundle from its line structure."""
    parts = [bytearray(), bytearray(), bytearray()]
    state = 0
    for raw in data.splitlines(keepends=True):
        line = raw.rstrip(b"\r\n").decode("ascii", errors="replace")
        if state == 0 and line.startswith(TABLE_MARKER):
            state = 1
        elif state == 1 and _token_count(line) == 1 and is_binary_token(line):
            state = 2
        parts[state] += raw
    return Bundle(bytes(parts[0]), bytes(parts[1]), bytes(parts[2]),
                  framing="legacy")


###############################################################################
# Explicit framing
###############################################################################

def join_framed(bundle: Bundle) -> bytes:
    try:
        kind = _KIND_CODES[bundle.input_kind]
        fmt = _STREAM_CODES[bundle.stream_format]
    except KeyError as exc:
        raise BundleFormatError(f"cannot frame bundle: unknown {exc}") from None
    prefix = _PREFIX.pack(VERSION, kind, fmt, len(bundle.header),
                          len(bundle.codebook), len(bundle.stream),
                          bundle.payload_bits, bundle.symbol_count)
    return MAGIC + prefix + bundle.header + bundle.codebook + bundle.stream


def split_framed(data: bytes) -> Bundle:
    if data[:len(MAGIC)] != MAGIC:
        raise BundleFormatError("bad magic")
    if len(data) < PREFIX_SIZE:
        raise BundleFormatError("truncated frame prefix")
    (version, kind, fmt, hlen, clen, slen,
     payload_bits, symbol_count) = _PREFIX.unpack_from(data, len(MAGIC))
    if version != VERSION:
        raise BundleFormatError(f"unsupported bundle version {version}")
    kinds, fmts = _reverse(_KIND_CODES), _reverse(_STREAM_CODES)
    if kind not in kinds or fmt not in fmts:
        raise BundleFormatError(f"unknown input kind {kind} or stream format {fmt}")
    p = PREFIX_SIZE
    end = p + hlen + clen + slen
    if end > len(data):
        raise BundleFormatError(
            f"segments need {end - p} bytes, only {len(data) - p} present")
    if end != len(data):
        raise BundleFormatError(f"{len(data) - end} trailing bytes after last segment")
    header = data[p:p + hlen]
    p += hlen
    codebook = data[p:p + clen]
    p += clen
    stream = data[p:p + slen]
    return Bundle(header, codebook, stream, input_kind=kinds[kind],
                  stream_format=fmts[fmt], payload_bits=payload_bits,
                  symbol_count=symbol_count, framing="framed")


###############################################################################
# Dispatch
###############################################################################

def join(bundle: Bundle) -> bytes:
    if bundle.framing == "legacy":
        if bundle.stream_format != "text":
            raise BundleFormatError("legacy framing only carries the text stream")
        return join_legacy(bundle)
    return join_framed(bundle)


def split(data: bytes) -> Bundle:
    """Framed when the magic is present, legacy structural split otherwise."""
    if data[:len(MAGIC)] == MAGIC:
        return split_framed(data)
    return split_legacy(data)
