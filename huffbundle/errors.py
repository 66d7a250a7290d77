"""Exception hierarchy.  Every codec failure is local and synchronous; the
pipeline treats any of them as fatal for the whole run."""

from __future__ import annotations

from typing import Optional


class CodecError(Exception):
    """Base class of all codec failures."""


class ConfigError(CodecError, ValueError):
    pass


class SymbolOutOfRange(CodecError, ValueError):
    def __init__(self, symbol: object, limit: int = 256):
        super().__init__(f"symbol {symbol!r} outside 0..{limit - 1}")
        self.symbol = symbol


class CodeTooLong(CodecError):
    def __init__(self, symbol: int, length: int, limit: int):
        super().__init__(
            f"code for symbol 0x{symbol:02X} needs {length} bits, ceiling is {limit}")
        self.symbol = symbol
        self.length = length


class EmptyFrequencyTable(CodecError):
    pass


class TransactionTimeout(CodecError):
    def __init__(self, channel: str, retries: int):
        super().__init__(f"{channel}: no acknowledge after {retries} polls")
        self.channel = channel
        self.retries = retries


class MalformedRecord(CodecError, ValueError):
    def __init__(self, message: str, line_no: Optional[int] = None):
        where = f" (line {line_no})" if line_no is not None else ""
        super().__init__(message + where)
        self.line_no = line_no


class UnknownSymbol(CodecError):
    """Encode lookup hit a symbol with no loaded codebook entry."""
    def __init__(self, symbol: int):
        super().__init__(f"symbol 0x{symbol:02X} has no loaded codeword")
        self.symbol = symbol


class UnknownCodeword(CodecError):
    """Decode lookup found no entry: the stream is corrupt."""
    def __init__(self, codeword: int, length: int, position: Optional[int] = None):
        bits = format(codeword, f"0{length}b") if length else "<empty>"
        where = f" at record {position}" if position is not None else ""
        super().__init__(f"no symbol for codeword {bits} (length {length}){where}")
        self.codeword = codeword
        self.length = length


class BundleFormatError(CodecError, ValueError):
    pass


class StageFailed(CodecError):
    """A pipeline stage aborted; ``__cause__`` holds the original error."""
    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause
