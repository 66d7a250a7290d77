"""Huffman bundle codec: frequency table, code builder, request/acknowledge
encode and decode engines, byte obfuscation and bundle framing."""

from .bundle import Bundle
from .codebook import Codebook, CodeEntry
from .codebuilder import build_codebook
from .config import CodecConfig
from .engines import DecodeEngine, DecodeResult, EncodeEngine
from .errors import (BundleFormatError, CodecError, CodeTooLong, ConfigError,
                     EmptyFrequencyTable, MalformedRecord, StageFailed,
                     SymbolOutOfRange, TransactionTimeout, UnknownCodeword,
                     UnknownSymbol)
from .frequency import FrequencyTable
from .obfuscate import decode_byte, deobfuscate, encode_byte, obfuscate
from .pipeline import (RunReport, compress, compress_bytes, decompress,
                       decompress_bytes)
from .storage import DirectoryStorage, MemoryStorage

__version__ = "0.1.0"

__all__ = [
    "Bundle", "Codebook", "CodeEntry", "build_codebook", "CodecConfig",
    "DecodeEngine", "DecodeResult", "EncodeEngine", "FrequencyTable",
    "decode_byte", "deobfuscate", "encode_byte", "obfuscate",
    "RunReport", "compress", "compress_bytes", "decompress", "decompress_bytes",
    "DirectoryStorage", "MemoryStorage",
    "BundleFormatError", "CodecError", "CodeTooLong", "ConfigError",
    "EmptyFrequencyTable", "MalformedRecord", "StageFailed", "SymbolOutOfRange",
    "TransactionTimeout", "UnknownCodeword", "UnknownSymbol",
]
