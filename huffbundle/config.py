"""
config.py -- fixed design parameters and run-time knobs of the codec.

The widths below are the ones the codebook/stream text records use on
disk (one binary field per line): 8-bit symbols, 16-bit codewords and
5-bit code lengths.  Everything that may legitimately vary between runs
lives in :class:`CodecConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict

from .errors import ConfigError

###############################################################################
# Fixed widths
###############################################################################

SYMBOL_BITS = 8
CODEWORD_BITS = 16
LENGTH_BITS = 5
ALPHABET_SIZE = 1 << SYMBOL_BITS
MAX_CODE_LENGTH = CODEWORD_BITS   # ceiling of the encode transaction
WORD_BITS = 32                    # .rbt payload word, split into 4 symbols

DEFAULT_COUNTER_BITS = 24
DEFAULT_KEY = 0x5A

# Poll budgets (number of acknowledge/valid samples before giving up)
LOAD_RETRIES = 10000
VALID_RETRIES = 100000

PROGRESS_EVERY = 500000

FRAMINGS = ("framed", "legacy")
STREAM_FORMATS = ("text", "packed")
INPUT_KINDS = ("rbt", "raw")

###############################################################################
# Intermediate stream names (one per stage boundary)
###############################################################################

HEADER_FILE = "HEADER.txt"
PARSED_FILE = "PARSED.txt"
FREQ_FILE = "FREQ.txt"
SYMIN_FILE = "SYMIN.txt"
CODEWIN_FILE = "CODEWIN.txt"
CODELEN_FILE = "CODELEN.txt"
CODEBOOK_FILE = "HMCODES.txt"
OUTPUT_FILE = "OUTPUT.txt"
COMP_FILE = "COMP.bin"
OUTCW_FILE = "OUTCW.txt"
OUTLEN_FILE = "OUTLEN.txt"
REGEN_FILE = "RGN.txt"

COMPRESS_HELPERS = (
    HEADER_FILE, PARSED_FILE, FREQ_FILE, SYMIN_FILE, CODEWIN_FILE,
    CODELEN_FILE, CODEBOOK_FILE, OUTPUT_FILE, COMP_FILE,
)
DECOMPRESS_HELPERS = (
    COMP_FILE, HEADER_FILE, CODEBOOK_FILE, OUTPUT_FILE, SYMIN_FILE,
    CODEWIN_FILE, CODELEN_FILE, OUTCW_FILE, OUTLEN_FILE, REGEN_FILE,
)


@dataclass(frozen=True)
class CodecConfig:
    """Run-time settings shared by the compress and decompress pipelines."""
    key: int = DEFAULT_KEY
    counter_bits: int = DEFAULT_COUNTER_BITS
    load_retries: int = LOAD_RETRIES
    valid_retries: int = VALID_RETRIES
    poll_interval: float = 0.0
    framing: str = "framed"
    stream_format: str = "text"
    input_kind: str = "rbt"
    keep_intermediates: bool = False
    progress: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.key <= 0xFF:
            raise ConfigError(f"key must fit in 8 bits, got {self.key:#x}")
        if not 1 <= self.counter_bits <= 32:
            raise ConfigError(f"counter_bits must be in 1..32, got {self.counter_bits}")
        if self.load_retries < 1 or self.valid_retries < 1:
            raise ConfigError("retry budgets must be at least 1")
        if self.poll_interval < 0:
            raise ConfigError("poll_interval cannot be negative")
        if self.framing not in FRAMINGS:
            raise ConfigError(f"unknown framing {self.framing!r}")
        if self.stream_format not in STREAM_FORMATS:
            raise ConfigError(f"unknown stream format {self.stream_format!r}")
        if self.input_kind not in INPUT_KINDS:
            raise ConfigError(f"unknown input kind {self.input_kind!r}")
        if self.framing == "legacy" and self.stream_format == "packed":
            raise ConfigError("legacy framing only carries the text stream")

    def with_options(self, **changes: object) -> "CodecConfig":
        return replace(self, **changes)

    def describe(self) -> Dict[str, object]:
        return {
            "key": f"0x{self.key:02X}",
            "framing": self.framing,
            "stream": self.stream_format,
            "input": self.input_kind,
        }
