"""
pipeline.py -- compress / decompress sequencing over a storage backend.

Compression::

    parse -> frequency -> codebook -> encode -> bundle -> obfuscate

Decompression::

    deobfuscate -> unbundle -> codebook -> load -> stream -> decode -> reconstruct

Every stage reads what the previous one left in storage under a fixed
name (``PARSED.txt``, ``HMCODES.txt``, ...) and writes its own result
before the next stage starts.  Any :class:`CodecError` or ``OSError``
raised inside a stage aborts the whole run as :class:`StageFailed`; a
Huffman stream has no resynchronisation point, so nothing is retried.
Helper streams are removed at the end unless ``keep_intermediates``.  A
run whose input or output resolves to one of the helper names is refused
with :class:`ConfigError` before anything is written.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from . import bundle as framer
from .bitstream import pack_codewords, unpack_codewords
from .codebook import (Codebook, codebook_to_fields, fields_to_triples,
                       format_codebook_table, parse_codebook_table)
from .codebuilder import average_length, build_codebook
from .config import (CODEBOOK_FILE, CODELEN_FILE, CODEWIN_FILE, CODEWORD_BITS,
                     COMP_FILE, COMPRESS_HELPERS, DECOMPRESS_HELPERS, FREQ_FILE,
                     HEADER_FILE, LENGTH_BITS, OUTCW_FILE, OUTLEN_FILE,
                     OUTPUT_FILE, PARSED_FILE, PROGRESS_EVERY, REGEN_FILE,
                     SYMBOL_BITS, SYMIN_FILE, CodecConfig)
from .engines import DecodeEngine, EncodeEngine
from .errors import (BundleFormatError, CodecError, ConfigError,
                     MalformedRecord, StageFailed)
from .frequency import (FrequencyTable, format_frequency_report,
                        parse_frequency_report)
from .obfuscate import deobfuscate, obfuscate
from .records import (CRLF, is_binary_token, iter_lines, read_fields,
                      write_fields)
from .storage import MemoryStorage, Storage
from .wordsplit import parse_rbt, render_rbt

###############################################################################
# Progress / timing helpers
###############################################################################


def _print_progress(label: str, i: int, n: int, final: bool = False) -> None:
    """Symbol-level progress: [{label}] symbol i/n ... / done."""
    if not final:
        print(f"[{label}] symbol {i}/{n} ...", end="\r", flush=True)
    else:
        print(f"[{label}] symbol {n}/{n} done.", flush=True)


def _progress(config: CodecConfig, label: str, i: int, n: int) -> None:
    if config.progress and i % PROGRESS_EVERY == 0:
        _print_progress(label, i, n)


def _progress_done(config: CodecConfig, label: str, n: int) -> None:
    if config.progress:
        _print_progress(label, n, n, final=True)


def format_elapsed(seconds: float) -> str:
    """``m:ss``, as the run summary reports it."""
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"


@dataclass
class RunReport:
    direction: str
    input_name: str
    output_name: str
    input_bytes: int = 0
    output_bytes: int = 0
    symbols: int = 0
    distinct: int = 0
    elapsed: float = 0.0
    stage_ms: Dict[str, float] = field(default_factory=dict)

    @property
    def ratio(self) -> float:
        return self.output_bytes / self.input_bytes if self.input_bytes else 1.0

    def summary(self) -> str:
        verb = "Compressed" if self.direction == "compress" else "Decompressed"
        return (f"{verb} {self.input_bytes} bytes to {self.output_bytes} bytes "
                f"(ratio {self.ratio:.3f}, {self.symbols} symbols) "
                f"in {format_elapsed(self.elapsed)} -> {self.output_name}")


@contextmanager
def _stage(report: RunReport, name: str) -> Iterator[Dict[str, object]]:
    """Run one stage body; log start/finish and wrap failures."""
    info: Dict[str, object] = {}
    logger.info("[{}] {} ...", report.direction, name)
    t0 = time.perf_counter()
    try:
        yield info
    except StageFailed:
        raise
    except (CodecError, OSError) as exc:
        logger.error("[{}] {} failed: {}", report.direction, name, exc)
        raise StageFailed(name, exc) from exc
    ms = (time.perf_counter() - t0) * 1000.0
    report.stage_ms[name] = ms
    details = ", ".join(f"{k}={v}" for k, v in info.items())
    logger.info("[{}] {} done in {:.1f} ms{}", report.direction, name, ms,
                f" ({details})" if details else "")


def _check_helper_names(storage: Storage, helpers: Tuple[str, ...],
                        input_name: str, output_name: str) -> None:
    """Refuse a run whose helper streams would land on its input or output."""
    taken = {storage.resolve(input_name), storage.resolve(output_name)}
    clash = [n for n in helpers if storage.resolve(n) in taken]
    if clash:
        raise ConfigError(
            f"helper stream {clash[0]} would overwrite {input_name} or {output_name}; "
            f"use another working directory")


def _cleanup(storage: Storage, helpers: Tuple[str, ...]) -> None:
    removed = storage.discard(*helpers)
    logger.debug("removed {} helper streams", removed)


###############################################################################
# Encoded stream text
###############################################################################

def format_stream_text(pairs: List[Tuple[int, int]]) -> bytes:
    """One trimmed codeword per CRLF line."""
    out = bytearray()
    for code, length in pairs:
        out += format(code, f"0{length}b").encode("ascii") + CRLF
    return bytes(out)


def parse_stream_text(data: bytes) -> List[Tuple[int, int]]:
    pairs: List[Tuple[int, int]] = []
    for n, line in enumerate(iter_lines(data), 1):
        text = line.strip()
        if not text:
            continue
        if not is_binary_token(text):
            raise MalformedRecord(f"encoded stream line is not binary: {text!r}", n)
        if len(text) > CODEWORD_BITS:
            raise MalformedRecord(
                f"codeword of {len(text)} digits exceeds {CODEWORD_BITS}", n)
        pairs.append((int(text, 2), len(text)))
    return pairs


###############################################################################
# Compression
###############################################################################

def compress(storage: Storage, input_name: str, output_name: str,
             config: Optional[CodecConfig] = None) -> RunReport:
    """Compress ``input_name`` into an obfuscated bundle ``output_name``."""
    config = config or CodecConfig()
    report = RunReport("compress", input_name, output_name)
    logger.info("compress {} -> {} ({})", input_name, output_name, config.describe())
    _check_helper_names(storage, COMPRESS_HELPERS, input_name, output_name)
    t0 = time.perf_counter()
    try:
        with _stage(report, "parse") as info:
            data = storage.read(input_name)
            report.input_bytes = len(data)
            if config.input_kind == "rbt":
                header, symbols, payload_bits = parse_rbt(data)
            else:
                header, symbols, payload_bits = b"", list(data), len(data) * 8
            storage.write(HEADER_FILE, header)
            storage.write(PARSED_FILE, write_fields(symbols, SYMBOL_BITS))
            report.symbols = len(symbols)
            info.update(symbols=len(symbols), payload_bits=payload_bits)

        with _stage(report, "frequency") as info:
            parsed = read_fields(storage.read(PARSED_FILE), SYMBOL_BITS)
            freqs = FrequencyTable(config.counter_bits)
            n = len(parsed)
            for i, sym in enumerate(parsed):
                freqs.record(sym)
                _progress(config, "FREQ", i, n)
            _progress_done(config, "FREQ", n)
            freqs.freeze()
            storage.write(FREQ_FILE, format_frequency_report(freqs))
            report.distinct = freqs.distinct()
            info.update(distinct=freqs.distinct())

        with _stage(report, "codebook") as info:
            freqs = parse_frequency_report(storage.read(FREQ_FILE), config.counter_bits)
            if freqs.total():
                book = build_codebook(freqs)
            else:
                logger.warning("empty payload, writing an empty codebook")
                book = Codebook()
            symin, codewin, codelen = codebook_to_fields(book)
            storage.write(SYMIN_FILE, symin)
            storage.write(CODEWIN_FILE, codewin)
            storage.write(CODELEN_FILE, codelen)
            storage.write(CODEBOOK_FILE, format_codebook_table(book))
            avg = average_length(book, freqs)
            info.update(entries=len(book), max_length=book.max_length(),
                        avg_bits=f"{avg:.3f}" if avg is not None else "-")

        with _stage(report, "encode") as info:
            engine = EncodeEngine.from_config(config)
            engine.load_entries(fields_to_triples(storage.read(SYMIN_FILE),
                                                  storage.read(CODEWIN_FILE),
                                                  storage.read(CODELEN_FILE)))
            parsed = read_fields(storage.read(PARSED_FILE), SYMBOL_BITS)
            pairs: List[Tuple[int, int]] = []
            n = len(parsed)
            for i, sym in enumerate(parsed):
                pairs.append(engine.encode_strict(sym))
                _progress(config, "ENCODE", i, n)
            _progress_done(config, "ENCODE", n)
            if config.stream_format == "packed":
                stream, nbits = pack_codewords(pairs)
            else:
                stream = format_stream_text(pairs)
                nbits = book.encoded_bits(parsed)
            storage.write(OUTPUT_FILE, stream)
            info.update(codewords=len(pairs), bits=nbits)

        with _stage(report, "bundle") as info:
            b = framer.Bundle(storage.read(HEADER_FILE), storage.read(CODEBOOK_FILE),
                              storage.read(OUTPUT_FILE),
                              input_kind=config.input_kind,
                              stream_format=config.stream_format,
                              payload_bits=payload_bits, symbol_count=len(pairs),
                              framing=config.framing)
            storage.write(COMP_FILE, framer.join(b))
            info.update(framing=config.framing)

        with _stage(report, "obfuscate") as info:
            blob = obfuscate(storage.read(COMP_FILE), config.key)
            storage.write(output_name, blob)
            report.output_bytes = len(blob)
            info.update(bytes=len(blob))
    finally:
        if not config.keep_intermediates:
            _cleanup(storage, COMPRESS_HELPERS)

    report.elapsed = time.perf_counter() - t0
    logger.info("compress finished in {}", format_elapsed(report.elapsed))
    return report


###############################################################################
# Decompression
###############################################################################

def decompress(storage: Storage, input_name: str, output_name: str,
               config: Optional[CodecConfig] = None) -> RunReport:
    """Invert :func:`compress`: ``input_name`` bundle -> ``output_name``.

    Framed bundles describe themselves.  For a legacy bundle the input
    kind comes from ``config.input_kind`` and the zero padding of the
    last ``.rbt`` word is kept.
    """
    config = config or CodecConfig()
    report = RunReport("decompress", input_name, output_name)
    logger.info("decompress {} -> {} ({})", input_name, output_name, config.describe())
    _check_helper_names(storage, DECOMPRESS_HELPERS, input_name, output_name)
    t0 = time.perf_counter()
    try:
        with _stage(report, "deobfuscate") as info:
            blob = storage.read(input_name)
            report.input_bytes = len(blob)
            storage.write(COMP_FILE, deobfuscate(blob, config.key))
            info.update(bytes=len(blob))

        with _stage(report, "unbundle") as info:
            b = framer.split(storage.read(COMP_FILE))
            if b.framing == "legacy":
                b.input_kind = config.input_kind
            if not b.codebook:
                if b.header or b.stream:
                    raise BundleFormatError("no codebook table found in bundle")
                logger.warning("bundle has no codebook table")
            storage.write(HEADER_FILE, b.header)
            storage.write(CODEBOOK_FILE, b.codebook)
            storage.write(OUTPUT_FILE, b.stream)
            info.update(framing=b.framing, input=b.input_kind, stream=b.stream_format)

        with _stage(report, "codebook") as info:
            book = parse_codebook_table(storage.read(CODEBOOK_FILE))
            symin, codewin, codelen = codebook_to_fields(book)
            storage.write(SYMIN_FILE, symin)
            storage.write(CODEWIN_FILE, codewin)
            storage.write(CODELEN_FILE, codelen)
            report.distinct = len(book)
            info.update(entries=len(book))

        with _stage(report, "load") as info:
            engine = DecodeEngine.from_config(config)
            loaded = engine.load_entries(fields_to_triples(storage.read(SYMIN_FILE),
                                                           storage.read(CODEWIN_FILE),
                                                           storage.read(CODELEN_FILE)))
            info.update(entries=loaded)

        with _stage(report, "stream") as info:
            stream = storage.read(OUTPUT_FILE)
            if b.stream_format == "packed":
                pairs = unpack_codewords(stream, b.symbol_count, engine.keys())
            else:
                pairs = parse_stream_text(stream)
            if b.framing == "framed" and len(pairs) != b.symbol_count:
                raise BundleFormatError(
                    f"stream holds {len(pairs)} codewords, frame says {b.symbol_count}")
            storage.write(OUTCW_FILE, write_fields((c for c, _ in pairs), CODEWORD_BITS))
            storage.write(OUTLEN_FILE, write_fields((n for _, n in pairs), LENGTH_BITS))
            info.update(codewords=len(pairs))

        with _stage(report, "decode") as info:
            codes = read_fields(storage.read(OUTCW_FILE), CODEWORD_BITS)
            lengths = read_fields(storage.read(OUTLEN_FILE), LENGTH_BITS)
            if len(codes) != len(lengths):
                raise MalformedRecord(
                    f"{len(codes)} codewords but {len(lengths)} lengths")
            symbols: List[int] = []
            n = len(codes)
            for i, (code, length) in enumerate(zip(codes, lengths)):
                symbols.append(engine.decode_strict(code, length, i))
                _progress(config, "DECODE", i, n)
            _progress_done(config, "DECODE", n)
            storage.write(REGEN_FILE, write_fields(symbols, SYMBOL_BITS))
            report.symbols = len(symbols)
            info.update(symbols=len(symbols))

        with _stage(report, "reconstruct") as info:
            symbols = read_fields(storage.read(REGEN_FILE), SYMBOL_BITS)
            if b.input_kind == "rbt":
                keep_bits = b.payload_bits if b.framing == "framed" else 0
                out = render_rbt(storage.read(HEADER_FILE), symbols, keep_bits)
            else:
                out = bytes(symbols)
            storage.write(output_name, out)
            report.output_bytes = len(out)
            info.update(bytes=len(out))
    finally:
        if not config.keep_intermediates:
            _cleanup(storage, DECOMPRESS_HELPERS)

    report.elapsed = time.perf_counter() - t0
    logger.info("decompress finished in {}", format_elapsed(report.elapsed))
    return report


###############################################################################
# In-memory convenience
###############################################################################

_IN, _OUT = "input.bin", "output.bin"


def compress_bytes(data: bytes, config: Optional[CodecConfig] = None) -> bytes:
    storage = MemoryStorage({_IN: bytes(data)})
    compress(storage, _IN, _OUT, config)
    return storage.files[_OUT]


def decompress_bytes(blob: bytes, config: Optional[CodecConfig] = None) -> bytes:
    storage = MemoryStorage({_IN: bytes(blob)})
    decompress(storage, _IN, _OUT, config)
    return storage.files[_OUT]
