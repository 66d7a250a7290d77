"""Command line front end: ``python -m huffbundle INPUT [-d] [-o OUTPUT] ...``"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
import tempfile
from typing import List, Optional

from loguru import logger

from .config import DEFAULT_COUNTER_BITS, DEFAULT_KEY, CodecConfig
from .errors import CodecError
from .pipeline import compress, decompress
from .storage import DirectoryStorage


def _hex_byte(text: str) -> int:
    try:
        return int(text, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex value: {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="huffbundle",
        description="Huffman bundle compressor with reversible byte obfuscation")
    parser.add_argument('input', nargs='?', help="Input file to compress or decompress")
    parser.add_argument('-d', '--decompress', action='store_true', help="Decompress instead of compress")
    parser.add_argument('-o', '--output', help="Output file")
    parser.add_argument('--key', type=_hex_byte, default=DEFAULT_KEY,
                        help=f"Obfuscation key as hex byte (default {DEFAULT_KEY:02X})")
    parser.add_argument('--raw', action='store_true',
                        help="Input is raw bytes instead of an .rbt text bitstream")
    parser.add_argument('--legacy', action='store_true',
                        help="Structural (unframed) bundle layout of older bundles")
    parser.add_argument('--packed', action='store_true',
                        help="Bit-pack the encoded stream (framed bundles only)")
    parser.add_argument('--counter-bits', type=int, default=DEFAULT_COUNTER_BITS,
                        help=f"Width of the saturating frequency counters (default {DEFAULT_COUNTER_BITS})")
    parser.add_argument('--workdir', help="Directory for helper files (default: a private temporary directory)")
    parser.add_argument('--keep', action='store_true', help="Keep helper files after the run")
    parser.add_argument('--progress', action='store_true', help="Show per-symbol progress")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug logging")
    parser.add_argument('--experiment', action='store_true', help="Run built-in experiment")
    return parser


def _default_output(args: argparse.Namespace) -> str:
    if args.decompress:
        return os.path.splitext(args.input)[0] + '.out'
    return args.input + '.hfb'


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    if args.experiment:
        from .benchmark_compare import run_experiment
        run_experiment()
        return 0

    if not args.input:
        parser.print_help()
        return 0

    try:
        config = CodecConfig(
            key=args.key,
            counter_bits=args.counter_bits,
            framing="legacy" if args.legacy else "framed",
            stream_format="packed" if args.packed else "text",
            input_kind="raw" if args.raw else "rbt",
            keep_intermediates=args.keep,
            progress=args.progress,
        )
    except CodecError as exc:
        logger.error("{}", exc)
        return 1

    inname = os.path.abspath(args.input)
    outname = os.path.abspath(args.output or _default_output(args))
    workdir = args.workdir or tempfile.mkdtemp(prefix="huffbundle-")
    run = decompress if args.decompress else compress
    try:
        report = run(DirectoryStorage(workdir), inname, outname, config)
    except CodecError as exc:
        logger.error("{}", exc)
        return 1
    finally:
        if not args.workdir:
            if args.keep:
                logger.info("helper files kept in {}", workdir)
            else:
                shutil.rmtree(workdir)
    print(report.summary())
    return 0


if __name__ == '__main__':
    sys.exit(main())
