"""
Command line front end for the tree-header Huffman compressor

How to run:
  python hufftool.py compress book.txt             -> book.txt.hf
  python hufftool.py decompress book.txt.hf -o out.txt
  python hufftool.py -dd compress book.txt         (summary + per-code trace)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import huffman as huff

SUFFIX = ".hf"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def debug_level(flag_count: int) -> int:
    if flag_count <= 0:
        return 0
    return huff.DEBUG_LOW if flag_count == 1 else huff.DEBUG_HIGH


def setup_logging(debug: int) -> None:
    if debug >= huff.DEBUG_HIGH:
        level = logging.DEBUG
    elif debug >= huff.DEBUG_LOW:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def default_output(src: Path, command: str) -> Path:
    if command == "compress":
        return src.with_name(src.name + SUFFIX)
    if src.suffix == SUFFIX:
        return src.with_suffix("")
    return src.with_name(src.name + ".out")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman compressor with the decode tree stored in the file header")
    ap.add_argument("-d", "--debug", action="count", default=0,
                    help="Verbosity: -d for summaries, -dd for per-code traces")
    sub = ap.add_subparsers(dest="command", required=True)
    for name, help_text in (("compress", "Compress a file"), ("decompress", "Decompress a file")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("input", type=Path, help="Input file")
        p.add_argument("-o", "--output", type=Path, default=None,
                       help=f"Output file (default: add/strip {SUFFIX})")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    debug = debug_level(args.debug)
    setup_logging(debug)

    src: Path = args.input
    dst: Path = args.output or default_output(src, args.command)
    # opening dst for writing would truncate src before it is read
    if src.resolve() == dst.resolve():
        print(f"error: output {dst} is the same file as input {src}", file=sys.stderr)
        return 1

    try:
        if args.command == "compress":
            stats = huff.compress_file(src, dst, debug)
            size_in = stats.symbols_in
            size_out = dst.stat().st_size
            print(f"{src} -> {dst}: {size_in} -> {size_out} bytes "
                  f"({stats.leaves} leaves, {stats.header_bits} header bits)")
        else:
            restored = huff.decompress_file(src, dst, debug)
            print(f"{src} -> {dst}: restored {restored} bytes")
    except (huff.HuffError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
