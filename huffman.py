"""
Tree-header Huffman compression

Compressed layout:
  32-bit magic (HUFF_TREE)
  pre-order tree header: 0 = internal node, 1 + 9-bit value = leaf
  body: one code per input byte, then the PSEUDO_EOF code, zero padded
"""

import heapq
import io
import logging
import os
from dataclasses import dataclass
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple, Union

from bitio import BitInputStream, BitOutputStream

log = logging.getLogger(__name__)

BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE
HUFF_NUMBER = 0xFACE8200
HUFF_TREE = HUFF_NUMBER | 1

DEBUG_LOW = 1
DEBUG_HIGH = 4

Code = Tuple[int, int] # (bit length, code value)


class HuffError(Exception):
    phase = "unknown"

    def __init__(self, message: str):
        super().__init__(f"{self.phase}: {message}")


class FormatError(HuffError): # leading 32 bits are not HUFF_TREE
    phase = "magic"


class HeaderCorruptError(HuffError): # tree header truncated or non-conforming
    phase = "header"


class DecodeTerminationError(HuffError): # body ended before PSEUDO_EOF
    phase = "body"


class HuffmanNode: # Node for Huffman tree
    def __init__(self, value, weight, left=None, right=None):
        self.value = value # symbol, only meaningful on leaves
        self.weight = weight # only meaningful while building
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(value={self.value}, weight={self.weight})"
        return f"HuffmanNode(weight={self.weight}, left={self.left!r}, right={self.right!r})"


@dataclass
class CompressionStats:
    symbols_in: int
    header_bits: int # magic + tree header
    body_bits: int
    leaves: int

    @property
    def total_bits(self) -> int:
        return self.header_bits + self.body_bits


# Frequency counting

def count_frequencies(bits_in: BitInputStream) -> List[int]:
    counts = [0] * (ALPH_SIZE + 1)
    while True:
        symbol = bits_in.read_bits(BITS_PER_WORD)
        if symbol is None:
            break
        counts[symbol] += 1
    counts[PSEUDO_EOF] = 1 # always present, even for empty input
    return counts


# Tree building

def build_huffman_tree(counts: List[int]) -> HuffmanNode:
    """
    Merge the two lightest nodes until one remains
    Equal weights pop in insertion order: leaves by ascending symbol, then
    merged nodes in the order they were created. First pop goes left.
    """
    seq = count()
    heap = [(weight, next(seq), HuffmanNode(symbol, weight))
            for symbol, weight in enumerate(counts) if weight > 0]
    if not heap:
        raise ValueError("cannot build a Huffman tree with no positive counts")
    heapq.heapify(heap)

    while len(heap) > 1:
        w1, _, left = heapq.heappop(heap)
        w2, _, right = heapq.heappop(heap)
        heapq.heappush(heap, (w1 + w2, next(seq), HuffmanNode(0, w1 + w2, left, right)))

    return heap[0][2]


# Code table

def generate_huffman_codes(root: HuffmanNode) -> Dict[int, Code]:
    codes: Dict[int, Code] = {}

    def walk(node: HuffmanNode, prefix: int, depth: int) -> None:
        if node.is_leaf():
            codes[node.value] = (depth, prefix)
            return
        walk(node.left, prefix << 1, depth + 1)
        walk(node.right, (prefix << 1) | 1, depth + 1)

    walk(root, 0, 0)
    return codes


def code_to_str(code: Code) -> str:
    length, value = code
    return format(value, f"0{length}b") if length else ""


# Tree header

def write_header(root: HuffmanNode, bits_out: BitOutputStream, debug: int = 0) -> None:
    if root.is_leaf():
        bits_out.write_bits(1, 1)
        bits_out.write_bits(BITS_PER_WORD + 1, root.value)
        if debug >= DEBUG_HIGH:
            log.debug("wrote leaf %d", root.value)
        return
    bits_out.write_bits(1, 0)
    write_header(root.left, bits_out, debug)
    write_header(root.right, bits_out, debug)


def read_header(bits_in: BitInputStream, debug: int = 0, depth: int = 0) -> HuffmanNode:
    # 257 leaves can't sit deeper than ALPH_SIZE levels
    if depth > ALPH_SIZE:
        raise HeaderCorruptError(f"tree deeper than {ALPH_SIZE} levels after {bits_in.bits_read} bits")
    tag = bits_in.read_bits(1)
    if tag is None:
        raise HeaderCorruptError(f"stream ended while reading a node tag after {bits_in.bits_read} bits")
    if tag == 0:
        left = read_header(bits_in, debug, depth + 1)
        right = read_header(bits_in, debug, depth + 1)
        return HuffmanNode(0, 0, left, right)

    value = bits_in.read_bits(BITS_PER_WORD + 1)
    if value is None:
        raise HeaderCorruptError(f"stream ended while reading a leaf value after {bits_in.bits_read} bits")
    if value > PSEUDO_EOF:
        raise HeaderCorruptError(f"leaf value {value} is outside 0..{PSEUDO_EOF}")
    if debug >= DEBUG_HIGH:
        log.debug("read leaf %d", value)
    return HuffmanNode(value, 0)


# Body

def write_compressed(codes: Dict[int, Code], bits_in: BitInputStream,
                     bits_out: BitOutputStream) -> int:
    """
    Emit one code per input symbol followed by the PSEUDO_EOF code
    Returns the number of input symbols encoded
    """
    symbols = 0
    while True:
        symbol = bits_in.read_bits(BITS_PER_WORD)
        if symbol is None:
            break
        length, value = codes[symbol]
        bits_out.write_bits(length, value)
        symbols += 1

    length, value = codes[PSEUDO_EOF]
    bits_out.write_bits(length, value)
    return symbols


def read_compressed(root: HuffmanNode, bits_in: BitInputStream,
                    bits_out: BitOutputStream) -> int:
    """
    Walk the tree one bit at a time until the PSEUDO_EOF leaf
    Returns the number of symbols written
    """
    if root.is_leaf():
        # single-node tree: nothing to descend, the only code is empty
        if root.value != PSEUDO_EOF:
            raise HeaderCorruptError(f"single-leaf tree holds {root.value}, not PSEUDO_EOF")
        return 0

    symbols = 0
    node = root
    while True:
        bit = bits_in.read_bits(1)
        if bit is None:
            raise DecodeTerminationError(
                f"stream ended before PSEUDO_EOF after {symbols} symbols")
        node = node.right if bit == 1 else node.left

        # Leaf
        if node.is_leaf():
            if node.value == PSEUDO_EOF:
                return symbols
            bits_out.write_bits(BITS_PER_WORD, node.value)
            symbols += 1
            node = root


# Top level

def compress(bits_in: BitInputStream, bits_out: BitOutputStream, debug: int = 0) -> CompressionStats:
    """
    Compress everything readable from bits_in into bits_out
    bits_in is read twice (reset() in between); bits_out is always closed
    """
    try:
        counts = count_frequencies(bits_in)
        root = build_huffman_tree(counts)
        codes = generate_huffman_codes(root)
        if debug >= DEBUG_LOW:
            log.info("counted %d symbols, %d distinct", sum(counts) - 1, len(codes) - 1)
        if debug >= DEBUG_HIGH:
            for symbol in sorted(codes):
                log.debug("code %3d -> %s (count %d)", symbol, code_to_str(codes[symbol]), counts[symbol])

        bits_out.write_bits(BITS_PER_INT, HUFF_TREE)
        write_header(root, bits_out, debug)
        header_bits = bits_out.bits_written

        bits_in.reset()
        symbols = write_compressed(codes, bits_in, bits_out)
        body_bits = bits_out.bits_written - header_bits
        if debug >= DEBUG_LOW:
            log.info("wrote %d header bits, %d body bits", header_bits, body_bits)
    finally:
        bits_out.close()

    return CompressionStats(symbols_in=symbols, header_bits=header_bits,
                            body_bits=body_bits, leaves=len(codes))


def decompress(bits_in: BitInputStream, bits_out: BitOutputStream, debug: int = 0) -> int:
    """
    Decompress bits_in into bits_out, returns the number of bytes restored
    bits_out is always closed
    """
    try:
        magic = bits_in.read_bits(BITS_PER_INT)
        if magic != HUFF_TREE:
            shown = "end of stream" if magic is None else f"{magic:#010x}"
            raise FormatError(f"illegal header starts with {shown}")
        root = read_header(bits_in, debug)
        if debug >= DEBUG_LOW:
            log.info("read tree header, %d bits", bits_in.bits_read)
        symbols = read_compressed(root, bits_in, bits_out)
        if debug >= DEBUG_LOW:
            log.info("decoded %d symbols from %d bits", symbols, bits_in.bits_read)
    finally:
        bits_out.close()
    return symbols


# Helpers

def compress_bytes(data: bytes, debug: int = 0) -> bytes:
    out = io.BytesIO()
    compress(BitInputStream(io.BytesIO(data)), BitOutputStream(out, closefd=False), debug)
    return out.getvalue()


def decompress_bytes(blob: bytes, debug: int = 0) -> bytes:
    out = io.BytesIO()
    decompress(BitInputStream(io.BytesIO(blob)), BitOutputStream(out, closefd=False), debug)
    return out.getvalue()


PathLike = Union[str, os.PathLike]


def compress_file(src: PathLike, dst: PathLike, debug: int = 0) -> CompressionStats:
    with open(src, "rb") as fin, open(dst, "wb") as fout:
        return compress(BitInputStream(fin), BitOutputStream(fout, closefd=False), debug)


def decompress_file(src: PathLike, dst: PathLike, debug: int = 0) -> int:
    with open(src, "rb") as fin, open(dst, "wb") as fout:
        return decompress(BitInputStream(fin), BitOutputStream(fout, closefd=False), debug)


# Tree inspection

def leaves(root: HuffmanNode) -> Iterator[Tuple[int, str]]:
    """Yield (value, path) for every leaf in pre-order"""
    stack: List[Tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf():
            yield node.value, path
        else:
            stack.append((node.right, path + "1"))
            stack.append((node.left, path + "0"))


def tree_height(root: Optional[HuffmanNode]) -> int:
    if root is None or root.is_leaf():
        return 0
    return 1 + max(tree_height(root.left), tree_height(root.right))
