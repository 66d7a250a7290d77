"""
codebuilder.py -- Huffman code construction.

The code tree lives in an arena (a flat list of nodes addressed by index)
and is built bottom-up with a binary min-heap:

* one leaf per symbol with a nonzero count, pushed in ascending symbol
  order;
* repeatedly pop the two lightest nodes, the first popped becomes the
  left child, push their merge back;
* stop when a single node (the root) remains.

Heap entries are ``(frequency, sequence, node_index)`` where ``sequence``
is a running insertion counter, so equal frequencies pop in insertion
order and the result is reproducible.  Codewords are then assigned by a
depth-first walk, appending ``0`` to the left and ``1`` to the right.

A stream with a single distinct symbol gives a root that is itself a
leaf.  That symbol gets length 1, codeword ``0`` so every symbol still
costs one bit in the encoded stream.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from loguru import logger

from .codebook import Codebook
from .config import MAX_CODE_LENGTH
from .errors import CodeTooLong, EmptyFrequencyTable
from .frequency import FrequencyTable

###############################################################################
# Arena tree
###############################################################################


@dataclass(frozen=True)
class Leaf:
    symbol: int
    freq: int


@dataclass(frozen=True)
class Internal:
    left: int        # arena index
    right: int       # arena index
    freq: int


CodeTreeNode = Union[Leaf, Internal]


class CodeTree:
    """Acyclic merge tree stored as an indexed list of nodes."""
    __slots__ = ("nodes", "root")

    def __init__(self) -> None:
        self.nodes: List[CodeTreeNode] = []
        self.root: int = -1

    def add(self, node: CodeTreeNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def __getitem__(self, idx: int) -> CodeTreeNode:
        return self.nodes[idx]

    def __len__(self) -> int:
        return len(self.nodes)

    def leaves(self) -> List[Leaf]:
        return [n for n in self.nodes if isinstance(n, Leaf)]

    def walk(self) -> List[Tuple[int, int, int]]:
        """Depth-first (symbol, codeword, depth) for every leaf.

        Explicit stack; the right child is pushed first so the left
        subtree is visited first.
        """
        if self.root < 0:
            return []
        out: List[Tuple[int, int, int]] = []
        stack: List[Tuple[int, int, int]] = [(self.root, 0, 0)]
        while stack:
            idx, code, depth = stack.pop()
            node = self.nodes[idx]
            if isinstance(node, Leaf):
                out.append((node.symbol, code, depth))
            else:
                stack.append((node.right, (code << 1) | 1, depth + 1))
                stack.append((node.left, code << 1, depth + 1))
        return out


def build_tree(freqs: FrequencyTable) -> CodeTree:
    """Run the heap merge over all observed symbols."""
    tree = CodeTree()
    heap: List[Tuple[int, int, int]] = []
    seq = 0
    for sym, count in freqs.nonzero():
        idx = tree.add(Leaf(sym, count))
        heap.append((count, seq, idx))
        seq += 1
    if not heap:
        raise EmptyFrequencyTable("no symbol has a nonzero count")
    heapq.heapify(heap)
    while len(heap) > 1:
        fa, _, a = heapq.heappop(heap)
        fb, _, b = heapq.heappop(heap)
        idx = tree.add(Internal(a, b, fa + fb))
        heapq.heappush(heap, (fa + fb, seq, idx))
        seq += 1
    tree.root = heap[0][2]
    return tree


###############################################################################
# Codebook derivation
###############################################################################

def assign_codes(tree: CodeTree, max_length: int = MAX_CODE_LENGTH) -> Codebook:
    book = Codebook()
    if tree.root >= 0 and isinstance(tree[tree.root], Leaf):
        # degenerate single-symbol stream: no edges to walk
        book.set(tree[tree.root].symbol, 0, 1)
        return book
    for sym, code, depth in tree.walk():
        if depth > max_length:
            raise CodeTooLong(sym, depth, max_length)
        book.set(sym, code, depth)
    return book


def build_codebook(freqs: FrequencyTable,
                   max_length: int = MAX_CODE_LENGTH) -> Codebook:
    """Frequencies -> prefix-free codebook, failing with ``CodeTooLong``
    when any leaf sits deeper than ``max_length``."""
    tree = build_tree(freqs)
    book = assign_codes(tree, max_length)
    logger.debug("code tree: {} nodes, {} leaves, max length {}",
                 len(tree), len(tree.leaves()), book.max_length())
    return book


def average_length(book: Codebook, freqs: FrequencyTable) -> Optional[float]:
    total = freqs.total()
    if not total:
        return None
    return sum(book.get(s).length * c for s, c in freqs.nonzero()) / total
