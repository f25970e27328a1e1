"""
Split raw text into overlapping fragments for embedding.

The goal of chunking is to:
1. Keep fragments close to a target size for good retrieval precision
2. Prefer sentence boundaries over mid-word cuts
3. Repeat a little context across boundaries (overlap)

Output is a pure function of the input and the parameters, so re-chunking the
same content always yields the same positions, which is what makes point IDs
reproducible.
"""

import logging
from typing import List

from app.features.knowledge.models import Fragment

logger = logging.getLogger("Memora.Knowledge.Chunker")

TARGET_SIZE = 500
OVERLAP = 50
BOUNDARY_WINDOW = 100

SENTENCE_END = ".!?"


def _sentence_cut(text: str, start: int, ideal: int, window: int) -> int:
    """Cut just after the sentence end closest to `ideal`, or -1 if none is in the window."""
    lo = max(start + 1, ideal - window)
    hi = min(len(text), ideal + window)
    best = -1
    for i in range(lo, hi + 1):
        if text[i - 1] in SENTENCE_END and (i == len(text) or text[i].isspace()):
            if best < 0 or abs(i - ideal) < abs(best - ideal):
                best = i
    return best


def _whitespace_cut(text: str, start: int, ideal: int, window: int) -> int:
    """Cut at the last whitespace at or before `ideal`, or -1 if none is in the window."""
    lo = max(start + 1, ideal - window)
    for i in range(ideal, lo - 1, -1):
        if text[i].isspace():
            return i
    return -1


def find_cut(text: str, start: int, target_size: int, window: int) -> int:
    """End offset (exclusive) of the fragment starting at `start`."""
    ideal = start + target_size
    if ideal >= len(text):
        return len(text)

    cut = _sentence_cut(text, start, ideal, window)
    if cut < 0:
        cut = _whitespace_cut(text, start, ideal, window)
    if cut < 0:
        cut = ideal
    return cut


def split(
    text: str,
    target_size: int = TARGET_SIZE,
    overlap: int = OVERLAP,
    boundary_window: int = BOUNDARY_WINDOW,
) -> List[Fragment]:
    """
    Split text into fragments of roughly `target_size` characters.

    Each fragment after the first starts `overlap` characters before the end of
    the previous one. Empty or whitespace-only input yields no fragments; input
    no longer than `target_size` yields exactly one.

    Args:
        text: Raw text
        target_size: Desired fragment length in characters
        overlap: Characters repeated from the end of the previous fragment
        boundary_window: How far from the target a sentence end may be chosen

    Returns:
        Fragments in order, positions 0..n-1
    """
    if target_size <= 0:
        raise ValueError("target_size must be positive")
    if overlap < 0 or overlap >= target_size:
        raise ValueError("overlap must be in [0, target_size)")

    text = (text or "").strip()
    if not text:
        return []
    if len(text) <= target_size:
        return [Fragment(text=text, position=0)]

    fragments: List[Fragment] = []
    start = 0
    while start < len(text):
        end = find_cut(text, start, target_size, boundary_window)
        piece = text[start:end].strip()
        if piece:
            fragments.append(Fragment(text=piece, position=len(fragments)))
        if end >= len(text):
            break
        start = max(start + 1, end - overlap)

    logger.debug(f"Split {len(text)} chars into {len(fragments)} fragments")
    return fragments
