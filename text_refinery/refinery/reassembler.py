"""
Reassembler

Stitches edited chunks back into one document, dropping the overlap
text that survived editing unchanged.
"""
from __future__ import annotations
from typing import Callable, Sequence
import logging
import operator

logger = logging.getLogger(__name__)

# Shorter shared spans are treated as coincidence, not overlap
MIN_OVERLAP_MATCH = 20

SEAM = "\n\n"


def find_overlap(
    prev: str,
    curr: str,
    overlap_hint_chars: int,
    equals: Callable[[str, str], bool] = operator.eq,
) -> int:
    """Length of the longest suffix of prev that equals a prefix of curr, or 0."""
    max_check = min(overlap_hint_chars, len(prev) // 2, len(curr) // 2)
    for k in range(max_check, MIN_OVERLAP_MATCH - 1, -1):
        if equals(prev[-k:], curr[:k]):
            return k
    return 0


def reassemble(
    edited_chunks: Sequence[str],
    overlap_hint_chars: int = 200,
    equals: Callable[[str, str], bool] = operator.eq,
) -> str:
    """
    Merge edited chunks into a single text.

    Best effort: when rewriting changed the overlap too much to match,
    the chunks are joined with a blank line instead.
    """
    if not edited_chunks:
        return ""

    result = edited_chunks[0]
    for i, curr in enumerate(edited_chunks[1:], start=1):
        cut = find_overlap(result, curr, overlap_hint_chars, equals)
        if cut:
            result += curr[cut:]
        else:
            logger.debug(f"No overlap found before chunk {i}, joining with paragraph break")
            result += SEAM + curr
    return result
