"""
Document Chunker

Splits a document into overlapping character windows, cutting at
chapter headings, paragraph breaks or sentence ends where possible.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Literal, Optional
import logging
import re

from text_refinery.errors import BoundaryStallError

logger = logging.getLogger(__name__)

SplitMethod = Literal["heading", "smart", "fixed"]
SPLIT_METHODS = ("heading", "smart", "fixed")

# Chapter markers: Persian "فصل" with Latin or Persian digits, English CHAPTER/Chapter
HEADING_PATTERN = re.compile(
    r"(فصل\s*[:\-\s]?\s*[0-9۰-۹]+|CHAPTER\s+\d+|Chapter\s+\d+)",
    re.IGNORECASE,
)

# A heading this close to the window start is not a useful cut
MIN_HEADING_OFFSET = 100

# Paragraph/sentence cuts are only accepted in the last 40% of the window
BOUNDARY_MIN_FRACTION = 0.6

# Checked in order; the first ending found late enough wins
SENTENCE_ENDINGS = (". ", "? ", "! ", "؟ ", "؛ ", ".\n")


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the source document."""
    text: str
    index: int
    source_offset: int

    @property
    def end_offset(self) -> int:
        return self.source_offset + len(self.text)


def _heading_cut(window: str, overlap_chars: int) -> Optional[int]:
    for m in HEADING_PATTERN.finditer(window):
        if m.start() > MIN_HEADING_OFFSET and m.start() > overlap_chars:
            return m.start()
    return None


def _paragraph_cut(window: str, min_offset: int) -> Optional[int]:
    p = window.rfind("\n\n")
    if p >= min_offset:
        return p
    return None


def _sentence_cut(window: str, min_offset: int) -> Optional[int]:
    for ending in SENTENCE_ENDINGS:
        p = window.rfind(ending)
        if p >= min_offset:
            return p + len(ending)
    return None


def choose_cut(window: str, chunk_size: int, overlap_chars: int, method: SplitMethod) -> int:
    """Pick the cut offset (relative to the window start) for a full window."""
    min_offset = int(chunk_size * BOUNDARY_MIN_FRACTION)

    if method == "heading":
        cut = _heading_cut(window, overlap_chars)
        if cut is not None:
            return cut

    cut = _paragraph_cut(window, min_offset)
    if cut is not None:
        return cut

    cut = _sentence_cut(window, min_offset)
    if cut is not None:
        return cut

    return chunk_size


def chunk_text(
    text: str,
    chunk_size: int = 3500,
    overlap_chars: int = 250,
    method: SplitMethod = "heading",
) -> List[Chunk]:
    """
    Split text into overlapping chunks.

    Args:
        text: Full document text
        chunk_size: Maximum characters per chunk
        overlap_chars: Characters each chunk shares with the previous one
        method: One of "heading", "smart" or "fixed"

    Returns:
        Chunks in document order. Consecutive chunks repeat `overlap_chars`
        characters; the reassembler removes the duplication.

    Raises:
        BoundaryStallError: if a cut would not move past the overlap
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap_chars < 0:
        raise ValueError(f"overlap_chars must be non-negative, got {overlap_chars}")
    if method not in SPLIT_METHODS:
        raise ValueError(f"Unknown split method: {method}")

    chunks: List[Chunk] = []
    pos = 0

    while pos < len(text):
        if pos + chunk_size >= len(text):
            chunks.append(Chunk(text=text[pos:], index=len(chunks), source_offset=pos))
            break

        window = text[pos:pos + chunk_size]
        cut = choose_cut(window, chunk_size, overlap_chars, method)

        chunks.append(Chunk(text=text[pos:pos + cut], index=len(chunks), source_offset=pos))

        if cut <= overlap_chars:
            raise BoundaryStallError(pos, cut, overlap_chars)
        pos = max(0, pos + cut - overlap_chars)

    logger.debug(f"Split {len(text)} chars into {len(chunks)} chunks (method={method})")
    return chunks
