"""
Tail Extractor

Derives the short, sentence-aligned continuation fragment that is shown
to the next generation call as "Last Edited Tail".
"""
from __future__ import annotations
import re

# Terminal punctuation (Latin, Arabic/Persian, CJK) followed by whitespace, or a bare newline
SENTENCE_BOUNDARY = re.compile(r"[.!?؟。！？]\s+|\n\s*")

DEFAULT_TAIL_CHARS = 400


def tail_of(text: str, max_chars: int = DEFAULT_TAIL_CHARS) -> str:
    """
    Return the trailing fragment of `text`, at most `max_chars` long.

    The window is cut at the first sentence boundary inside it so the
    fragment does not start mid-sentence. If the only boundary is at the
    very end of the window, the whole window is kept.
    """
    if not text or max_chars <= 0:
        return ""

    window = text[-max_chars:]
    m = SENTENCE_BOUNDARY.search(window)
    if m and m.end() < len(window):
        return window[m.end():].strip()
    return window.strip()
