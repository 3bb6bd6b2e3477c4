"""
Refinery Engine

Chunk a long document, run each chunk through an ordered list of
generation stages with a shared continuity memory, and stitch the
results back together.
"""
from text_refinery.refinery.chunker import chunk_text, Chunk, SplitMethod
from text_refinery.refinery.tail import tail_of
from text_refinery.refinery.reassembler import reassemble
from text_refinery.refinery.runner import StageRunner, RunnerResult, EditedChunk, StageOutput
from text_refinery.refinery.orchestrator import (
    refine_document,
    DocumentResult,
    DocumentStats,
)

__all__ = [
    "chunk_text",
    "Chunk",
    "SplitMethod",
    "tail_of",
    "reassemble",
    "StageRunner",
    "RunnerResult",
    "EditedChunk",
    "StageOutput",
    "refine_document",
    "DocumentResult",
    "DocumentStats",
]
