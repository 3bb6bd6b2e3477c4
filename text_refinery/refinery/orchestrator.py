"""
Refinery Orchestrator

Coordinates one document through the refinery:
1. Load memory for the document's key
2. Chunk the document
3. Run every stage over every chunk
4. Reassemble the edited chunks
5. Persist memory
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING
import logging
import time

from text_refinery.adapters.memory_store import MemoryStore, load_memory, persist_memory
from text_refinery.llm.client import TextGenerationService
from text_refinery.memory import Memory
from text_refinery.refinery.chunker import chunk_text
from text_refinery.refinery.reassembler import reassemble
from text_refinery.refinery.runner import StageRunner

if TYPE_CHECKING:
    from text_refinery.config.load_config import RefineryConfig

logger = logging.getLogger(__name__)


@dataclass
class DocumentStats:
    """Statistics from one document run."""
    chars_original: int
    chars_final: int
    stage_calls: int
    llm_latency_ms: float
    total_time_s: float


@dataclass
class DocumentResult:
    """Complete result of refining one document."""
    original_text: str
    final_text: str
    chunks_count: int
    memory_key: str
    memory_version: int
    memory_persisted: bool
    stats: DocumentStats
    stage_outputs: Optional[Dict[str, List[Dict[str, Any]]]] = None
    memory: Optional[Memory] = field(default=None, repr=False)

    def to_dict(self, preview_chars: int = 2000) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "originalText": self.original_text[:preview_chars],
            "finalText": self.final_text,
            "chunksCount": self.chunks_count,
            "memoryVersion": self.memory_version,
            "memoryKey": self.memory_key,
            "memoryPersisted": self.memory_persisted,
        }
        if self.stage_outputs is not None:
            out["stageOutputs"] = self.stage_outputs
        return out


def refine_document(
    text: str,
    config: RefineryConfig,
    client: TextGenerationService,
    store: Optional[MemoryStore] = None,
    memory_key: Optional[str] = None,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
) -> DocumentResult:
    """
    Run the full refinery over one document.

    Args:
        text: Document text
        config: Validated pipeline configuration
        client: Generation service
        store: Memory store, or None for transient memory
        memory_key: Overrides config.memory_key
        progress_callback: Optional callback(step, completed, total)

    Returns:
        DocumentResult with the reassembled text and memory bookkeeping

    Raises:
        BoundaryStallError: if the document cannot be chunked
        TransportError: if a generation call fails
    """
    start_time = time.time()
    key = memory_key or config.memory_key

    memory = load_memory(store, key)

    logger.info(f"Chunking {len(text)} chars (method={config.split_method}, size={config.chunk_size}, overlap={config.overlap_chars})")
    if progress_callback:
        progress_callback("chunking", 0, 1)
    chunks = chunk_text(text, config.chunk_size, config.overlap_chars, config.split_method)
    logger.info(f"Created {len(chunks)} chunks")
    if progress_callback:
        progress_callback("chunking", 1, 1)

    runner = StageRunner(
        client=client,
        default_model=config.default_model,
        overlap_chars=config.overlap_chars,
        verbose=config.verbose,
    )

    def refine_progress(completed, total):
        if progress_callback:
            progress_callback("refining", completed, total)

    run = runner.run(chunks, config.stages, memory, progress_callback=refine_progress)

    if progress_callback:
        progress_callback("assembling", 0, 1)
    final_text = reassemble(run.texts, config.overlap_chars)
    if progress_callback:
        progress_callback("assembling", 1, 1)

    persisted = False
    if store is not None:
        persisted = persist_memory(store, key, memory)

    stats = DocumentStats(
        chars_original=len(text),
        chars_final=len(final_text),
        stage_calls=run.calls,
        llm_latency_ms=run.llm_latency_ms,
        total_time_s=time.time() - start_time,
    )
    logger.info(f"Document complete: {len(chunks)} chunks, {run.calls} calls, {len(text)} → {len(final_text)} chars")

    return DocumentResult(
        original_text=text,
        final_text=final_text,
        chunks_count=len(chunks),
        memory_key=key,
        memory_version=memory.version,
        memory_persisted=persisted,
        stats=stats,
        stage_outputs=run.outputs_by_stage() if config.verbose else None,
        memory=memory,
    )
