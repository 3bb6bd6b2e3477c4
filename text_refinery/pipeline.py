from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging
import threading
import time

from text_refinery.adapters.items import Item, document_text, item_label, memory_key_for
from text_refinery.adapters.memory_store import LocalJsonMemoryStore, MemoryStore
from text_refinery.config.load_config import RefineryConfig
from text_refinery.errors import BoundaryStallError, TransportError
from text_refinery.llm.client import TextGenerationService
from text_refinery.refinery.orchestrator import DocumentResult, refine_document

logger = logging.getLogger(__name__)


@dataclass
class DocumentFailure:
    index: int
    source: str
    error: str


@dataclass
class BatchResult:
    """Outcome of a batch: successful documents in input order plus failures."""
    documents: List[DocumentResult] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)
    total_time_s: float = 0

    @property
    def ok(self) -> bool:
        return not self.failures


class KeyedLocks:
    """One lock per memory key, so documents sharing a key never interleave."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())


def build_memory_store(config: RefineryConfig) -> Optional[MemoryStore]:
    """Store matching config.memory_mode; None for transient memory."""
    if config.memory_mode == "transient":
        return None
    if config.memory_mode == "persistent-local":
        return LocalJsonMemoryStore(config.memory_dir)

    from text_refinery.adapters.google_adapter import GoogleDriveConfig, GoogleDriveMemoryStore
    return GoogleDriveMemoryStore(GoogleDriveConfig(
        credentials_path=config.google_credentials,
        folder_id=config.google_folder_id,
    ))


def run_pipeline(
    items: Sequence[Item],
    config: RefineryConfig,
    client: TextGenerationService,
    store: Optional[MemoryStore] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> BatchResult:
    """
    Refine a batch of input items.

    A document that fails (generation transport error, chunker stall,
    unreadable memory record) is logged and left out of `documents`; the
    rest of the batch continues.

    Args:
        items: Input items carrying text under config.input_field
        config: Validated pipeline configuration
        client: Generation service
        store: Memory store (None for transient memory)
        progress_callback: Optional callable(completed, total) for progress updates

    Returns:
        BatchResult with documents in input order
    """
    start_time = time.time()
    locks = KeyedLocks()
    total = len(items)
    results: List[Optional[DocumentResult]] = [None] * total
    failures: List[DocumentFailure] = []

    def process(index: int) -> DocumentResult:
        item = items[index]
        key = memory_key_for(item, config.memory_key)
        text = document_text(item, config.input_field)
        if not text:
            logger.warning(f"{item_label(item, index)}: no text under '{config.input_field}'")
        with locks.lock_for(key):
            return refine_document(text, config, client, store=store, memory_key=key)

    logger.info(f"Starting refinery on {total} documents with {config.max_concurrent} workers")
    completed = 0

    with ThreadPoolExecutor(max_workers=config.max_concurrent) as executor:
        future_to_idx = {executor.submit(process, i): i for i in range(total)}

        for future in as_completed(future_to_idx):
            idx = future_to_idx[future]
            source = item_label(items[idx], idx)
            try:
                results[idx] = future.result()
            except (TransportError, BoundaryStallError, OSError, ValueError) as e:
                logger.error(f"Document {source} failed: {type(e).__name__}: {e}")
                failures.append(DocumentFailure(index=idx, source=source, error=f"{type(e).__name__}: {e}"))
            completed += 1

            if progress_callback:
                progress_callback(completed, total)

    batch = BatchResult(total_time_s=time.time() - start_time)
    for i, res in enumerate(results):
        if res is not None:
            batch.documents.append(res)
            batch.sources.append(item_label(items[i], i))
    batch.failures = sorted(failures, key=lambda f: f.index)

    logger.info(f"Completed {total} documents in {batch.total_time_s:.1f}s ({len(batch.documents)} successful, {len(failures)} failed)")
    return batch


def batch_payload(batch: BatchResult, config: RefineryConfig) -> Dict[str, Any]:
    """JSON-ready summary of a batch run."""
    return {
        "documents": [
            {"source": src, **doc.to_dict(config.preview_chars)}
            for src, doc in zip(batch.sources, batch.documents)
        ],
        "failures": [
            {"index": f.index, "source": f.source, "error": f.error}
            for f in batch.failures
        ],
        "stats": {
            "documents_total": len(batch.documents) + len(batch.failures),
            "documents_ok": len(batch.documents),
            "documents_failed": len(batch.failures),
            "chunks_total": sum(d.chunks_count for d in batch.documents),
            "stage_calls": sum(d.stats.stage_calls for d in batch.documents),
            "total_time_s": round(batch.total_time_s, 1),
        },
    }
