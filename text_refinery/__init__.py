"""
Text Refinery

Multi-stage, memory-aware refinement of documents too large for a
single generation call.
"""
from text_refinery.config.load_config import RefineryConfig, StageConfig, build_config, load_config
from text_refinery.memory import Memory
from text_refinery.pipeline import BatchResult, run_pipeline
from text_refinery.refinery import DocumentResult, refine_document

__all__ = [
    "RefineryConfig",
    "StageConfig",
    "build_config",
    "load_config",
    "Memory",
    "BatchResult",
    "run_pipeline",
    "DocumentResult",
    "refine_document",
]
