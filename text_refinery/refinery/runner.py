"""
Stage Pipeline Runner

Applies the configured stages to every chunk, in chunk order and then
stage order, threading the edited text and the memory tail forward.
Nothing here runs in parallel: each call sees the tail of the call
before it.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING
import logging
import time

from text_refinery.llm.client import TextGenerationService
from text_refinery.llm.response import ResponseShape, resolve_response
from text_refinery.memory import Memory
from text_refinery.refinery.chunker import Chunk
from text_refinery.refinery.prompts import build_stage_prompt
from text_refinery.refinery.tail import tail_of

if TYPE_CHECKING:
    from text_refinery.config.load_config import StageConfig

logger = logging.getLogger(__name__)

# Floor for the tail window, whatever the configured overlap
MIN_TAIL_CHARS = 200

ConditionHook = Callable[["StageConfig", Chunk], bool]


def always_run(stage: StageConfig, chunk: Chunk) -> bool:
    """Default condition hook: stage conditions are reserved and never evaluated."""
    return True


@dataclass
class EditedChunk:
    index: int
    text: str


@dataclass
class StageOutput:
    stage_ordinal: int   # 1-based position in the configured stage list
    chunk_index: int
    output: str


@dataclass
class RunnerResult:
    edited_chunks: List[EditedChunk]
    stage_outputs: List[StageOutput] = field(default_factory=list)
    calls: int = 0
    llm_latency_ms: float = 0

    @property
    def texts(self) -> List[str]:
        return [c.text for c in self.edited_chunks]

    def outputs_by_stage(self) -> Dict[str, List[Dict[str, object]]]:
        grouped: Dict[str, List[Dict[str, object]]] = {}
        for so in self.stage_outputs:
            grouped.setdefault(f"stage{so.stage_ordinal}", []).append({
                "chunkIndex": so.chunk_index,
                "output": so.output,
            })
        return grouped


class StageRunner:
    """Runs an ordered stage list over ordered chunks against one Memory record."""

    def __init__(
        self,
        client: TextGenerationService,
        default_model: str,
        overlap_chars: int = 250,
        verbose: bool = False,
        condition_hook: ConditionHook = always_run,
    ):
        self.client = client
        self.default_model = default_model
        self.overlap_chars = overlap_chars
        self.verbose = verbose
        self.condition_hook = condition_hook

    @property
    def tail_chars(self) -> int:
        return max(MIN_TAIL_CHARS, self.overlap_chars)

    def resolve_model(self, stage: StageConfig) -> str:
        return stage.model_override if stage.model_override else self.default_model

    def _should_run(self, stage: StageConfig, chunk: Chunk) -> bool:
        if not stage.enabled:
            return False
        if stage.condition:
            logger.debug(f"Stage '{stage.name}' condition {stage.condition!r} is reserved, not evaluated")
        return self.condition_hook(stage, chunk)

    def run_stage(self, stage: StageConfig, chunk: Chunk, text: str, memory: Memory) -> str:
        """One generation call. Updates the memory tail before returning."""
        model = self.resolve_model(stage)
        prompt = build_stage_prompt(
            stage.name,
            stage.prompt_template,
            text,
            memory,
            memory.last_edited_tail.text,
        )

        resp = self.client.generate(model, prompt, stage.temperature, stage.max_tokens)
        resolved = resolve_response(resp)
        if resolved.shape == ResponseShape.FALLBACK:
            logger.warning(f"Stage '{stage.name}' chunk {chunk.index}: unrecognized response, using serialized form")

        memory.set_tail(tail_of(resolved.text, self.tail_chars))
        return resolved.text

    def run(
        self,
        chunks: Sequence[Chunk],
        stages: Sequence[StageConfig],
        memory: Memory,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> RunnerResult:
        """
        Refine every chunk through every enabled stage.

        Args:
            chunks: Chunks in document order
            stages: Stages in configured order
            memory: Continuity record, mutated in place
            progress_callback: Optional callback(completed_chunks, total_chunks)

        Returns:
            RunnerResult with one EditedChunk per input chunk
        """
        result = RunnerResult(edited_chunks=[])
        total = len(chunks)

        for chunk in chunks:
            current = chunk.text
            for ordinal, stage in enumerate(stages, start=1):
                if not self._should_run(stage, chunk):
                    continue

                start_time = time.time()
                current = self.run_stage(stage, chunk, current, memory)
                result.llm_latency_ms += (time.time() - start_time) * 1000
                result.calls += 1

                if self.verbose:
                    result.stage_outputs.append(StageOutput(
                        stage_ordinal=ordinal,
                        chunk_index=chunk.index,
                        output=current,
                    ))

            result.edited_chunks.append(EditedChunk(index=chunk.index, text=current))

            if progress_callback:
                progress_callback(len(result.edited_chunks), total)

        logger.info(f"Refined {total} chunks with {result.calls} stage calls")
        return result
