"""
Prompts for Stage Refinement

Every stage call gets the same layout: memory sections first, then the
stage instruction, then the chunk. Section order is fixed.
"""
from __future__ import annotations
from typing import Dict

from text_refinery.memory import Memory

STAGE_RULES = (
    "Rules: Preserve meaning, do not invent facts, keep tone consistent with Style Profile, "
    "preserve terminology in Glossary."
)

RETURN_ONLY_DIRECTIVE = "Return ONLY the edited chunk (no commentary)."


def render_glossary(term_map: Dict[str, str]) -> str:
    return "\n".join(f"{k} = {v}" for k, v in term_map.items())


def build_stage_prompt(
    stage_name: str,
    stage_prompt: str,
    chunk_text: str,
    memory: Memory,
    previous_tail: str,
) -> str:
    """Build the prompt for one stage invocation on one chunk."""
    parts = [
        "# MEMORY",
        "Style Profile:",
        memory.style_profile.notes,
        "",
        "Glossary:",
        render_glossary(memory.glossary.term_map),
        "",
        "Context Summary:",
        memory.context_summary.short,
        "",
        "Last Edited Tail:",
        previous_tail or "",
        "",
        "---",
        f"You are performing: {stage_name}",
        STAGE_RULES,
        "",
        f"Task: {stage_prompt}",
        "",
        "Input chunk:",
        chunk_text,
        "",
        RETURN_ONLY_DIRECTIVE,
    ]
    return "\n".join(parts)
