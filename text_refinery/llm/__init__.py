from __future__ import annotations

from text_refinery.errors import TransportError
from text_refinery.llm.client import ClaudeClient, LLMConfig, TextGenerationService
from text_refinery.llm.response import ResolvedResponse, ResponseShape, resolve_response, response_text

__all__ = [
    "ClaudeClient",
    "LLMConfig",
    "TextGenerationService",
    "TransportError",
    "ResolvedResponse",
    "ResponseShape",
    "resolve_response",
    "response_text",
]
