"""
Response resolver

Turns whatever the generation service returned into plain text. Shapes
are tried in a fixed order and the last branch always succeeds.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple
import json
import logging

logger = logging.getLogger(__name__)


class ResponseShape(str, Enum):
    EMPTY = "empty"
    PLAIN_TEXT = "plain_text"
    CONTENT_BLOCKS = "content_blocks"      # Messages API: content=[{type: text, text: ...}]
    CHAT_MESSAGE = "chat_message"          # choices[0].message.content
    TEXT_COMPLETION = "text_completion"    # choices[0].text
    FALLBACK = "fallback"


@dataclass
class ResolvedResponse:
    shape: ResponseShape
    text: str


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _first_choice(resp: Any) -> Any:
    if not isinstance(resp, dict):
        return None
    choices = resp.get("choices")
    if isinstance(choices, list) and choices:
        return choices[0]
    return None


def _match_empty(resp: Any) -> Optional[str]:
    return "" if resp is None else None


def _match_plain_text(resp: Any) -> Optional[str]:
    return resp if isinstance(resp, str) else None


def _match_content_blocks(resp: Any) -> Optional[str]:
    content = _get(resp, "content")
    if not isinstance(content, list) or not content:
        return None
    parts = [_get(block, "text") for block in content]
    texts = [p for p in parts if isinstance(p, str)]
    if not texts:
        return None
    return "".join(texts)


def _match_chat_message(resp: Any) -> Optional[str]:
    choice = _first_choice(resp)
    message = _get(choice, "message") if choice is not None else None
    content = _get(message, "content") if message is not None else None
    return content if isinstance(content, str) and content else None


def _match_text_completion(resp: Any) -> Optional[str]:
    choice = _first_choice(resp)
    text = _get(choice, "text") if choice is not None else None
    return text if isinstance(text, str) and text else None


RECOGNIZED_SHAPES: List[Tuple[ResponseShape, Callable[[Any], Optional[str]]]] = [
    (ResponseShape.EMPTY, _match_empty),
    (ResponseShape.PLAIN_TEXT, _match_plain_text),
    (ResponseShape.CONTENT_BLOCKS, _match_content_blocks),
    (ResponseShape.CHAT_MESSAGE, _match_chat_message),
    (ResponseShape.TEXT_COMPLETION, _match_text_completion),
]


def _serialize(resp: Any) -> str:
    try:
        return json.dumps(resp, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(resp)


def resolve_response(resp: Any) -> ResolvedResponse:
    """Resolve a raw generation response to text. Never raises."""
    for shape, matcher in RECOGNIZED_SHAPES:
        text = matcher(resp)
        if text is not None:
            return ResolvedResponse(shape=shape, text=text)

    logger.warning(f"Unrecognized response shape ({type(resp).__name__}), serializing whole response")
    return ResolvedResponse(shape=ResponseShape.FALLBACK, text=_serialize(resp))


def response_text(resp: Any) -> str:
    return resolve_response(resp).text
