from typing import List, Tuple

import pytest

from text_refinery.refinery.prompts import RETURN_ONLY_DIRECTIVE

INPUT_MARKER = "\nInput chunk:\n"


def chunk_from_prompt(prompt: str) -> str:
    body = prompt.split(INPUT_MARKER, 1)[1]
    return body[: body.rindex("\n\n" + RETURN_ONLY_DIRECTIVE)]


class EchoClient:
    """Generation stand-in that returns the chunk it was given, unchanged."""

    def __init__(self):
        self.calls: List[Tuple[str, str, float, int]] = []

    def generate(self, model, prompt, temperature, max_tokens):
        self.calls.append((model, prompt, temperature, max_tokens))
        return {"choices": [{"message": {"role": "assistant", "content": chunk_from_prompt(prompt)}}]}


@pytest.fixture
def echo_client():
    return EchoClient()
