from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Protocol, TYPE_CHECKING
import logging
import time

from text_refinery.errors import TransportError

if TYPE_CHECKING:
    import anthropic

logger = logging.getLogger(__name__)

# Messages API accepts temperatures in [0, 1]
MAX_TEMPERATURE = 1.0


class TextGenerationService(Protocol):
    def generate(self, model: str, prompt: str, temperature: float, max_tokens: int) -> Any:
        ...


@dataclass
class LLMConfig:
    """Configuration for Claude API client."""
    api_key: str
    max_retries: int = 2        # Retries are left to the SDK transport
    timeout: Optional[float] = None  # Seconds; None keeps the SDK default


class ClaudeClient:
    """Thin wrapper around Anthropic's Messages API. One user message per call."""

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client: Optional["anthropic.Anthropic"] = None

    @property
    def client(self) -> "anthropic.Anthropic":
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            import anthropic
            kwargs = {"api_key": self.config.api_key, "max_retries": self.config.max_retries}
            if self.config.timeout is not None:
                kwargs["timeout"] = self.config.timeout
            self._client = anthropic.Anthropic(**kwargs)
        return self._client

    def generate(self, model: str, prompt: str, temperature: float, max_tokens: int) -> Any:
        """
        Send a prompt and return the raw SDK message.

        Raises:
            TransportError: if the API call fails after the SDK's own retries
        """
        import anthropic

        if temperature > MAX_TEMPERATURE:
            logger.warning(f"Temperature {temperature} is above the Messages API limit, using {MAX_TEMPERATURE}")
            temperature = MAX_TEMPERATURE

        start_time = time.time()
        try:
            message = self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Generation failed for model {model}: {type(e).__name__}: {e}")
            raise TransportError(f"{type(e).__name__}: {e}") from e

        latency = (time.time() - start_time) * 1000
        logger.debug(f"Generation with {model} took {latency:.0f}ms")
        return message
