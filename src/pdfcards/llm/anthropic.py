"""Claude/Anthropic LLM provider."""

from typing import Optional

import anthropic

from ..exceptions import LLMError
from .base import LLMProvider

# Max output tokens by model family
_MODEL_MAX_OUTPUT = {
    "claude-sonnet-4": 8_192,
    "claude-opus-4": 8_192,
    "claude-3-5-haiku": 4_096,
}

_DEFAULT_MAX_OUTPUT = 4_096


def _get_model_max_output(model: str) -> int:
    """Determine max output tokens for a given model string."""
    for prefix, limit in _MODEL_MAX_OUTPUT.items():
        if model.startswith(prefix):
            return limit
    return _DEFAULT_MAX_OUTPUT


class AnthropicProvider(LLMProvider):
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_output = _get_model_max_output(model)

    @property
    def default_max_output_tokens(self) -> int:
        return self._max_output

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        tokens = min(
            max_output_tokens or self._max_output,
            self._max_output,
        )
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.APIError as e:
            raise LLMError(f"Anthropic API error: {e}") from e
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
