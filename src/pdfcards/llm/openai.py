"""OpenAI LLM provider."""

from typing import Optional

import openai

from ..exceptions import LLMError
from .base import LLMProvider

_DEFAULT_MAX_OUTPUT = 4_096


class OpenAIProvider(LLMProvider):
    def __init__(self, api_key: str, model: str = "gpt-5.1"):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_output = _DEFAULT_MAX_OUTPUT
        # Newer models (o1, o3, gpt-4.1, gpt-5, etc.) require
        # max_completion_tokens instead of max_tokens. We auto-detect
        # on the first call and cache the result.
        self._use_max_completion_tokens = not self._is_legacy_model(model)

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
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            response = await self._call_api(tokens, messages)
        except openai.APIError as e:
            raise LLMError(f"OpenAI API error: {e}") from e
        return response.choices[0].message.content or ""

    async def _call_api(self, tokens: int, messages: list):
        """Call the OpenAI API, auto-detecting max_tokens vs max_completion_tokens."""
        token_param = (
            "max_completion_tokens"
            if self._use_max_completion_tokens
            else "max_tokens"
        )
        try:
            return await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                **{token_param: tokens},
            )
        except openai.BadRequestError as e:
            # If the parameter is unsupported, toggle and try the other one
            if "unsupported_parameter" in str(e).lower() or "Unsupported parameter" in str(e):
                self._use_max_completion_tokens = not self._use_max_completion_tokens
                alt_param = (
                    "max_completion_tokens"
                    if self._use_max_completion_tokens
                    else "max_tokens"
                )
                return await self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    **{alt_param: tokens},
                )
            raise

    @staticmethod
    def _is_legacy_model(model: str) -> bool:
        """Check if the model uses the legacy max_tokens parameter."""
        legacy_prefixes = ("gpt-3.5", "gpt-4o", "gpt-4-turbo", "gpt-4-")
        return any(model.startswith(p) for p in legacy_prefixes)
