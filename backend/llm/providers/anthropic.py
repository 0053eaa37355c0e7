"""Anthropic completion provider.

Handles Anthropic-specific API differences:
  - ``max_tokens`` is mandatory
  - Response content is a list of blocks, not a single string
"""

from __future__ import annotations

import logging

from .base import CompletionProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(CompletionProvider):
    """Anthropic Messages API."""

    def __init__(self, api_key: str, max_tokens: int = 1024, client=None):
        if client is None:
            from anthropic import Anthropic  # type: ignore[import-untyped]

            client = Anthropic(api_key=api_key)
        self._client = client
        self._max_tokens = max_tokens
        logger.info(f"Anthropic provider ready (max_tokens={self._max_tokens})")

    @property
    def name(self) -> str:
        return "anthropic"

    def complete(self, model: str, prompt: str) -> dict:
        response = self._client.messages.create(
            model=model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
        return {"role": response.role, "content": text}
