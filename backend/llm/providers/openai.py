"""OpenAI completion provider.

Also works with any OpenAI-compatible API (Azure OpenAI, vLLM, Ollama,
Together AI, etc.) — set OPENAI_BASE_URL to the custom endpoint.
"""

from __future__ import annotations

import logging

from .base import CompletionProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(CompletionProvider):
    """OpenAI Chat Completions API."""

    def __init__(self, api_key: str, base_url: str = "", client=None):
        if client is None:
            from openai import OpenAI  # type: ignore[import-untyped]

            kwargs: dict = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            client = OpenAI(**kwargs)
        self._client = client
        logger.info(
            f"OpenAI provider ready"
            f"{' (base_url=' + base_url + ')' if base_url else ''}"
        )

    @property
    def name(self) -> str:
        return "openai"

    def complete(self, model: str, prompt: str) -> dict:
        response = self._client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        message = response.choices[0].message
        return {"role": message.role, "content": message.content}
