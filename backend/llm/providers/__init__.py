"""Completion provider loader.

Reads LLM_PROVIDER from settings and returns the matching provider instance.
Provider SDKs are imported lazily — only the selected provider's SDK
needs to be installed.

Usage:
    from llm.providers import load_provider
    message = load_provider(settings).complete(model, prompt)
"""

from __future__ import annotations

import logging

from .base import CompletionProvider

logger = logging.getLogger(__name__)


def load_provider(settings) -> CompletionProvider:
    """Instantiate the configured completion provider."""
    name = settings.LLM_PROVIDER.lower()

    if name == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(
            api_key=settings.LLM_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
        )
    elif name == "anthropic":
        from .anthropic import AnthropicProvider

        return AnthropicProvider(
            api_key=settings.LLM_API_KEY,
            max_tokens=settings.MAX_RESPONSE_TOKENS,
        )
    else:
        raise ValueError(
            f"Unknown LLM_PROVIDER: '{name}'.  "
            f"Supported: openai, anthropic"
        )


__all__ = ["CompletionProvider", "load_provider"]
