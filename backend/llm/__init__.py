"""LLM package — completion providers and prompt templates.

    from llm.providers import load_provider
    from llm.prompts import build_prompt, format_context
"""

from .prompts import build_prompt, format_context
from .providers import CompletionProvider, load_provider

__all__ = [
    "CompletionProvider",
    "build_prompt",
    "format_context",
    "load_provider",
]
