"""Completion provider base class.

Every provider implements one method:
  - complete(model, prompt) -> dict   (the generated message, role + content)

To add a new provider:
  1. Create llm/providers/your_provider.py
  2. Subclass CompletionProvider
  3. Register it in llm/providers/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompletionProvider(ABC):
    """Abstract base for completion providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'openai', 'anthropic')."""
        ...

    @abstractmethod
    def complete(self, model: str, prompt: str) -> dict:
        """Send *prompt* as a single user message and return the reply.

        The reply is a ``{"role": ..., "content": ...}`` dict, passed
        through to API callers unchanged.
        """
        ...
