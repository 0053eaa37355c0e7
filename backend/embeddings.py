"""Embedding providers — text → fixed-length vector.

Two backends, selected by EMBEDDING_PROVIDER:

  - ``openai``  OpenAI embeddings API (default ``text-embedding-ada-002``).
    Also works with any OpenAI-compatible endpoint via OPENAI_BASE_URL.
  - ``local``   sentence-transformers model, no API key required.  The model
    is loaded lazily on first call (~1-2s warm-up, then near-instant).

Provider SDKs are imported lazily — only the selected provider's SDK
needs to be installed.  Errors from the SDK propagate; the pipelines
translate them into ``EmbeddingFailure``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base for embedding providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'openai', 'local')."""
        ...

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Encode *text* and return its vector as a list of floats."""
        ...


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI Embeddings API."""

    DEFAULT_MODEL = "text-embedding-ada-002"

    def __init__(self, api_key: str, model: str = "", base_url: str = "", client=None):
        if client is None:
            from openai import OpenAI  # type: ignore[import-untyped]

            kwargs: dict = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            client = OpenAI(**kwargs)
        self._client = client
        self._model = model or self.DEFAULT_MODEL
        logger.info(f"OpenAI embeddings ready (model={self._model})")

    @property
    def name(self) -> str:
        return "openai"

    def embed(self, text: str) -> list[float]:
        response = self._client.embeddings.create(
            encoding_format="float",
            input=text,
            model=self._model,
        )
        if not response or not response.data:
            return []
        return list(response.data[0].embedding or [])


class LocalEmbeddingProvider(EmbeddingProvider):
    """sentence-transformers model running in-process."""

    def __init__(self, model_name: str):
        self._model_name = model_name
        self._model = None

    @property
    def name(self) -> str:
        return "local"

    def _get_model(self):
        """Lazy-load and cache the SentenceTransformer model."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(self._model_name)
            logger.info(f"Local embeddings ready (model={self._model_name})")
        return self._model

    def embed(self, text: str) -> list[float]:
        vector = self._get_model().encode(text, convert_to_numpy=True).astype("float32")
        return vector.tolist()


def load_embedding_provider(settings) -> EmbeddingProvider:
    """Instantiate the configured embedding provider."""
    name = settings.EMBEDDING_PROVIDER.lower()

    if name == "openai":
        return OpenAIEmbeddingProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.EMBEDDING_MODEL,
            base_url=settings.OPENAI_BASE_URL,
        )
    elif name == "local":
        return LocalEmbeddingProvider(settings.LOCAL_EMBEDDING_MODEL)
    else:
        raise ValueError(
            f"Unknown EMBEDDING_PROVIDER: '{name}'.  "
            f"Supported: openai, local"
        )


def is_degenerate(vector) -> bool:
    """True for vectors that cannot be indexed: missing, empty, non-finite or all-zero."""
    if vector is None:
        return True
    arr = np.asarray(vector, dtype="float64")
    if arr.ndim != 1 or arr.size == 0 or not bool(np.all(np.isfinite(arr))):
        return True
    # Zero norm has no direction, so cosine similarity is undefined.
    return not bool(np.any(arr))
