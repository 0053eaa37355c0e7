"""Service container — the capabilities every pipeline runs against.

Pipelines never reach for module-level clients; they receive a
``Services`` instance.  ``main.py`` builds one at startup, the CLI builds
one per command, and tests construct it directly with fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable

from chunker import Chunk, split_document
from embeddings import EmbeddingProvider, load_embedding_provider
from llm.providers import CompletionProvider, load_provider
from registry import Registry, load_registry
from vector_store import VectorIndex, load_vector_index

logger = logging.getLogger(__name__)

Chunker = Callable[[str, str], list[Chunk]]


@dataclass
class Services:
    embedder: EmbeddingProvider
    completer: CompletionProvider
    index: VectorIndex
    registry: Registry
    chunker: Chunker
    default_model: str = "gpt-3.5-turbo-1106"
    top_k: int = 10


def build_services(settings) -> Services:
    """Wire the configured adapters together."""
    services = Services(
        embedder=load_embedding_provider(settings),
        completer=load_provider(settings),
        index=load_vector_index(settings),
        registry=load_registry(settings),
        chunker=partial(
            split_document,
            chunk_size=settings.CHUNK_SIZE,
            chunk_overlap=settings.CHUNK_OVERLAP,
        ),
        default_model=settings.DEFAULT_COMPLETION_MODEL,
        top_k=settings.QUERY_TOP_K,
    )
    logger.info(
        f"Services ready (embeddings={services.embedder.name}, "
        f"llm={services.completer.name}, index={services.index.name}, "
        f"registry={services.registry.name})"
    )
    return services
