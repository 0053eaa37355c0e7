"""Retrieval/answer pipeline — embed query → top-k search → prompt → completion.

Read-only with respect to the vector index and registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from embeddings import is_degenerate
from errors import CompletionFailure, EmbeddingFailure, InvalidInput, StoreFailure
from llm.prompts import build_prompt, format_context
from services import Services
from vector_store import VectorMatch

logger = logging.getLogger(__name__)


@dataclass
class Answer:
    prompt: str
    response: dict
    matches: list[VectorMatch]

    def to_dict(self) -> dict:
        return {"prompt": self.prompt, "response": self.response}


def retrieve(query: str, services: Services) -> list[VectorMatch]:
    """Embed *query* and return the nearest stored chunks, best first."""
    try:
        vector = services.embedder.embed(query)
        degenerate = is_degenerate(vector)
    except Exception as e:
        logger.error(f"Query embedding error: {e}")
        raise EmbeddingFailure("Could not create embedding") from e
    if degenerate:
        logger.error("Empty or degenerate query embedding")
        raise EmbeddingFailure("Could not create embedding")

    try:
        matches = services.index.query(list(vector), top_k=services.top_k)
    except Exception as e:
        logger.error(f"Vector index query error: {e}")
        raise StoreFailure("Could not query vector index") from e
    # Backends already rank by similarity; re-sort so the context order never
    # depends on one.  sorted() is stable for equal scores.
    return sorted(matches, key=lambda m: m.score, reverse=True)[: services.top_k]


def answer_query(query: str, services: Services, model: str | None = None) -> Answer:
    """Answer *query* from the most similar stored chunks."""
    if not query:
        logger.warning("Query rejected: missing query")
        raise InvalidInput("Missing query")

    model = model or services.default_model
    matches = retrieve(query, services)
    prompt = build_prompt(format_context(matches), query)

    try:
        response = services.completer.complete(model, prompt)
    except Exception as e:
        logger.error(f"Completion error (model={model}): {e}")
        raise CompletionFailure("Could not create completion") from e

    logger.info(f"Answered query with {len(matches)} match(es) (model={model})")
    return Answer(prompt=prompt, response=response, matches=matches)
