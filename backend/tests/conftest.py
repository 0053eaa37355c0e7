"""Pytest conftest — ensure backend/ is importable for flat module imports.

Also provides in-process fakes for the external capabilities so pipeline
and API tests never touch a network or a database.
"""

import hashlib
import re
import sys
from pathlib import Path

import pytest

# Add backend/ to sys.path so `import indexer`, `from llm.prompts import ...` etc. work
_backend_dir = str(Path(__file__).resolve().parent.parent)
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

from chunker import split_document  # noqa: E402
from embeddings import EmbeddingProvider  # noqa: E402
from llm.providers.base import CompletionProvider  # noqa: E402
from registry import InMemoryRegistry  # noqa: E402
from services import Services  # noqa: E402
from vector_store import InMemoryVectorIndex  # noqa: E402


class FakeEmbedder(EmbeddingProvider):
    """Bag-of-words hashing embedder: identical text → identical vector.

    ``fail_on`` makes every text containing that substring raise;
    ``empty_on`` makes it return an empty vector instead.
    """

    DIM = 64

    def __init__(self, fail_on: str | None = None, empty_on: str | None = None):
        self.calls: list[str] = []
        self.fail_on = fail_on
        self.empty_on = empty_on

    @property
    def name(self) -> str:
        return "fake"

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError("embedding service unavailable")
        if self.empty_on is not None and self.empty_on in text:
            return []
        vec = [0.0] * self.DIM
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.DIM
            vec[bucket] += 1.0
        vec[0] += 0.01  # never all-zero
        return vec


class FakeCompleter(CompletionProvider):
    def __init__(self, reply: str = "You should rest.", error: Exception | None = None):
        self.calls: list[tuple[str, str]] = []
        self.reply = reply
        self.error = error

    @property
    def name(self) -> str:
        return "fake"

    def complete(self, model: str, prompt: str) -> dict:
        self.calls.append((model, prompt))
        if self.error is not None:
            raise self.error
        return {"role": "assistant", "content": self.reply}


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def services(embedder, completer):
    """Services wired with the production chunker and in-memory stores."""
    return Services(
        embedder=embedder,
        completer=completer,
        index=InMemoryVectorIndex(),
        registry=InMemoryRegistry(),
        chunker=split_document,
        default_model="gpt-3.5-turbo-1106",
        top_k=10,
    )
