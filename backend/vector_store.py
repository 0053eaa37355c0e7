"""Vector index — pgvector (persistent) or in-memory numpy cosine search.

Both backends implement the same ``VectorIndex`` interface:

    insert(records)          store EmbeddingRecords with metadata
    query(vector, top_k)     nearest neighbours, highest similarity first
    delete_by_ids(ids)       bulk delete
    count()                  number of stored vectors

Select with VECTOR_BACKEND=pgvector|memory.  The in-memory backend is
non-persistent and meant for local runs and tests.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingRecord:
    """One chunk's vector plus the metadata stored alongside it."""
    id: str
    vector: list[float]
    content: str
    metadata: dict = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: dict = field(default_factory=dict)


class VectorIndex(ABC):
    """Abstract nearest-neighbour store."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def insert(self, records: list[EmbeddingRecord]) -> None:
        """Store *records*; an existing id is overwritten."""
        ...

    @abstractmethod
    def query(self, vector: list[float], top_k: int = 10) -> list[VectorMatch]:
        """Return at most *top_k* matches ordered by descending score."""
        ...

    @abstractmethod
    def delete_by_ids(self, ids: list[str]) -> None:
        ...

    @abstractmethod
    def count(self) -> int:
        ...


def _cosine_similarities(query_emb: np.ndarray, embeddings: list[np.ndarray]) -> list[float]:
    """Compute cosine similarity between a query and a list of embeddings."""
    sims: list[float] = []
    for emb in embeddings:
        dot = float(np.dot(query_emb, emb))
        norm = float(np.linalg.norm(query_emb) * np.linalg.norm(emb))
        sims.append(dot / norm if norm > 0 else 0.0)
    return sims


class InMemoryVectorIndex(VectorIndex):
    """Process-local index.  Insertion order is kept for stable ties."""

    def __init__(self):
        self._vectors: dict[str, np.ndarray] = {}
        self._metadata: dict[str, dict] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "memory"

    def insert(self, records: list[EmbeddingRecord]) -> None:
        with self._lock:
            for record in records:
                self._vectors[record.id] = np.asarray(record.vector, dtype="float32")
                self._metadata[record.id] = dict(record.metadata)

    def query(self, vector: list[float], top_k: int = 10) -> list[VectorMatch]:
        with self._lock:
            ids = list(self._vectors)
            embeddings = [self._vectors[i] for i in ids]
            metadata = [self._metadata[i] for i in ids]
        if not ids:
            return []
        qe = np.asarray(vector, dtype="float32")
        sims = _cosine_similarities(qe, embeddings)
        topk = sorted(range(len(sims)), key=lambda i: sims[i], reverse=True)[:top_k]
        return [VectorMatch(id=ids[i], score=round(sims[i], 4), metadata=dict(metadata[i])) for i in topk]

    def delete_by_ids(self, ids: list[str]) -> None:
        with self._lock:
            for vector_id in ids:
                self._vectors.pop(vector_id, None)
                self._metadata.pop(vector_id, None)

    def count(self) -> int:
        return len(self._vectors)

    def ids(self) -> list[str]:
        """Stored ids in insertion order (used by tests and the CLI)."""
        with self._lock:
            return list(self._vectors)


class PgVectorIndex(VectorIndex):
    """PostgreSQL + pgvector backend (see ``query_db.py``)."""

    def __init__(self, table: str, dimension: int):
        import query_db

        self._db = query_db
        self._table = table
        if not query_db.init_db(table, dimension):
            raise RuntimeError("PostgreSQL not available — cannot use VECTOR_BACKEND=pgvector")
        logger.info(f"Vector index: pgvector (table={table})")

    @property
    def name(self) -> str:
        return "pgvector"

    def insert(self, records: list[EmbeddingRecord]) -> None:
        for record in records:
            self._db.insert_vector(self._table, record.id, record.vector, record.metadata)

    def query(self, vector: list[float], top_k: int = 10) -> list[VectorMatch]:
        rows = self._db.search_vectors(self._table, vector, k=top_k)
        return [VectorMatch(id=vid, score=score, metadata=meta) for vid, score, meta in rows]

    def delete_by_ids(self, ids: list[str]) -> None:
        deleted = self._db.delete_vectors(self._table, ids)
        logger.info(f"Deleted {deleted} vector(s) from {self._table}")

    def count(self) -> int:
        return self._db.count_vectors(self._table)


def load_vector_index(settings) -> VectorIndex:
    """Instantiate the configured vector index."""
    name = settings.VECTOR_BACKEND.lower()

    if name == "memory":
        logger.info("Vector index: in-memory (non-persistent)")
        return InMemoryVectorIndex()
    elif name == "pgvector":
        return PgVectorIndex(settings.VECTOR_TABLE, settings.EMBEDDING_DIMENSION)
    else:
        raise ValueError(
            f"Unknown VECTOR_BACKEND: '{name}'.  "
            f"Supported: pgvector, memory"
        )
