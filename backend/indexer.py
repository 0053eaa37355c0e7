"""Indexing pipeline — chunk → embed → replace → register.

Pipeline for one ``(content, filename)`` request:
  1. Chunk        ordered chunks from the configured chunker
  2. Embed        every chunk, in order; any failure aborts with nothing written
  3. Replace      under the filename lock: delete the old generation,
                  insert the new records, write the new id list
  4. Result       ``{filename, timestamp, id}`` per record

The timestamp is captured once per request, so every chunk of a
generation carries the same value.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass

from embeddings import is_degenerate
from errors import EmbeddingFailure, EmptyDocument, InvalidInput, StoreFailure
from lifecycle import delete_by_filename
from services import Services
from vector_store import EmbeddingRecord

logger = logging.getLogger(__name__)


@dataclass
class IndexedEmbedding:
    filename: str
    timestamp: int
    id: str

    def to_dict(self) -> dict:
        return asdict(self)


def _now_millis() -> int:
    return int(time.time() * 1000)


def embed_chunks(chunks, services: Services, filename: str, timestamp: int) -> list[EmbeddingRecord]:
    """Embed every chunk or raise ``EmbeddingFailure`` — never a partial list."""
    records: list[EmbeddingRecord] = []
    for chunk in chunks:
        try:
            vector = services.embedder.embed(chunk.content)
            degenerate = is_degenerate(vector)
        except Exception as e:
            logger.error(f"Embedding error for {chunk.id}: {e}")
            raise EmbeddingFailure("Could not create embeddings") from e
        if degenerate:
            logger.error(f"Empty or degenerate embedding for {chunk.id}")
            raise EmbeddingFailure("Could not create embeddings")
        records.append(EmbeddingRecord(
            id=chunk.id,
            vector=list(vector),
            content=chunk.content,
            metadata={"filename": filename, "timestamp": timestamp, "content": chunk.content},
        ))
    return records


def _replace_generation(filename: str, records: list[EmbeddingRecord], services: Services) -> None:
    """Swap the stored generation for *filename* with *records*.

    If an insert fails, the records inserted so far are deleted again and
    the registry entry is cleared, so the file ends up with no live
    generation rather than an unregistered partial one.
    """
    index, registry = services.index, services.registry
    inserted: list[str] = []
    committed = False
    try:
        with registry.lock(filename):
            delete_by_filename(filename, index, registry)
            try:
                for record in records:
                    index.insert([record])
                    inserted.append(record.id)
                registry.put(filename, [r.id for r in records])
            except Exception:
                if inserted:
                    logger.warning(f"Rolling back {len(inserted)} partial insert(s) for {filename}")
                    index.delete_by_ids(inserted)
                registry.delete(filename)
                raise
            committed = True
    except Exception as e:
        if committed:
            # The new generation is live; only releasing the lock failed.
            logger.warning(f"Releasing lock for {filename} failed after commit: {e}")
            return
        logger.error(f"Storing embeddings failed for {filename}: {e}")
        raise StoreFailure("Could not store embeddings") from e


def index_document(content: str, filename: str, services: Services) -> list[IndexedEmbedding]:
    """Index *content* as the new generation for *filename*."""
    if not content or not filename:
        logger.warning("Index rejected: missing content or filename")
        raise InvalidInput("Missing content or filename")

    timestamp = _now_millis()

    chunks = services.chunker(content, filename)
    if not chunks:
        logger.warning(f"Index rejected: no chunks produced for {filename}")
        raise EmptyDocument("No content found")

    records = embed_chunks(chunks, services, filename, timestamp)
    _replace_generation(filename, records, services)

    logger.info(f"Indexed {filename}: {len(records)} chunk(s) at {timestamp}")
    return [IndexedEmbedding(filename=filename, timestamp=timestamp, id=r.id) for r in records]
