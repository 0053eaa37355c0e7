"""Per-filename embedding lifecycle — replace-on-reindex and explicit delete.

``delete_by_filename`` is shared by the indexing pipeline (pre-replace
step) and the standalone delete operation.  It removes vectors only: the
registry entry is left for the caller, which either overwrites it with
the new generation (indexer) or clears it (``remove_file``).
"""

from __future__ import annotations

import logging

from errors import InvalidInput, StoreFailure
from registry import Registry
from services import Services
from vector_store import VectorIndex

logger = logging.getLogger(__name__)


def delete_by_filename(filename: str, index: VectorIndex, registry: Registry) -> list[str]:
    """Delete every vector registered for *filename*; return the ids removed.

    An unknown filename yields ``[]`` and no index call.
    """
    existing_ids = registry.get(filename) or []
    if existing_ids:
        index.delete_by_ids(existing_ids)
        logger.info(f"Deleted {len(existing_ids)} embedding(s) for {filename}")
    return existing_ids


def remove_file(filename: str, services: Services) -> list[str]:
    """Standalone delete: drop the vectors, then clear the registry entry."""
    if not filename:
        logger.warning("Delete rejected: missing filename")
        raise InvalidInput("Missing filename")

    deleted: list[str] | None = None
    try:
        with services.registry.lock(filename):
            removed = delete_by_filename(filename, services.index, services.registry)
            services.registry.delete(filename)
            deleted = removed
    except Exception as e:
        if deleted is not None:
            # Vectors and registry entry are gone; only releasing the lock failed.
            logger.warning(f"Releasing lock for {filename} failed after delete: {e}")
            return deleted
        logger.error(f"Delete failed for {filename}: {e}")
        raise StoreFailure("Could not delete embeddings") from e
    return deleted
