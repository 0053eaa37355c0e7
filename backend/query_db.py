"""PostgreSQL + pgvector persistence layer for note vectors.

One table (``settings.VECTOR_TABLE``, default ``note_vectors``):

    id         TEXT PRIMARY KEY      "{filename}-{index}"
    embedding  vector(dim)
    filename   TEXT
    timestamp  BIGINT                epoch millis, shared by one generation
    content    TEXT

Connection pooling via psycopg2 SimpleConnectionPool.
DATABASE_URL env var takes priority over individual POSTGRES_* vars.

Unlike a best-effort cache, every write here raises on failure so the
indexing pipeline can compensate; reads raise too and are translated by
the caller.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import numpy as np
import psycopg2
from psycopg2 import pool
from psycopg2.extras import Json

from settings import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Connection config — DATABASE_URL takes priority, falls back to settings.
# ---------------------------------------------------------------------------
if settings.DATABASE_URL:
    _p = urlparse(settings.DATABASE_URL)
    DB_CONFIG = {
        "host": _p.hostname or "localhost",
        "port": _p.port or 5432,
        "database": (_p.path or "/notes").lstrip("/"),
        "user": _p.username or "root",
        "password": _p.password or "password",
    }
else:
    DB_CONFIG = {
        "host": settings.POSTGRES_HOST,
        "port": settings.POSTGRES_PORT,
        "database": settings.POSTGRES_DB,
        "user": settings.POSTGRES_USER,
        "password": settings.POSTGRES_PASSWORD,
    }

_pool: pool.SimpleConnectionPool | None = None


def _get_pool() -> pool.SimpleConnectionPool:
    global _pool
    if _pool is None or _pool.closed:
        _pool = pool.SimpleConnectionPool(
            minconn=settings.DB_POOL_MIN,
            maxconn=settings.DB_POOL_MAX,
            **DB_CONFIG,
        )
    return _pool


def get_connection():
    """Get a pooled connection. Caller must call put_connection() when done."""
    return _get_pool().getconn()


def put_connection(conn):
    """Return a connection to the pool, rolling back any dirty transaction first."""
    if conn is None:
        return
    try:
        # A failed statement leaves psycopg2 in an aborted-transaction state.
        if conn.status != 1:  # 1 = STATUS_READY
            conn.rollback()
    except Exception:
        pass
    try:
        _get_pool().putconn(conn)
    except Exception:
        pass


def _to_list(vector) -> list[float]:
    return vector.tolist() if isinstance(vector, np.ndarray) else list(vector)


# ═══════════════════════════════════════════════════════════════════
#  SCHEMA
# ═══════════════════════════════════════════════════════════════════

def init_db(table: str, dimension: int) -> bool:
    """Create the vector table and its indexes.  Returns False if unreachable."""
    conn = None
    try:
        conn = psycopg2.connect(**DB_CONFIG)
        conn.autocommit = True
        cur = conn.cursor()
        cur.execute("CREATE EXTENSION IF NOT EXISTS vector;")
        cur.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id          TEXT PRIMARY KEY,
                embedding   vector({dimension}) NOT NULL,
                filename    TEXT NOT NULL,
                timestamp   BIGINT NOT NULL,
                content     TEXT NOT NULL,
                metadata    JSONB DEFAULT '{{}}'
            );
        """)
        try:
            cur.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table}_emb
                ON {table} USING hnsw (embedding vector_cosine_ops);
            """)
        except Exception:
            pass
        cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_file ON {table}(filename);")
        cur.close()
        logger.info(f"Database initialized — table {table} (dim={dimension})")
        return True
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        return False
    finally:
        if conn is not None:
            conn.close()


# ═══════════════════════════════════════════════════════════════════
#  VECTORS
# ═══════════════════════════════════════════════════════════════════

def insert_vector(table: str, vector_id: str, embedding, metadata: dict) -> None:
    """Insert (or overwrite) one vector row."""
    conn = None
    try:
        conn = get_connection()
        cur = conn.cursor()
        cur.execute(f"""
            INSERT INTO {table} (id, embedding, filename, timestamp, content, metadata)
            VALUES (%s, %s::vector, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                embedding = EXCLUDED.embedding,
                filename  = EXCLUDED.filename,
                timestamp = EXCLUDED.timestamp,
                content   = EXCLUDED.content,
                metadata  = EXCLUDED.metadata
        """, (
            vector_id,
            _to_list(embedding),
            metadata.get("filename", ""),
            int(metadata.get("timestamp", 0)),
            metadata.get("content", ""),
            Json(metadata),
        ))
        conn.commit()
        cur.close()
    finally:
        if conn is not None:
            put_connection(conn)


def search_vectors(table: str, embedding, k: int = 10) -> list[tuple[str, float, dict]]:
    """Cosine nearest neighbours.  Returns (id, similarity, metadata), best first."""
    conn = None
    try:
        conn = get_connection()
        cur = conn.cursor()
        emb = _to_list(embedding)
        cur.execute(f"""
            SELECT id, 1 - (embedding <=> %s::vector) AS similarity,
                   filename, timestamp, content
            FROM {table}
            ORDER BY embedding <=> %s::vector
            LIMIT %s
        """, (emb, emb, k))
        rows = cur.fetchall()
        cur.close()
        return [
            (
                r[0],
                round(float(r[1]), 4) if r[1] is not None else 0.0,
                {"filename": r[2], "timestamp": r[3], "content": r[4]},
            )
            for r in rows
        ]
    finally:
        if conn is not None:
            put_connection(conn)


def delete_vectors(table: str, ids: list[str]) -> int:
    """Delete rows by id.  Returns the number of rows removed."""
    if not ids:
        return 0
    conn = None
    try:
        conn = get_connection()
        cur = conn.cursor()
        cur.execute(f"DELETE FROM {table} WHERE id = ANY(%s)", (list(ids),))
        deleted = cur.rowcount
        conn.commit()
        cur.close()
        return deleted
    finally:
        if conn is not None:
            put_connection(conn)


def count_vectors(table: str) -> int:
    """Return the total number of stored vectors (0 when unreachable)."""
    conn = None
    try:
        conn = get_connection()
        cur = conn.cursor()
        cur.execute(f"SELECT COUNT(*) FROM {table}")
        count = cur.fetchone()[0]
        cur.close()
        return count
    except Exception as e:
        logger.error(f"Error counting vectors: {e}")
        return 0
    finally:
        if conn is not None:
            put_connection(conn)
