"""Centralized configuration — every tunable in one place.

Environment variables override defaults. Import anywhere:

    from settings import settings

All values are frozen at startup. To change, update .env and restart.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (one level above backend/)
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env")


# ── Helpers ───────────────────────────────────────────────────────────────

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int = 0) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float = 0.0) -> float:
    return float(os.getenv(key, str(default)))


# Completion model per LLM_PROVIDER when DEFAULT_COMPLETION_MODEL is unset.
_DEFAULT_COMPLETION_MODELS = {
    "openai": "gpt-3.5-turbo-1106",
    "anthropic": "claude-3-5-haiku-latest",
}


# ── Settings ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    """Application settings.  Immutable after creation."""

    # ── Inbound auth ──────────────────────────────────────────────
    # Shared secret every request must carry.  Unset → every request is 401.
    NOTES_AI_API_KEY: str = _env("NOTES_AI_API_KEY")
    API_KEY_HEADER: str = _env("API_KEY_HEADER", "NOTES_AI_API_KEY")

    # ── Embeddings ────────────────────────────────────────────────
    # Supported: openai, local
    EMBEDDING_PROVIDER: str = _env("EMBEDDING_PROVIDER", "openai")
    OPENAI_API_KEY: str = _env("OPENAI_API_KEY")
    OPENAI_BASE_URL: str = _env("OPENAI_BASE_URL")
    EMBEDDING_MODEL: str = _env("EMBEDDING_MODEL", "text-embedding-ada-002")
    # Only used when EMBEDDING_PROVIDER=local (runs without an API key).
    LOCAL_EMBEDDING_MODEL: str = _env(
        "LOCAL_EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
    )
    # Must match the model: ada-002 → 1536, all-MiniLM-L6-v2 → 384.
    EMBEDDING_DIMENSION: int = _env_int("EMBEDDING_DIMENSION", 1536)

    # ── Completion ────────────────────────────────────────────────
    # Supported: openai, anthropic
    LLM_PROVIDER: str = _env("LLM_PROVIDER", "openai")
    LLM_API_KEY: str = _env("LLM_API_KEY", _env("OPENAI_API_KEY"))
    # Used when a query omits "model".
    DEFAULT_COMPLETION_MODEL: str = _env(
        "DEFAULT_COMPLETION_MODEL",
        _DEFAULT_COMPLETION_MODELS.get(_env("LLM_PROVIDER", "openai").lower(), "gpt-3.5-turbo-1106"),
    )
    MAX_RESPONSE_TOKENS: int = _env_int("MAX_RESPONSE_TOKENS", 1024)

    # ── Retrieval ─────────────────────────────────────────────────
    QUERY_TOP_K: int = _env_int("QUERY_TOP_K", 10)

    # ── Chunking ──────────────────────────────────────────────────
    CHUNK_SIZE: int = _env_int("CHUNK_SIZE", 1000)
    CHUNK_OVERLAP: int = _env_int("CHUNK_OVERLAP", 200)

    # ── Vector index ──────────────────────────────────────────────
    # Supported: pgvector, memory
    VECTOR_BACKEND: str = _env("VECTOR_BACKEND", "memory")
    VECTOR_TABLE: str = _env("VECTOR_TABLE", "note_vectors")
    DATABASE_URL: str = _env("DATABASE_URL")
    POSTGRES_HOST: str = _env("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = _env_int("POSTGRES_PORT", 5432)
    POSTGRES_DB: str = _env("POSTGRES_DB", "notes")
    POSTGRES_USER: str = _env("POSTGRES_USER", "root")
    POSTGRES_PASSWORD: str = _env("POSTGRES_PASSWORD", "password")
    DB_POOL_MIN: int = _env_int("DB_POOL_MIN", 1)
    DB_POOL_MAX: int = _env_int("DB_POOL_MAX", 10)

    # ── Registry (filename → id list) ─────────────────────────────
    # Supported: redis, memory
    REGISTRY_BACKEND: str = _env("REGISTRY_BACKEND", "memory")
    REDIS_URL: str = _env("REDIS_URL", "redis://localhost:6379/0")
    REGISTRY_PREFIX: str = _env("REGISTRY_PREFIX", "notes:")
    # Seconds before a per-filename lock held by a crashed worker expires.
    REGISTRY_LOCK_TIMEOUT: float = _env_float("REGISTRY_LOCK_TIMEOUT", 30.0)

    # ── Server ────────────────────────────────────────────────────
    HOST: str = _env("HOST", "0.0.0.0")
    PORT: int = _env_int("PORT", 8000)
    LOG_LEVEL: str = _env("LOG_LEVEL", "INFO")

    # ── CLI ───────────────────────────────────────────────────────
    NOTES_DIR: str = _env("NOTES_DIR", str(Path(__file__).resolve().parent.parent / "notes"))


settings = Settings()
