"""Error kinds raised by the pipelines.

Each error carries the HTTP status it maps to and a plain-text message.
``main.py`` registers a single handler that turns any ``NotesError`` into
a ``PlainTextResponse``; the CLI prints the message and exits non-zero.
"""

from __future__ import annotations


class NotesError(Exception):
    """Base class for every error the service reports to a caller."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(NotesError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidInput(NotesError):
    status_code = 400
    default_message = "Invalid input"


class EmptyDocument(NotesError):
    status_code = 400
    default_message = "No content found"


class EmbeddingFailure(NotesError):
    status_code = 500
    default_message = "Could not create embeddings"


class CompletionFailure(NotesError):
    status_code = 500
    default_message = "Could not create completion"


class StoreFailure(NotesError):
    """Vector index or registry write failed after embeddings succeeded."""

    status_code = 500
    default_message = "Could not store embeddings"


class NotFound(NotesError):
    status_code = 404
    default_message = "Not found"
