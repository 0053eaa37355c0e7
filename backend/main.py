"""FastAPI application — note indexing and retrieval-augmented answers.

Architecture layers:
  1. Settings        (settings.py)     — centralized configuration
  2. Errors          (errors.py)       — error kinds → HTTP status
  3. Providers       (embeddings.py, llm/) — embedding + completion capabilities
  4. Stores          (vector_store.py, query_db.py, registry.py)
  5. Services        (services.py)     — capability container handed to pipelines
  6. Pipelines       (indexer.py, lifecycle.py, retrieval.py)
  7. HTTP shell      (this file)       — auth, routing, error translation

Endpoints (all behind the shared-secret header):
  POST /vectors                      index a document (replaces previous generation)
  POST /vectors/delete_by_filename   delete a document's embeddings
  POST /vectors/query                answer a question from stored notes
  GET  /health                       backend status
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from errors import NotesError, NotFound, Unauthorized
from indexer import index_document
from lifecycle import remove_file
from retrieval import answer_query
from services import Services, build_services
from settings import settings

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

__version__ = "1.0.0"


# ---------------------------------------------------------------------------
#  Request models
# ---------------------------------------------------------------------------
# Fields are optional so that a missing field reaches the pipeline and gets
# its documented 400 message instead of a generic validation error.

class IndexRequest(BaseModel):
    content: Optional[str] = None
    filename: Optional[str] = None


class DeleteRequest(BaseModel):
    filename: Optional[str] = None


class QueryRequest(BaseModel):
    query: Optional[str] = None
    model: Optional[str] = None


# ---------------------------------------------------------------------------
#  Auth
# ---------------------------------------------------------------------------

class SharedSecretMiddleware(BaseHTTPMiddleware):
    """Reject every request whose secret header does not match.

    Runs before routing, so unknown paths answer 401 too.  With no secret
    configured nothing is accepted.
    """

    def __init__(self, app, api_key: str | None = None, header: str = "NOTES_AI_API_KEY") -> None:  # type: ignore[override]
        super().__init__(app)
        self._api_key = api_key or ""
        self._header = header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        provided = request.headers.get(self._header)
        if not self._api_key or provided is None or not secrets.compare_digest(
            provided.encode(), self._api_key.encode()
        ):
            logger.warning(f"Unauthorized request: {request.method} {request.url.path}")
            err = Unauthorized()
            return PlainTextResponse(err.message, status_code=err.status_code)
        return await call_next(request)


# ---------------------------------------------------------------------------
#  Error translation
# ---------------------------------------------------------------------------

async def _notes_error_handler(request: Request, exc: NotesError) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    # Unknown path and wrong method are both "not found" for this API.
    if exc.status_code in (404, 405):
        err = NotFound()
        return PlainTextResponse(err.message, status_code=err.status_code)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    logger.warning(f"Invalid request body on {request.url.path}")
    return PlainTextResponse("Invalid request body", status_code=400)


# ---------------------------------------------------------------------------
#  Application
# ---------------------------------------------------------------------------

def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = build_services(settings)
        request.app.state.services = services
    return services


def create_app(
    services: Services | None = None,
    api_key: str | None = None,
    api_key_header: str | None = None,
) -> FastAPI:
    """Build the app.  Pass *services* to run against injected capabilities."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: D401
        """Build services on startup unless they were injected."""
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(settings)
        logger.info(f"Notes vector service ready ({app.state.services.index.count()} vectors)")
        yield

    app = FastAPI(title="Notes AI", version=__version__, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        SharedSecretMiddleware,
        api_key=api_key if api_key is not None else settings.NOTES_AI_API_KEY,
        header=api_key_header or settings.API_KEY_HEADER,
    )
    app.add_exception_handler(NotesError, _notes_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # ═══════════════════════════════════════════════════════════════════
    #  VECTOR ENDPOINTS
    # ═══════════════════════════════════════════════════════════════════

    @app.post("/vectors")
    def create_vectors(req: IndexRequest, services: Services = Depends(get_services)):
        """Index a document, replacing any previous generation for its filename."""
        embeddings = index_document(req.content or "", req.filename or "", services)
        return {"embeddings": [e.to_dict() for e in embeddings]}

    @app.post("/vectors/delete_by_filename")
    def delete_vectors(req: DeleteRequest, services: Services = Depends(get_services)):
        """Delete every embedding registered for a filename."""
        deleted = remove_file(req.filename or "", services)
        return {"deleted": deleted}

    @app.post("/vectors/query")
    def query_vectors(req: QueryRequest, services: Services = Depends(get_services)):
        """Answer a question from the most similar stored chunks."""
        answer = answer_query(req.query or "", services, model=req.model)
        return answer.to_dict()

    # ═══════════════════════════════════════════════════════════════════
    #  HEALTH CHECK
    # ═══════════════════════════════════════════════════════════════════

    @app.get("/health")
    def health_check(services: Services = Depends(get_services)):
        """Returns store backends, vector count, and provider info."""
        return {
            "status": "ok",
            "vectors": services.index.count(),
            "vector_backend": services.index.name,
            "registry_backend": services.registry.name,
            "embedding_provider": services.embedder.name,
            "completion_provider": services.completer.name,
            "version": app.version,
        }

    return app


app = create_app()
