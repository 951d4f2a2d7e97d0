"""FastAPI application exposing the schema parser over HTTP.

Quick start (run the server)::

    uvicorn xsdscan.app:app --reload

Endpoints:

    GET  /health           Basic health probe
    GET  /config/parser    Parser configuration used for requests
    POST /parse            Parse schema text and return the object graph

Example: parse a document::

    curl -X POST http://localhost:8000/parse \
         -H "Content-Type: application/json" \
         -d '{"text": "<xs:schema><xs:element name=\\"Foo\\"/></xs:schema>"}'

    # Override the configured particle handling for a single request
    curl -X POST http://localhost:8000/parse \
         -H "Content-Type: application/json" \
         -d '{"text": "...", "build_particle_tree": true}'

Error handling:
    * Parse failures are returned as 422 with the error kind, message and
      line/column of the offending construct.
    * 404 and 500 are wrapped with JSON payloads for consistent client UX.

Configuration:
    ``XSDSCAN_PARSER_CONFIG`` holds default parser settings as
    ``key=value`` pairs, e.g. ``build_particle_tree=true``.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import replace
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .cache import CachedSchemaParser, get_cached_parser
from .errors import SchemaParseError
from .xsd_parser import ParserConfig

logger = logging.getLogger(__name__)


def _get_parser_config_key() -> Optional[str]:
    """Get the parser configuration string from environment variables."""
    return os.getenv("XSDSCAN_PARSER_CONFIG") or None


app = FastAPI(
    title="xsdscan API",
    version=__version__,
    description="Parse constrained XML Schema documents into a structured object graph",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def time_requests(request: Request, call_next):
    """Add response timing headers."""
    start_time = time.time()
    response = await call_next(request)
    response_time = time.time() - start_time
    response.headers["X-Response-Time"] = f"{response_time:.3f}s"
    response.headers["X-API-Version"] = __version__
    return response


class ParseRequest(BaseModel):
    """Request model for the parse endpoint."""

    text: str = Field(..., description="Complete schema document")
    build_particle_tree: Optional[bool] = Field(
        None, description="Override particle-tree construction for this request"
    )


def get_parser() -> CachedSchemaParser:
    return get_cached_parser(_get_parser_config_key())


@app.get("/health")
def health() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/config/parser")
def get_parser_config(parser: CachedSchemaParser = Depends(get_parser)) -> Dict[str, Any]:
    """Return the parser configuration applied to requests."""
    return parser.parser_config.to_dict()


@app.post("/parse")
def parse(
    request: ParseRequest, parser: CachedSchemaParser = Depends(get_parser)
) -> Dict[str, Any]:
    """Parse the posted schema text.

    Raises:
        SchemaParseError: Converted to a 422 response by the exception handler.
    """
    if (
        request.build_particle_tree is not None
        and request.build_particle_tree != parser.parser_config.build_particle_tree
    ):
        config: ParserConfig = replace(
            parser.parser_config, build_particle_tree=request.build_particle_tree
        )
        parser = CachedSchemaParser(cache=parser.cache, parser_config=config)

    schema = parser.parse_text(request.text)
    return {"schema": schema.to_dict(), "node_count": len(schema.nodes)}


@app.exception_handler(SchemaParseError)
async def schema_error_handler(request: Request, exc: SchemaParseError):
    """Report parse failures with their location."""
    logger.info(f"Rejected schema: {exc}")
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Custom 404 handler with more helpful error messages."""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "detail": (
                str(exc.detail)
                if hasattr(exc, "detail")
                else "The requested resource was not found"
            ),
            "path": str(request.url.path),
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Custom 500 handler for internal errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred processing your request",
        },
    )
