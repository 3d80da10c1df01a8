"""Global exception handlers — map SDK exceptions to HTTP status codes.

The routes are stateless, so the only SDK errors that reach them are
validation failures (``ValueError``, including ``CatalogError`` and pydantic
errors on submitted responses) and ``KeyError`` for unknown catalogs.
Rather than catching these in every route, we install global handlers
that pick the right HTTP status code.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to 400.

    The raw exception message is logged server-side but **never** sent to
    the client; it may contain patient answers.
    """
    logger.warning("ValueError at %s: %s", request.url, exc)
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown catalog or question id) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
