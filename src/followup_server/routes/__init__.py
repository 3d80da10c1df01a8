"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from followup_server.routes.catalogs import router as catalogs_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(catalogs_router, prefix=API_PREFIX)
