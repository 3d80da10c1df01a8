"""FastAPI dependency injection — provides the catalog store and renderer.

Both are built once in the lifespan handler and stashed on ``app.state``.
"""

from fastapi import Request

from followup_rules.catalog import CatalogStore
from followup_rules.render import SummaryRenderer


def get_store(request: Request) -> CatalogStore:
    """Return the CatalogStore singleton from ``app.state``."""
    return request.app.state.store


def get_renderer(request: Request) -> SummaryRenderer:
    """Return the SummaryRenderer singleton from ``app.state``."""
    return request.app.state.renderer
