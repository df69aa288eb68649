"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from typing import Dict

from fastapi import APIRouter, Depends

from storefront import __version__
from storefront.config.database import check_database_health
from storefront.config.logging import get_logger
from storefront.core.errors import TemplateNotFound
from storefront.core.templates.catalog import TemplateCatalog, get_template_catalog
from storefront.models.schemas import HealthStatus

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Health"])


def check_templates(catalog: TemplateCatalog) -> int:
    """Number of catalog templates whose markup can be loaded."""
    loadable = 0
    for key in catalog.keys():
        try:
            catalog.get(key)
            loadable += 1
        except TemplateNotFound:
            continue
    return loadable


@router.get("/health", response_model=HealthStatus)
async def health_check(catalog: TemplateCatalog = Depends(get_template_catalog)) -> HealthStatus:
    """
    Get application health status.

    Healthy when every catalog template loads and the store backend responds.
    """
    components: Dict[str, bool] = await check_database_health()
    templates = check_templates(catalog)
    components["templates"] = templates == len(catalog.keys())

    status = "healthy" if all(components.values()) else "unhealthy"
    logger.info("Health check completed", status=status, components=components)
    return HealthStatus(status=status, version=__version__, templates=templates, components=components)
