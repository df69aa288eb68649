"""
Public Store Routes
===================

Serves a published store's page to anonymous visitors using the static
rendering engine.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from storefront.config.logging import get_logger
from storefront.core.content.parser import parse_content
from storefront.core.errors import TemplateNotFound
from storefront.core.rendering.static_renderer import (
    get_static_renderer,
    render_error_page,
    render_not_found_page,
)
from storefront.core.storage.repository import StoreRepository, get_store_repository
from storefront.core.templates.catalog import TemplateCatalog, get_template_catalog

logger = get_logger(__name__)

router = APIRouter(tags=["Public"])


@router.get("/store/{domain}", response_class=HTMLResponse)
async def serve_store(
    domain: str,
    request: Request,
    repository: StoreRepository = Depends(get_store_repository),
    catalog: TemplateCatalog = Depends(get_template_catalog),
) -> HTMLResponse:
    """
    Render the published store for a domain.

    Returns the 404 page when no published store matches and the generic
    error page for any failure while rendering.
    """
    request_id = getattr(request.state, "request_id", None)
    log: Any = logger.bind(domain=domain)

    try:
        store = await repository.find_published_store(domain)
        if store is None:
            log.info("No published store for domain")
            return HTMLResponse(render_not_found_page(domain), status_code=404)

        template = catalog.get(store.template_id)
        products = await repository.list_products(store.id)
        parsed = parse_content(await repository.load_content(store.id))
        if parsed.warnings:
            log.warning("Content recovered with defaults", store_id=store.id, warnings=parsed.warnings)

        html = get_static_renderer().render(template, parsed.document, products, store)
        return HTMLResponse(html)

    except TemplateNotFound as e:
        log.error("Store template missing", template_key=e.template_key, error=str(e))
        return HTMLResponse(render_error_page(request_id), status_code=500)
    except Exception as e:
        log.error("Store page rendering failed", error=str(e), exc_info=True)
        return HTMLResponse(render_error_page(request_id), status_code=500)
