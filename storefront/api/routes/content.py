"""
Content Routes
==============

Load, save and preview endpoints used by the editor host.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from storefront.config.logging import get_logger
from storefront.core.content.service import ContentService
from storefront.core.editor.engine import LiveMutationEngine
from storefront.core.storage.repository import StoreRepository, get_store_repository
from storefront.core.templates.catalog import TemplateCatalog, get_template_catalog
from storefront.models.schemas import ContentResponse, SaveContentRequest, SaveResult

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/stores", tags=["Content"])


def get_content_service(repository: StoreRepository = Depends(get_store_repository)) -> ContentService:
    return ContentService(repository=repository)


@router.get("/{store_id}/content", response_model=ContentResponse, response_model_by_alias=True)
async def get_content(
    store_id: str,
    service: ContentService = Depends(get_content_service),
    catalog: TemplateCatalog = Depends(get_template_catalog),
) -> ContentResponse:
    """
    Get a store's content document.

    Malformed fields are replaced by defaults and listed in ``warnings``.
    """
    store = await service.repository.get_store(store_id)
    result = await service.load(store_id)
    return ContentResponse(
        store_id=store_id,
        template_key=catalog.resolve_key(store.template_id),
        content=result.document,
        warnings=result.warnings,
    )


@router.put("/{store_id}/content", response_model=SaveResult, response_model_by_alias=True)
async def save_content(
    store_id: str,
    request: SaveContentRequest,
    service: ContentService = Depends(get_content_service),
) -> SaveResult:
    """Save a store's content document; the last save wins."""
    result = await service.save(store_id, request.content)
    if not result.success:
        logger.warning("Content save rejected", store_id=store_id, message=result.message)
    return result


@router.get("/{store_id}/preview", response_class=HTMLResponse)
async def preview(
    store_id: str,
    service: ContentService = Depends(get_content_service),
    catalog: TemplateCatalog = Depends(get_template_catalog),
) -> HTMLResponse:
    """Initial live-editor document for a store, before any interaction."""
    repository = service.repository
    store = await repository.get_store(store_id)
    template = catalog.get(store.template_id)
    products = await repository.list_products(store_id)
    result = await service.load(store_id)

    engine = LiveMutationEngine(template, result.document, products, store)
    return HTMLResponse(engine.serialize())
