"""
Template Routes
===============

Lists the template catalog for the editor's template picker.
"""

from typing import List

from fastapi import APIRouter, Depends

from storefront.core.templates.catalog import TemplateCatalog, get_template_catalog
from storefront.models.schemas import TemplateSummary

router = APIRouter(prefix="/api/v1", tags=["Templates"])


@router.get("/templates", response_model=List[TemplateSummary])
async def list_templates(catalog: TemplateCatalog = Depends(get_template_catalog)) -> List[TemplateSummary]:
    """All catalog templates, default first."""
    entries = catalog.entries()
    return sorted(entries, key=lambda e: e.template_key != catalog.default_key)
