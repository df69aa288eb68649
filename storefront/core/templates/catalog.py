"""
Template Catalog
================

Loads the template manifest and markup files. A template is read from disk
once per catalog instance and then served from memory.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # type: ignore[import-untyped]

from storefront.config.logging import get_logger
from storefront.config.settings import get_settings
from storefront.core.errors import TemplateNotFound
from storefront.models.schemas import TemplateDocument, TemplateSummary

logger = get_logger(__name__)

CATALOG_DIR = Path(__file__).parent
MANIFEST_FILE = CATALOG_DIR / "catalog.yaml"


class TemplateCatalog:
    """Finite set of named storefront templates."""

    def __init__(
        self,
        pages_dir: Optional[Path] = None,
        manifest_path: Path = MANIFEST_FILE,
        default_key: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.pages_dir = Path(pages_dir or settings.templates_path or CATALOG_DIR / "pages")
        self.logger: Any = logger.bind(component="catalog")
        self._entries = self._load_manifest(manifest_path)
        self.default_key = default_key or settings.default_template_key
        if self.default_key not in self._entries:
            self.default_key = next(iter(self._entries))
        self._cache: Dict[str, TemplateDocument] = {}

    def _load_manifest(self, manifest_path: Path) -> Dict[str, Dict[str, Any]]:
        with open(manifest_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        entries = data.get("templates") or {}
        if not entries:
            raise ValueError(f"Template manifest {manifest_path} defines no templates")
        return entries

    def keys(self) -> List[str]:
        return list(self._entries)

    def resolve_key(self, key: Optional[str]) -> str:
        """Map a stored template key to a catalog key, falling back to the default."""
        normalized = (key or "").strip().lower()
        if normalized in self._entries:
            return normalized
        if normalized:
            self.logger.warning("Unknown template key, using default", key=key, default=self.default_key)
        return self.default_key

    def entries(self) -> List[TemplateSummary]:
        return [
            TemplateSummary(
                template_key=key,
                label=entry.get("label", key),
                file_name=entry["file"],
                brand_text=entry["brand"],
                default_background=entry.get("default_background", "#ffffff"),
            )
            for key, entry in self._entries.items()
        ]

    def get(self, key: Optional[str]) -> TemplateDocument:
        """
        Load a template by key.

        Args:
            key: Template key from the store record; unknown keys use the default

        Returns:
            The template document

        Raises:
            TemplateNotFound: If the markup file cannot be read
        """
        resolved = self.resolve_key(key)
        cached = self._cache.get(resolved)
        if cached is not None:
            return cached

        entry = self._entries[resolved]
        path = self.pages_dir / entry["file"]
        try:
            markup = path.read_text(encoding="utf-8")
        except OSError as e:
            self.logger.error("Template file unreadable", key=resolved, path=str(path), error=str(e))
            raise TemplateNotFound(resolved, str(path)) from e

        document = TemplateDocument(
            template_key=resolved,
            label=entry.get("label", resolved),
            file_name=entry["file"],
            brand_text=entry["brand"],
            default_background=entry.get("default_background", "#ffffff"),
            raw_markup=markup,
        )
        self._cache[resolved] = document
        self.logger.debug("Template loaded", key=resolved, size=len(markup))
        return document


_catalog: Optional[TemplateCatalog] = None


def get_template_catalog() -> TemplateCatalog:
    """Get the global template catalog."""
    global _catalog
    if _catalog is None:
        _catalog = TemplateCatalog()
    return _catalog


def reset_template_catalog() -> None:
    global _catalog
    _catalog = None
