"""
Error Taxonomy
==============

Exceptions shared by the catalog, content, rendering and storage layers.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for storefront errors."""

    pass


class TemplateNotFound(StorefrontError):
    """Raised when a template's markup file cannot be loaded."""

    def __init__(self, template_key: str, path: Optional[str] = None) -> None:
        self.template_key = template_key
        self.path = path
        message = f"Template '{template_key}' not found"
        if path:
            message += f" at {path}"
        super().__init__(message)


class ContentParseError(StorefrontError):
    """Raised for one malformed field of a content document."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class AssetLoadError(StorefrontError):
    """Raised when an asset reference cannot be resolved to a URL."""

    pass


class SaveConflict(StorefrontError):
    """Reserved for concurrent save detection; saves are last-write-wins."""

    pass


class StorageError(StorefrontError):
    """Raised when the record store fails."""

    pass


class StoreNotFoundError(StorageError):
    """Raised when no store record matches."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Store '{key}' not found")
