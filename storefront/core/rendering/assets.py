"""
Asset Resolution
================

Maps stored image references to URLs the rendered page can load.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from storefront.config.settings import get_settings
from storefront.core.errors import AssetLoadError

_UNSAFE_URL_CHARS = re.compile(r"[\s\"'()<>\\]")


def resolve_asset_url(path: Optional[str], base_url: Optional[str] = None) -> str:
    """
    Resolve a stored asset reference.

    Absolute http(s) and data: URLs pass through unchanged; storage-relative
    paths are joined to the asset base URL.

    Raises:
        AssetLoadError: If the reference is empty or not a usable URL
    """
    if path is None or not str(path).strip():
        raise AssetLoadError("Empty asset reference")

    value = str(path).strip()
    if value.startswith("data:image/"):
        return value

    parsed = urlparse(value)
    if parsed.scheme in ("http", "https"):
        if not parsed.netloc:
            raise AssetLoadError(f"Malformed asset URL: {value!r}")
        return value
    if parsed.scheme or value.startswith("//"):
        raise AssetLoadError(f"Unsupported asset scheme: {value!r}")

    base = (base_url or get_settings().asset_base_url).rstrip("/") + "/"
    return urljoin(base, value.lstrip("/"))


def product_image_url(image: Optional[str], placeholder: Optional[str] = None) -> str:
    """Resolve a product image, using the placeholder when it cannot be resolved."""
    placeholder = placeholder or get_settings().placeholder_image
    if not image or image == placeholder:
        return placeholder
    try:
        return resolve_asset_url(image)
    except AssetLoadError:
        return placeholder


def css_url(url: str) -> str:
    """Quote a URL for use inside CSS ``url()``."""
    url = _UNSAFE_URL_CHARS.sub(lambda m: "%{:02X}".format(ord(m.group(0))), url)
    return f'url("{url}")'
