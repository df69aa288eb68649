"""
Content Model
=============

Parsing, serialization, presets and persistence of content documents.
"""

from .parser import ContentDocumentParser, parse_content, serialize_content
from .presets import add_preset, apply_preset, remove_preset
from .service import ContentService

__all__ = [
    "ContentDocumentParser",
    "ContentService",
    "add_preset",
    "apply_preset",
    "parse_content",
    "remove_preset",
    "serialize_content",
]
