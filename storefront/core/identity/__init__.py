"""
Element Identity
================

Deterministic element identifiers shared by the live and static engines.
"""

from .resolver import (
    ID_ATTR,
    INJECTED_ATTR,
    MarkupIdentityResolver,
    TreeIdentityResolver,
    compose_element_id,
    is_selectable,
)

__all__ = [
    "ID_ATTR",
    "INJECTED_ATTR",
    "MarkupIdentityResolver",
    "TreeIdentityResolver",
    "compose_element_id",
    "is_selectable",
]
