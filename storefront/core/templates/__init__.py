"""
Template Catalog
================

Fixed storefront page templates and the YAML manifest describing them.
"""

from .catalog import TemplateCatalog, get_template_catalog

__all__ = ["TemplateCatalog", "get_template_catalog"]
