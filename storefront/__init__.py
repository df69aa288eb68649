"""
Storefront Template Studio
==========================

Visual customization of fixed storefront page templates, reproduced in two
rendering contexts: a live editor engine working on a parsed document tree and
a static renderer that rewrites raw template markup for public page serving.

This package provides:
- Template catalog and element identity resolution
- Content model parsing, presets and persistence
- Live mutation engine with an explicit editor session state machine
- Static rendering engine built from ordered markup rules
- FastAPI endpoints for public pages, content save/load and previews
"""

__version__ = "1.0.0"
__author__ = "Storefront Studio Team"
