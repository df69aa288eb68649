"""
Live Editor
===========

Interactive move/edit engine for the store page preview.

Components:
- engine: LiveMutationEngine over a parsed document
- session: immutable EditorSession and its pure transitions
- history: linear undo/redo history
- geometry: offsets, rects and center snapping
- dom: event dispatch, overlays and the selectable-node heuristic
"""

from .engine import ContentChange, LiveMutationEngine
from .geometry import Offset, Rect, StaticGeometry, Viewport
from .session import EditorSession

__all__ = [
    "ContentChange",
    "EditorSession",
    "LiveMutationEngine",
    "Offset",
    "Rect",
    "StaticGeometry",
    "Viewport",
]
