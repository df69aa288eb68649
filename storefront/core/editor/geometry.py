"""
Editor Geometry
===============

Rectangles, offsets and the center-snap rule used while dragging.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Protocol
import math


@dataclass(frozen=True)
class Offset:
    left: float = 0.0
    top: float = 0.0

    def __add__(self, other: "Offset") -> "Offset":
        return Offset(self.left + other.left, self.top + other.top)

    def to_dict(self) -> Dict[str, float]:
        return {"left": self.left, "top": self.top}


ZERO = Offset()


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @property
    def mid_x(self) -> float:
        return self.width / 2

    @property
    def mid_y(self) -> float:
        return self.height / 2


class GeometryProvider(Protocol):
    """Layout information supplied by the host that displays the document."""

    def rect_for(self, element_id: str) -> Optional[Rect]:
        """Layout rect of an element before any editor offset is applied."""
        ...

    def viewport(self) -> Viewport:
        ...


class StaticGeometry:
    """Geometry from fixed rects, for server-side previews and tests."""

    def __init__(self, viewport: Viewport, rects: Optional[Dict[str, Rect]] = None) -> None:
        self._viewport = viewport
        self._rects = dict(rects or {})

    def set_rect(self, element_id: str, rect: Rect) -> None:
        self._rects[element_id] = rect

    def rect_for(self, element_id: str) -> Optional[Rect]:
        return self._rects.get(element_id)

    def viewport(self) -> Viewport:
        return self._viewport


@dataclass(frozen=True)
class SnapResult:
    offset: Offset
    snapped_x: bool
    snapped_y: bool
    delta_x: float
    delta_y: float

    @property
    def label(self) -> str:
        return distance_label(self.delta_x, self.delta_y)


def snap_offset(candidate: Offset, layout: Rect, viewport: Viewport, threshold: float) -> SnapResult:
    """
    Apply center snap to a candidate offset.

    On each axis where the element's center, after the candidate offset, lies
    within ``threshold`` pixels of the viewport center, the offset on that axis
    is replaced by the one that aligns the two centers exactly.
    """
    delta_x = layout.center_x + candidate.left - viewport.mid_x
    delta_y = layout.center_y + candidate.top - viewport.mid_y
    snapped_x = abs(delta_x) <= threshold
    snapped_y = abs(delta_y) <= threshold
    left = viewport.mid_x - layout.center_x if snapped_x else candidate.left
    top = viewport.mid_y - layout.center_y if snapped_y else candidate.top
    return SnapResult(Offset(left, top), snapped_x, snapped_y, delta_x, delta_y)


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def distance_label(delta_x: float, delta_y: float) -> str:
    return f"ΔX center: {_js_round(delta_x)}px, ΔY center: {_js_round(delta_y)}px"
