"""
Geometry value types for SheetNest.
Sheet dimensions, placements, rotation and the bounding-box overlap test.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .validation import LayoutValidationError


class Rotation(Enum):
    """Effective orientation of a placed layer."""
    UNROTATED = 0
    ROTATED_90 = 90


@dataclass(frozen=True)
class Sheet:
    """Printable substrate, in inches."""
    width: float
    height: float

    def __post_init__(self):
        """Reject non-positive or non-finite dimensions."""
        for name, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise LayoutValidationError(f"Sheet {name} must be a number, got {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise LayoutValidationError(f"Sheet {name} must be positive, got {value}")

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class Placement:
    """Position chosen by auto-nest for one layer."""
    id: str
    x: float
    y: float
    rotation: Rotation = Rotation.UNROTATED


@dataclass(frozen=True)
class Duplicate:
    """Copy of a template layer suggested by smart-fill."""
    source_id: str
    x: float
    y: float
    rotation: Rotation = Rotation.UNROTATED


@dataclass
class Shelf:
    """Horizontal packing lane, local to a single auto-nest call."""
    y: float
    height: float
    cursor_x: float


Rect = Tuple[float, float, float, float]  # (x, y, width, height)


def rects_overlap(a: Rect, b: Rect) -> bool:
    """
    Axis-aligned bounding-box intersection test.

    Boxes that only share an edge do not overlap.
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return not (ax >= bx + bw or ax + aw <= bx or
                ay >= by + bh or ay + ah <= by)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))
