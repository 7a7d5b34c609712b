"""
SheetNest Core Package
Sheet layout engine: auto-nest and smart-fill of rectangular artwork on print sheets.
"""

from .geometry import Sheet, Placement, Duplicate, Rotation, rects_overlap
from .layer import LayerSpec, load_artwork_layers
from .packer import SheetPacker, AutoNestResult, OversizedLayer, auto_nest
from .filler import SmartFillResult, smart_fill
from .validation import LayoutValidationError
from .renderer import SheetRenderer

__all__ = [
    'Sheet',
    'Placement',
    'Duplicate',
    'Rotation',
    'rects_overlap',
    'LayerSpec',
    'load_artwork_layers',
    'SheetPacker',
    'AutoNestResult',
    'OversizedLayer',
    'auto_nest',
    'SmartFillResult',
    'smart_fill',
    'LayoutValidationError',
    'SheetRenderer'
]
