"""
Smart-fill for SheetNest.
Tiles duplicates of the smallest layer over a uniform grid, skipping cells
that collide with the layers already on the sheet.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .geometry import Duplicate, Rotation, Sheet, rects_overlap, round_half_up
from .presets import DEFAULT_PADDING
from .validation import validate_layers, validate_padding

logger = logging.getLogger(__name__)


@dataclass
class SmartFillResult:
    """Duplicates suggested by smart-fill."""
    duplicates: List[Duplicate] = field(default_factory=list)
    coverage_percent: int = 0
    total_added: int = 0
    template_id: Optional[str] = None


def smart_fill(sheet: Sheet, layers: Sequence, padding: float = DEFAULT_PADDING) -> SmartFillResult:
    """
    Densify a sheet with copies of its smallest layer.

    Existing layers are treated as unrotated boxes anchored at (0, 0);
    their actual position and rotation on the sheet are not considered.
    The input layers are never modified.

    Args:
        sheet: Sheet being filled
        layers: Layers already on the sheet
        padding: Gap in inches around each duplicate

    Returns:
        SmartFillResult, empty when there are no layers or no grid cell fits
    """
    padding = validate_padding(padding)
    validate_layers(layers)

    if not layers:
        return SmartFillResult()

    # min() keeps the first of equal areas
    template = min(layers, key=lambda layer: layer.area)

    cell_width = template.width + padding * 2
    cell_height = template.height + padding * 2
    cols = math.floor(sheet.width / cell_width)
    rows = math.floor(sheet.height / cell_height)

    if cols == 0 or rows == 0:
        logger.info(f"Smart fill: template {template.id} ({template.width}x{template.height}) "
                    f"does not fit a {sheet.width}x{sheet.height} sheet")
        return SmartFillResult()

    existing = [(0.0, 0.0, layer.width, layer.height) for layer in layers]

    duplicates = []
    for row in range(rows):
        for col in range(cols):
            x = padding + col * cell_width
            y = padding + row * cell_height
            candidate = (x, y, template.width, template.height)
            if any(rects_overlap(candidate, box) for box in existing):
                continue
            duplicates.append(Duplicate(template.id, x, y, Rotation.UNROTATED))

    filled_area = (len(layers) + len(duplicates)) * template.area
    coverage = round_half_up(filled_area / sheet.area * 100)

    logger.info(f"Smart fill: {len(duplicates)} of {rows * cols} cells filled with "
                f"{template.id}, coverage {coverage}%")

    return SmartFillResult(
        duplicates=duplicates,
        coverage_percent=coverage,
        total_added=len(duplicates),
        template_id=template.id
    )
