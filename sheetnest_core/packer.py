"""
Auto-nest packing for SheetNest.
Greedy shelf packing of rectangular layers onto a fixed-size sheet,
with optional 90 degree rotation.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .filler import SmartFillResult, smart_fill
from .geometry import Placement, Rotation, Sheet, Shelf, round_half_up
from .layer import LayerSpec
from .presets import DEFAULT_PADDING
from .validation import validate_layers, validate_padding

TOO_LARGE_FOR_SHEET = "TooLargeForSheet"

ORIENTATIONS = (Rotation.UNROTATED, Rotation.ROTATED_90)


@dataclass(frozen=True)
class OversizedLayer:
    """Layer that could not fit the sheet and was placed at the origin."""
    id: str
    reason: str = TOO_LARGE_FOR_SHEET


@dataclass
class AutoNestResult:
    """Result of an auto-nest calculation."""
    placements: List[Placement]  # One per input layer, in placement order
    efficiency_percent: int
    wasted_area: float  # Negative when layers exceed the sheet area
    oversized: List[OversizedLayer] = field(default_factory=list)

    def placement_for(self, layer_id: str) -> Optional[Placement]:
        for placement in self.placements:
            if placement.id == layer_id:
                return placement
        return None


class SheetPacker:
    """Shelf-based layout engine for a single sheet."""

    def __init__(self, sheet: Sheet, padding: float = DEFAULT_PADDING):
        """
        Initialize packer with sheet geometry.

        Args:
            sheet: Sheet to lay out
            padding: Gap in inches between items and between items and edges
        """
        self.sheet = sheet
        self.padding = validate_padding(padding)
        self.logger = logging.getLogger(__name__)

    def auto_nest(self, layers: Sequence[LayerSpec]) -> AutoNestResult:
        """
        Place every layer on the sheet.

        Larger layers are placed first; each one goes on the first shelf
        that accepts it, unrotated before rotated. Layers too large for the
        sheet are placed at the padding-inset origin and reported in
        ``oversized``.

        Args:
            layers: Layers to place

        Returns:
            AutoNestResult with one placement per layer
        """
        validate_layers(layers)
        sheet_area = self.sheet.area

        if not layers:
            return AutoNestResult(placements=[], efficiency_percent=0, wasted_area=sheet_area)

        self.logger.info(f"Auto-nesting {len(layers)} layers on "
                         f"{self.sheet.width}x{self.sheet.height} sheet (padding {self.padding})")

        # sorted() is stable, equal areas keep input order
        ordered = sorted(layers, key=lambda layer: layer.area, reverse=True)

        shelves = [Shelf(y=self.padding, height=0.0, cursor_x=self.padding)]
        placements = []
        oversized = []

        for layer in ordered:
            fit = self._fit_existing_shelf(shelves, layer)
            if fit is None:
                fit = self._fit_new_shelf(shelves, layer)

            if fit is None:
                self.logger.warning(f"Layer {layer.id} ({layer.width}x{layer.height}) "
                                    f"is too large to fit on sheet")
                placements.append(Placement(layer.id, self.padding, self.padding, Rotation.UNROTATED))
                oversized.append(OversizedLayer(layer.id))
                continue

            shelf, rotation = fit
            width, height = layer.footprint(rotation)
            placements.append(Placement(layer.id, shelf.cursor_x, shelf.y, rotation))
            shelf.cursor_x = shelf.cursor_x + width + self.padding
            shelf.height = max(shelf.height, height)

        total_area = sum(layer.area for layer in layers)
        efficiency = round_half_up(total_area / sheet_area * 100)

        self.logger.info(f"Auto-nest complete: {len(shelves)} shelves, "
                         f"efficiency {efficiency}%, {len(oversized)} oversized")

        return AutoNestResult(
            placements=placements,
            efficiency_percent=efficiency,
            wasted_area=sheet_area - total_area,
            oversized=oversized
        )

    def smart_fill(self, layers: Sequence[LayerSpec]) -> SmartFillResult:
        """Fill free space with duplicates of the smallest layer."""
        return smart_fill(self.sheet, layers, self.padding)

    def _fits(self, shelf: Shelf, width: float, height: float) -> bool:
        return (shelf.cursor_x + width + self.padding <= self.sheet.width and
                shelf.y + max(shelf.height, height) + self.padding <= self.sheet.height)

    def _fit_existing_shelf(self, shelves: List[Shelf],
                            layer: LayerSpec) -> Optional[Tuple[Shelf, Rotation]]:
        for shelf in shelves:
            for rotation in ORIENTATIONS:
                width, height = layer.footprint(rotation)
                if self._fits(shelf, width, height):
                    return shelf, rotation
        return None

    def _fit_new_shelf(self, shelves: List[Shelf],
                       layer: LayerSpec) -> Optional[Tuple[Shelf, Rotation]]:
        last = shelves[-1]
        shelf = Shelf(y=last.y + last.height + self.padding, height=0.0, cursor_x=self.padding)
        for rotation in ORIENTATIONS:
            width, height = layer.footprint(rotation)
            if self._fits(shelf, width, height):
                shelves.append(shelf)
                return shelf, rotation
        return None


def auto_nest(sheet: Sheet, layers: Sequence[LayerSpec],
              padding: float = DEFAULT_PADDING) -> AutoNestResult:
    """Auto-nest ``layers`` on ``sheet``. See SheetPacker.auto_nest."""
    return SheetPacker(sheet, padding).auto_nest(layers)
