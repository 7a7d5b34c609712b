"""
Rendering engine for SheetNest.
Draws nested layouts as preview TIFFs and renders full resolution print sheets.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps

from .filler import SmartFillResult
from .geometry import Rotation, Sheet
from .layer import LayerSpec
from .logger import log_layout
from .packer import AutoNestResult

MAX_CANVAS_PIXELS = 500_000_000

LAYER_FILL = (200, 220, 255)
LAYER_OUTLINE = (40, 80, 160)
DUPLICATE_FILL = (210, 245, 210)
DUPLICATE_OUTLINE = (40, 140, 60)
OVERSIZED_COLOR = (255, 0, 0)


class SheetRenderer:
    """Handles TIFF rendering for SheetNest layouts."""

    def __init__(self):
        """Initialize the renderer."""
        self.logger = logging.getLogger(__name__)
        self._artwork_cache: Dict[Tuple[Path, int, int, Rotation], Image.Image] = {}

    def generate_preview(self, sheet: Sheet, layers: Sequence[LayerSpec], nest_result: AutoNestResult,
                         output_path: Path, fill_result: Optional[SmartFillResult] = None,
                         max_dimension: int = 2000, show_grid: bool = True) -> float:
        """
        Generate a preview TIFF of a nested sheet.

        Args:
            sheet: Sheet the layout was computed for
            layers: Layers passed to auto-nest
            nest_result: Auto-nest layout
            output_path: Output path for preview TIFF
            fill_result: Optional smart-fill duplicates to draw
            max_dimension: Maximum pixel dimension of the preview
            show_grid: Draw one-inch grid lines

        Returns:
            Pixels per inch used for the preview
        """
        self._artwork_cache.clear()
        ppi = max_dimension / max(sheet.width, sheet.height)
        width_px = max(1, round(sheet.width * ppi))
        height_px = max(1, round(sheet.height * ppi))

        self.logger.info(f"Generating preview TIFF: {output_path} ({width_px}x{height_px}, {ppi:.1f} ppi)")

        canvas = Image.new('RGB', (width_px, height_px), color='white')
        if show_grid:
            self._add_grid_lines(canvas, sheet, ppi)

        by_id = {layer.id: layer for layer in layers}
        oversized_ids = {o.id for o in nest_result.oversized}

        for placement in nest_result.placements:
            layer = by_id.get(placement.id)
            if layer is None:
                self.logger.error(f"Preview: no layer for placement {placement.id}")
                continue
            self._draw_layer(canvas, layer, placement.x, placement.y, placement.rotation, ppi,
                             LAYER_FILL, LAYER_OUTLINE, label=layer.id)

        if fill_result and fill_result.duplicates:
            template = by_id.get(fill_result.template_id)
            if template is None:
                self.logger.error(f"Preview: no layer for fill template {fill_result.template_id}")
            else:
                for duplicate in fill_result.duplicates:
                    self._draw_layer(canvas, template, duplicate.x, duplicate.y, duplicate.rotation, ppi,
                                     DUPLICATE_FILL, DUPLICATE_OUTLINE)

        for placement in nest_result.placements:
            if placement.id in oversized_ids:
                self._draw_oversized(canvas, by_id[placement.id], placement.x, placement.y, ppi)

        canvas.save(output_path, format='TIFF', compression='tiff_lzw', dpi=(round(ppi), round(ppi)))
        self.logger.info(f"Preview TIFF saved: {output_path}")
        return ppi

    def generate_print_tiff(self, sheet: Sheet, layers: Sequence[LayerSpec], nest_result: AutoNestResult,
                            output_path: Path, log_path: Path, project_name: str,
                            padding: float, fill_result: Optional[SmartFillResult] = None,
                            dpi: int = 300, mirror: bool = False) -> int:
        """
        Render the print-ready sheet at full resolution.

        Artwork is pasted onto a transparent canvas; layers without readable
        artwork are left empty. A layout report is written to ``log_path``
        whether or not rendering succeeds.

        Args:
            sheet: Sheet the layout was computed for
            layers: Layers passed to auto-nest
            nest_result: Auto-nest layout
            output_path: Output path for the print TIFF
            log_path: Path for the layout report
            project_name: Project name for the report
            padding: Padding the layout was computed with
            fill_result: Optional smart-fill duplicates to render
            dpi: Output resolution
            mirror: Flip the sheet horizontally (sublimation transfers)

        Returns:
            Number of artworks placed
        """
        start_time = datetime.now()
        self._artwork_cache.clear()
        width_px = round(sheet.width * dpi)
        height_px = round(sheet.height * dpi)
        duplicates_added = fill_result.total_added if fill_result else 0
        coverage = fill_result.coverage_percent if fill_result else None
        oversized_ids = [o.id for o in nest_result.oversized]

        self.logger.info(f"Generating print TIFF: {output_path} ({width_px}x{height_px} at {dpi} dpi)")

        try:
            total_pixels = width_px * height_px
            if total_pixels > MAX_CANVAS_PIXELS:
                self.logger.warning(f"Large canvas size: {total_pixels:,} pixels")
            self.logger.info(f"Estimated memory usage: {total_pixels * 4 / (1024 ** 3):.2f} GB (RGBA)")

            canvas = Image.new('RGBA', (width_px, height_px), color=(0, 0, 0, 0))
            by_id = {layer.id: layer for layer in layers}
            placed = 0

            for placement in nest_result.placements:
                layer = by_id.get(placement.id)
                if layer is None:
                    self.logger.error(f"No layer for placement {placement.id}")
                    continue
                if self._paste_artwork(canvas, layer, placement.x, placement.y, placement.rotation, dpi):
                    placed += 1

            if fill_result and fill_result.duplicates:
                template = by_id.get(fill_result.template_id)
                if template is None:
                    self.logger.error(f"No layer for fill template {fill_result.template_id}")
                else:
                    for duplicate in fill_result.duplicates:
                        if self._paste_artwork(canvas, template, duplicate.x, duplicate.y,
                                               duplicate.rotation, dpi):
                            placed += 1

            if mirror:
                canvas = ImageOps.mirror(canvas)

            canvas.save(output_path, format='TIFF', compression='tiff_lzw', dpi=(dpi, dpi))

            log_layout(
                log_path=log_path,
                project_name=project_name,
                timestamp=start_time,
                sheet_width=sheet.width,
                sheet_height=sheet.height,
                padding=padding,
                num_layers=len(layers),
                efficiency=nest_result.efficiency_percent,
                wasted_area=nest_result.wasted_area,
                duplicates_added=duplicates_added,
                coverage=coverage,
                oversized_ids=oversized_ids,
                output_path=output_path,
                dpi=dpi,
                process_time=(datetime.now() - start_time).total_seconds()
            )

            self.logger.info(f"Print TIFF completed: {output_path} ({placed} artworks placed)")
            return placed

        except Exception as e:
            self.logger.error(f"Error generating print TIFF: {e}", exc_info=True)
            log_layout(
                log_path=log_path,
                project_name=project_name,
                timestamp=start_time,
                sheet_width=sheet.width,
                sheet_height=sheet.height,
                padding=padding,
                num_layers=len(layers),
                efficiency=nest_result.efficiency_percent,
                wasted_area=nest_result.wasted_area,
                duplicates_added=duplicates_added,
                coverage=coverage,
                oversized_ids=oversized_ids,
                output_path=output_path,
                dpi=dpi,
                process_time=0,
                error=str(e)
            )
            raise

    def _box(self, layer: LayerSpec, x: float, y: float, rotation: Rotation,
             scale: float) -> Tuple[int, int, int, int]:
        """Pixel box (left, top, width, height) of a layer footprint."""
        width, height = layer.footprint(rotation)
        left = round(x * scale)
        top = round(y * scale)
        return left, top, max(1, round(width * scale)), max(1, round(height * scale))

    def _load_artwork(self, layer: LayerSpec, size: Tuple[int, int], rotation: Rotation) -> Optional[Image.Image]:
        """Artwork for ``layer`` rotated and resized to ``size``, or None."""
        if layer.source is None:
            return None
        key = (layer.source, size[0], size[1], rotation)
        if key in self._artwork_cache:
            return self._artwork_cache[key]
        try:
            with Image.open(layer.source) as img:
                art = img.convert('RGBA')
            if rotation == Rotation.ROTATED_90:
                art = art.transpose(Image.Transpose.ROTATE_270)
            art = art.resize(size, Image.Resampling.LANCZOS)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not load artwork {layer.source}: {e}")
            art = None
        self._artwork_cache[key] = art
        return art

    def _paste_artwork(self, canvas: Image.Image, layer: LayerSpec, x: float, y: float,
                       rotation: Rotation, scale: float) -> bool:
        left, top, width, height = self._box(layer, x, y, rotation, scale)
        art = self._load_artwork(layer, (width, height), rotation)
        if art is None:
            return False
        if canvas.mode == 'RGBA':
            canvas.alpha_composite(art, (left, top))
        else:
            canvas.paste(art, (left, top), art)
        return True

    def _draw_layer(self, canvas: Image.Image, layer: LayerSpec, x: float, y: float, rotation: Rotation,
                    scale: float, fill, outline, label: Optional[str] = None):
        """Draw one layer as artwork (if available) or a filled box, with outline."""
        left, top, width, height = self._box(layer, x, y, rotation, scale)
        draw = ImageDraw.Draw(canvas)
        if not self._paste_artwork(canvas, layer, x, y, rotation, scale):
            draw.rectangle([left, top, left + width - 1, top + height - 1], fill=fill)
        draw.rectangle([left, top, left + width - 1, top + height - 1], outline=outline, width=1)

        if label:
            font = ImageFont.load_default()
            text = label if rotation == Rotation.UNROTATED else f"{label} (90)"
            draw.text((left + 3, top + 2), text, fill=outline, font=font)

    def _add_grid_lines(self, canvas: Image.Image, sheet: Sheet, scale: float):
        """
        Add one-inch grid lines to the preview.

        Args:
            canvas: Canvas image to draw on
            sheet: Sheet being drawn
            scale: Pixels per inch
        """
        draw = ImageDraw.Draw(canvas)

        for inch in range(int(sheet.width) + 1):
            x = round(inch * scale)
            if x < canvas.width:
                draw.line([(x, 0), (x, canvas.height - 1)], fill='lightgray', width=1)

        for inch in range(int(sheet.height) + 1):
            y = round(inch * scale)
            if y < canvas.height:
                draw.line([(0, y), (canvas.width - 1, y)], fill='lightgray', width=1)

    def _draw_oversized(self, canvas: Image.Image, layer: LayerSpec, x: float, y: float, scale: float):
        """Mark a layer that did not fit the sheet with a red crossed overlay."""
        left, top, width, height = self._box(layer, x, y, Rotation.UNROTATED, scale)
        right = min(left + width, canvas.width) - 1
        bottom = min(top + height, canvas.height) - 1

        overlay = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
        overlay_draw = ImageDraw.Draw(overlay)
        overlay_draw.rectangle([left, top, right, bottom],
                               fill=OVERSIZED_COLOR + (64,), outline=OVERSIZED_COLOR + (255,), width=2)
        overlay_draw.line([(left, top), (right, bottom)], fill=OVERSIZED_COLOR + (128,), width=1)
        overlay_draw.line([(right, top), (left, bottom)], fill=OVERSIZED_COLOR + (128,), width=1)
        overlay_draw.text((left + 3, top + 2), f"{layer.id}: TOO LARGE",
                          fill=OVERSIZED_COLOR + (255,), font=ImageFont.load_default())

        canvas.paste(overlay, (0, 0), overlay)
