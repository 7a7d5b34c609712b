"""
Layer data structure for SheetNest.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image

from .geometry import Rotation
from .validation import LayoutValidationError, validate_dimension

logger = logging.getLogger(__name__)

ARTWORK_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp', '.webp'}


@dataclass(frozen=True)
class LayerSpec:
    """One rectangular graphic to be placed on a sheet (inches)."""

    id: str
    width: float
    height: float
    rotation: Optional[float] = None  # Caller's hint, never acted upon
    source: Optional[Path] = None  # Artwork file, used only for rendering

    def __post_init__(self):
        """Validate dimensions and normalize the artwork path."""
        if not isinstance(self.id, str) or not self.id:
            raise LayoutValidationError(f"Layer id must be a non-empty string, got {self.id!r}")
        validate_dimension(self.id, "width", self.width)
        validate_dimension(self.id, "height", self.height)
        if isinstance(self.source, str):
            object.__setattr__(self, "source", Path(self.source))

    @property
    def area(self) -> float:
        return self.width * self.height

    def footprint(self, rotation: Rotation) -> Tuple[float, float]:
        """Occupied (width, height) for the given orientation."""
        if rotation == Rotation.ROTATED_90:
            return self.height, self.width
        return self.width, self.height


def natural_sort_key(path: Path):
    """Sort files by the last number in their name, then by name."""
    numbers = re.findall(r'\d+', path.stem)
    return (int(numbers[-1]) if numbers else 0, path.name)


def load_artwork_layers(folder: Path, dpi: int = 300) -> List[LayerSpec]:
    """
    Build layers from the image files in a folder.

    Args:
        folder: Directory holding artwork files
        dpi: Resolution used when a file carries no DPI of its own

    Returns:
        One LayerSpec per readable image, sized in inches
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise LayoutValidationError(f"Artwork folder does not exist: {folder}")
    if dpi <= 0:
        raise LayoutValidationError(f"DPI must be positive, got {dpi}")

    files = [p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in ARTWORK_EXTENSIONS]
    files.sort(key=natural_sort_key)

    layers = []
    for file_path in files:
        try:
            with Image.open(file_path) as img:
                width_px, height_px = img.size
                file_dpi = img.info.get('dpi')
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read artwork {file_path}: {e}")
            continue

        dpi_x = dpi_y = float(dpi)
        if file_dpi and len(file_dpi) == 2 and file_dpi[0] > 0 and file_dpi[1] > 0:
            dpi_x, dpi_y = float(file_dpi[0]), float(file_dpi[1])

        layers.append(LayerSpec(
            id=file_path.name,
            width=width_px / dpi_x,
            height=height_px / dpi_y,
            source=file_path,
        ))

    logger.info(f"Loaded {len(layers)} artwork layers from {folder}")
    return layers
