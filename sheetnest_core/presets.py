"""
Sheet presets and layout defaults for SheetNest.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .geometry import Sheet
from .validation import LayoutValidationError

DEFAULT_PADDING = 0.125  # 1/8 inch between items and sheet edges


class PrintType(Enum):
    """Supported print processes."""
    DTF = "dtf"
    UV_DTF = "uv_dtf"
    SUBLIMATION = "sublimation"


@dataclass(frozen=True)
class PrintTypeRules:
    mirror: bool
    white_ink: bool
    min_dpi: int = 300
    cutline_option: bool = False


@dataclass(frozen=True)
class SheetPreset:
    """Fixed sheet width and the heights offered for a print type."""
    width: float
    heights: Tuple[int, ...]
    rules: PrintTypeRules
    display_name: str
    description: str


SHEET_PRESETS: Dict[PrintType, SheetPreset] = {
    PrintType.DTF: SheetPreset(
        width=22.5,
        heights=(24, 36, 48, 53, 60, 72, 84, 96, 108, 120, 132, 144, 168, 192, 216, 240),
        rules=PrintTypeRules(mirror=False, white_ink=True),
        display_name="DTF (Direct-to-Film)",
        description='22.5" width, any color, no mirroring required'
    ),
    PrintType.UV_DTF: SheetPreset(
        width=16,
        heights=(12, 24, 36, 48, 60, 72, 84, 96, 108, 120),
        rules=PrintTypeRules(mirror=False, white_ink=True, cutline_option=True),
        display_name="UV DTF (Stickers)",
        description='16" width, hard surface transfers, optional cutlines'
    ),
    PrintType.SUBLIMATION: SheetPreset(
        width=22,
        heights=(24, 36, 48, 60, 72, 84, 96, 120),
        rules=PrintTypeRules(mirror=True, white_ink=False),
        display_name="Sublimation",
        description='22" width, no white ink, mirroring often required'
    ),
}

DEFAULT_PRINT_TYPE = PrintType.DTF
DEFAULT_SHEET_HEIGHT = 48

PRICE_PER_SQUARE_INCH = 0.02


def validate_sheet_size(print_type: PrintType, height: float) -> bool:
    """True when ``height`` is one of the heights offered for ``print_type``."""
    return height in SHEET_PRESETS[print_type].heights


def sheet_for(print_type: PrintType = DEFAULT_PRINT_TYPE,
              height: float = DEFAULT_SHEET_HEIGHT) -> Sheet:
    """Build the Sheet for a preset print type and height."""
    if not validate_sheet_size(print_type, height):
        allowed = ", ".join(str(h) for h in SHEET_PRESETS[print_type].heights)
        raise LayoutValidationError(
            f"Height {height} is not offered for {print_type.value} (allowed: {allowed})")
    return Sheet(SHEET_PRESETS[print_type].width, height)


def get_sheet_price(print_type: PrintType, height: float) -> float:
    """Base sheet price in dollars, rounded to cents."""
    square_inches = SHEET_PRESETS[print_type].width * height
    return round(square_inches * PRICE_PER_SQUARE_INCH, 2)


def describe_sheet(print_type: PrintType, height: float) -> str:
    """One-line summary of a preset sheet with its base price."""
    preset = SHEET_PRESETS[print_type]
    return (f'{preset.width}" x {height}" - ${get_sheet_price(print_type, height):.2f} '
            f'({preset.description})')
