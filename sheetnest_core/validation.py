"""
Input validation for the layout engines.
"""

import math
from typing import Iterable, Sequence


class LayoutValidationError(ValueError):
    """Raised when a layout request is structurally invalid."""


def validate_padding(padding) -> float:
    """Padding must be a finite number >= 0."""
    if isinstance(padding, bool) or not isinstance(padding, (int, float)):
        raise LayoutValidationError(f"Padding must be a number, got {padding!r}")
    if not math.isfinite(padding) or padding < 0:
        raise LayoutValidationError(f"Padding must be zero or positive, got {padding}")
    return float(padding)


def validate_dimension(layer_id, name: str, value) -> None:
    """Layer width and height must be finite numbers > 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LayoutValidationError(f"Layer {layer_id}: {name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise LayoutValidationError(f"Layer {layer_id}: {name} must be positive, got {value}")


def validate_layers(layers: Sequence) -> None:
    """
    Check every layer and the cross-layer constraints.

    Layers must be a list of objects with ``id``, ``width`` and ``height``
    and the ids must be unique.
    """
    if isinstance(layers, (str, bytes)) or not isinstance(layers, (list, tuple)):
        raise LayoutValidationError("Layers must be a list")

    seen = set()
    duplicates = []
    for index, layer in enumerate(layers):
        if not all(hasattr(layer, attr) for attr in ("id", "width", "height")):
            raise LayoutValidationError(f"layers[{index}] is not a layer: {layer!r}")
        validate_dimension(layer.id, "width", layer.width)
        validate_dimension(layer.id, "height", layer.height)
        if layer.id in seen:
            duplicates.append(layer.id)
        seen.add(layer.id)

    if duplicates:
        raise LayoutValidationError(f"Duplicate layer ids: {', '.join(_unique(duplicates))}")


def _unique(values: Iterable[str]):
    ordered = []
    for value in values:
        if value not in ordered:
            ordered.append(value)
    return ordered
