"""
Request/response boundary for the layout engines.

Turns JSON-style request dicts into engine inputs, runs the engine and
returns JSON-style response dicts. The paid variants wrap the engine call
in a ledger reservation.
"""

import logging
from typing import Any, Dict, List, Tuple

from .filler import SmartFillResult, smart_fill
from .geometry import Sheet
from .layer import LayerSpec
from .ledger import Feature, LedgerPort, run_paid_operation
from .packer import AutoNestResult, auto_nest
from .presets import DEFAULT_PADDING
from .validation import LayoutValidationError, validate_layers, validate_padding

logger = logging.getLogger(__name__)


def parse_layout_request(payload: Dict[str, Any]) -> Tuple[Sheet, List[LayerSpec], float]:
    """
    Validate a layout request and build engine inputs.

    Args:
        payload: ``{sheetWidth, sheetHeight, layers: [{id, width, height}], padding?}``

    Returns:
        (sheet, layers, padding)
    """
    if not isinstance(payload, dict):
        raise LayoutValidationError("Request body must be an object")

    for key in ("sheetWidth", "sheetHeight", "layers"):
        if key not in payload:
            raise LayoutValidationError(f"Missing required field: {key}")

    sheet = Sheet(payload["sheetWidth"], payload["sheetHeight"])
    padding = validate_padding(payload.get("padding", DEFAULT_PADDING))

    raw_layers = payload["layers"]
    if not isinstance(raw_layers, list):
        raise LayoutValidationError("layers must be a list")

    layers = []
    for index, raw in enumerate(raw_layers):
        if not isinstance(raw, dict):
            raise LayoutValidationError(f"layers[{index}] must be an object")
        missing = [key for key in ("id", "width", "height") if key not in raw]
        if missing:
            raise LayoutValidationError(f"layers[{index}] is missing {', '.join(missing)}")
        layers.append(LayerSpec(
            id=raw["id"],
            width=raw["width"],
            height=raw["height"],
            rotation=raw.get("rotation"),
        ))

    validate_layers(layers)
    return sheet, layers, padding


def auto_nest_response(result: AutoNestResult) -> Dict[str, Any]:
    return {
        "positions": [
            {"id": p.id, "x": p.x, "y": p.y, "rotation": p.rotation.value}
            for p in result.placements
        ],
        "efficiency": result.efficiency_percent,
        "wastedSpace": result.wasted_area,
        "oversized": [{"id": o.id, "reason": o.reason} for o in result.oversized],
    }


def smart_fill_response(result: SmartFillResult) -> Dict[str, Any]:
    return {
        "duplicates": [
            {"sourceId": d.source_id, "x": d.x, "y": d.y, "rotation": d.rotation.value}
            for d in result.duplicates
        ],
        "coverage": result.coverage_percent,
        "totalAdded": result.total_added,
    }


def auto_nest_request(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Handle an auto-nest request."""
    sheet, layers, padding = parse_layout_request(payload)
    return auto_nest_response(auto_nest(sheet, layers, padding))


def smart_fill_request(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Handle a smart-fill request."""
    sheet, layers, padding = parse_layout_request(payload)
    return smart_fill_response(smart_fill(sheet, layers, padding))


def paid_auto_nest(ledger: LedgerPort, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Auto-nest charged to ``user_id``. Invalid requests are rejected before any charge."""
    sheet, layers, padding = parse_layout_request(payload)
    result, reservation = run_paid_operation(
        ledger, user_id, Feature.AUTO_NEST,
        lambda: auto_nest(sheet, layers, padding)
    )
    response = auto_nest_response(result)
    response["creditsCharged"] = 0 if reservation.use_free_trial else reservation.cost
    response["usedFreeTrial"] = reservation.use_free_trial
    logger.info(f"Paid auto-nest for {user_id}: {response['creditsCharged']} credits")
    return response


def paid_smart_fill(ledger: LedgerPort, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Smart-fill charged to ``user_id``."""
    sheet, layers, padding = parse_layout_request(payload)
    result, reservation = run_paid_operation(
        ledger, user_id, Feature.SMART_FILL,
        lambda: smart_fill(sheet, layers, padding)
    )
    response = smart_fill_response(result)
    response["creditsCharged"] = 0 if reservation.use_free_trial else reservation.cost
    response["usedFreeTrial"] = reservation.use_free_trial
    logger.info(f"Paid smart fill for {user_id}: {response['creditsCharged']} credits")
    return response
