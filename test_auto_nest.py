#!/usr/bin/env python3
"""
Tests for auto-nest shelf packing.
"""

import dataclasses
import logging
import random
import sys
from types import SimpleNamespace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import pytest

from sheetnest_core import (AutoNestResult, LayerSpec, LayoutValidationError, Placement,
                            Rotation, Sheet, SheetPacker, auto_nest)
from sheetnest_core.geometry import round_half_up
from sheetnest_core.packer import TOO_LARGE_FOR_SHEET


def test_single_item_scenario():
    """One 10x10 layer on a 22.5x48 DTF sheet."""
    result = auto_nest(Sheet(22.5, 48), [LayerSpec("a", 10, 10)], padding=0.125)

    assert result.placements == [Placement("a", 0.125, 0.125, Rotation.UNROTATED)]
    assert result.efficiency_percent == 9
    assert result.wasted_area == pytest.approx(22.5 * 48 - 100)
    assert result.oversized == []


def test_oversized_item_falls_back_to_origin():
    """A layer larger than the sheet is still placed, at the padded origin."""
    result = auto_nest(Sheet(10, 10), [LayerSpec("big", 20, 20)], padding=0.125)

    assert result.placements == [Placement("big", 0.125, 0.125, Rotation.UNROTATED)]
    assert [o.id for o in result.oversized] == ["big"]
    assert result.oversized[0].reason == TOO_LARGE_FOR_SHEET
    assert result.efficiency_percent == 400
    assert result.wasted_area == pytest.approx(-300)


def test_failed_new_shelf_is_discarded(caplog):
    """A layer that fits nowhere leaves the shelves untouched for later layers."""
    layers = [LayerSpec("big", 20, 20), LayerSpec("s", 2, 2)]

    with caplog.at_level(logging.INFO, logger="sheetnest_core.packer"):
        result = auto_nest(Sheet(10, 10), layers, padding=0.125)

    assert result.placement_for("s") == Placement("s", 0.125, 0.125, Rotation.UNROTATED)
    assert [o.id for o in result.oversized] == ["big"]
    assert any(r.levelno == logging.WARNING and "big" in r.getMessage() and "too large" in r.getMessage()
               for r in caplog.records)
    assert "1 shelves" in caplog.text


def test_empty_layer_list():
    result = auto_nest(Sheet(22.5, 48), [])

    assert result.placements == []
    assert result.efficiency_percent == 0
    assert result.wasted_area == pytest.approx(22.5 * 48)


def test_every_layer_placed_exactly_once():
    rng = random.Random(7)
    layers = [LayerSpec(f"layer-{i}", rng.uniform(0.5, 12), rng.uniform(0.5, 12)) for i in range(60)]

    result = auto_nest(Sheet(22.5, 48), layers)

    ids = [p.id for p in result.placements]
    assert len(ids) == len(layers)
    assert set(ids) == {layer.id for layer in layers}


def test_placements_stay_inside_padded_sheet():
    rng = random.Random(11)
    sheet = Sheet(22.5, 48)
    padding = 0.125
    layers = [LayerSpec(f"l{i}", rng.uniform(1, 6), rng.uniform(1, 6)) for i in range(40)]
    by_id = {layer.id: layer for layer in layers}

    result = auto_nest(sheet, layers, padding)
    oversized = {o.id for o in result.oversized}

    for placement in result.placements:
        if placement.id in oversized:
            continue
        width, height = by_id[placement.id].footprint(placement.rotation)
        assert placement.x >= padding
        assert placement.y >= padding
        assert placement.x + width + padding <= sheet.width
        assert placement.y + height + padding <= sheet.height


def test_efficiency_is_area_ratio_even_when_overlapping():
    """Efficiency measures layer area against sheet area, not packing quality."""
    layers = [LayerSpec("a", 9, 9), LayerSpec("b", 9, 9), LayerSpec("c", 3, 7)]
    sheet = Sheet(10, 10)

    result = auto_nest(sheet, layers, padding=0.125)

    expected = round_half_up(sum(layer.area for layer in layers) / sheet.area * 100)
    assert result.efficiency_percent == expected
    assert result.wasted_area == pytest.approx(sheet.area - 81 - 81 - 21)


def test_efficiency_rounds_half_up():
    # 8 / 64 = 12.5%
    result = auto_nest(Sheet(8, 8), [LayerSpec("a", 4, 2)], padding=0)
    assert result.efficiency_percent == 13


def test_rotates_when_only_rotated_fits():
    result = auto_nest(Sheet(10, 30), [LayerSpec("long", 20, 2)], padding=0)

    placement = result.placements[0]
    assert placement.rotation == Rotation.ROTATED_90
    assert (placement.x, placement.y) == (0, 0)


def test_rotated_footprint_swaps_dimensions():
    layer = LayerSpec("long", 20, 2)

    assert layer.footprint(Rotation.ROTATED_90) == (2, 20)
    assert layer.footprint(Rotation.UNROTATED) == (20, 2)


def test_unrotated_preferred_when_both_fit():
    result = auto_nest(Sheet(20, 20), [LayerSpec("a", 5, 3)], padding=0)
    assert result.placements[0].rotation == Rotation.UNROTATED


def test_rotation_hint_is_not_acted_upon():
    result = auto_nest(Sheet(20, 20), [LayerSpec("a", 5, 5, rotation=45)], padding=0)
    assert result.placements[0].rotation == Rotation.UNROTATED


def test_larger_layers_placed_first_with_stable_ties():
    layers = [LayerSpec("small-1", 2, 2), LayerSpec("big", 4, 4), LayerSpec("small-2", 2, 2)]

    result = auto_nest(Sheet(20, 20), layers, padding=0)

    assert [p.id for p in result.placements] == ["big", "small-1", "small-2"]
    assert [(p.x, p.y) for p in result.placements] == [(0, 0), (4, 0), (6, 0)]


def test_new_shelf_opens_below_last_shelf():
    layers = [LayerSpec("a", 4, 4), LayerSpec("b", 4, 4), LayerSpec("c", 4, 4)]

    result = auto_nest(Sheet(10, 10), layers, padding=0)

    assert [(p.x, p.y) for p in result.placements] == [(0, 0), (4, 0), (0, 4)]


def test_first_shelf_that_fits_wins():
    layers = [LayerSpec("a", 6, 5), LayerSpec("b", 5, 5), LayerSpec("c", 3, 3)]

    result = auto_nest(Sheet(10, 10), layers, padding=0)

    assert result.placement_for("a") == Placement("a", 0, 0, Rotation.UNROTATED)
    assert result.placement_for("b") == Placement("b", 0, 5, Rotation.UNROTATED)
    # c returns to the first shelf rather than the newer one
    assert result.placement_for("c") == Placement("c", 6, 0, Rotation.UNROTATED)


def test_padding_between_items_and_edges():
    layers = [LayerSpec("a", 4, 4), LayerSpec("b", 4, 4)]

    result = auto_nest(Sheet(10, 10), layers, padding=0.5)

    assert [(p.x, p.y) for p in result.placements] == [(0.5, 0.5), (5.0, 0.5)]


def test_item_exactly_filling_padded_sheet_fits():
    result = auto_nest(Sheet(10, 10), [LayerSpec("a", 9, 9)], padding=0.5)

    assert result.oversized == []
    assert result.placements[0] == Placement("a", 0.5, 0.5, Rotation.UNROTATED)


def test_identical_inputs_give_identical_output():
    rng = random.Random(3)
    layers = [LayerSpec(f"l{i}", rng.uniform(0.5, 8), rng.uniform(0.5, 8)) for i in range(25)]
    sheet = Sheet(22.5, 48)

    first = auto_nest(sheet, layers, 0.125)
    second = auto_nest(sheet, list(layers), 0.125)

    assert first == second


def test_packer_holds_no_state_between_calls():
    packer = SheetPacker(Sheet(10, 10), padding=0)

    first = packer.auto_nest([LayerSpec("a", 4, 4)])
    packer.auto_nest([LayerSpec("x", 9, 9), LayerSpec("y", 1, 1)])
    again = packer.auto_nest([LayerSpec("a", 4, 4)])

    assert isinstance(first, AutoNestResult)
    assert first == again


def test_duplicate_ids_rejected():
    with pytest.raises(LayoutValidationError, match="Duplicate layer ids: a"):
        auto_nest(Sheet(10, 10), [LayerSpec("a", 1, 1), LayerSpec("a", 2, 2)])


def test_negative_padding_rejected():
    with pytest.raises(LayoutValidationError):
        auto_nest(Sheet(10, 10), [LayerSpec("a", 1, 1)], padding=-0.1)


@pytest.mark.parametrize("width, height", [(0, 1), (1, -2), (float("nan"), 1), (1, float("inf"))])
def test_non_positive_layer_dimensions_rejected(width, height):
    with pytest.raises(LayoutValidationError):
        LayerSpec("a", width, height)


def test_empty_layer_id_rejected():
    with pytest.raises(LayoutValidationError):
        LayerSpec("", 1, 1)


def test_layer_dimensions_cannot_be_changed_after_validation():
    layer = LayerSpec("a", 2, 2)

    with pytest.raises(dataclasses.FrozenInstanceError):
        layer.width = -5

    assert layer.width == 2


def test_string_source_normalized_to_path():
    assert LayerSpec("a", 1, 1, source="art/a.png").source == Path("art/a.png")


def test_layer_like_objects_with_bad_dimensions_rejected():
    layer = SimpleNamespace(id="a", width=-5, height=2, area=-10)

    with pytest.raises(LayoutValidationError, match="width must be positive"):
        auto_nest(Sheet(10, 10), [layer], padding=0.125)


@pytest.mark.parametrize("layers", [
    [{"id": "a", "width": 1, "height": 1}],
    [LayerSpec("a", 1, 1), "b"],
])
def test_non_layer_entries_rejected(layers):
    with pytest.raises(LayoutValidationError, match="is not a layer"):
        auto_nest(Sheet(10, 10), layers)
