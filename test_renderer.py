#!/usr/bin/env python3
"""
Tests for artwork loading and sheet rendering.
Creates small artwork files and renders low resolution sheets.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import pytest
from PIL import Image

from sheetnest_core import (LayerSpec, LayoutValidationError, Sheet, SheetPacker, SheetRenderer,
                            load_artwork_layers)
from sheetnest_core.logger import generate_log_filename, generate_tiff_filename


def create_artwork(folder: Path, name: str, size, color, **save_args) -> Path:
    path = folder / name
    Image.new('RGBA', size, color=color).save(path, **save_args)
    return path


@pytest.fixture
def artwork_dir(tmp_path):
    folder = tmp_path / "artwork"
    folder.mkdir()
    create_artwork(folder, "logo_10.png", (200, 100), (255, 0, 0, 255))
    create_artwork(folder, "logo_2.png", (100, 100), (0, 0, 255, 255))
    (folder / "notes.txt").write_text("not artwork")
    (folder / "broken.png").write_bytes(b"not a png")
    return folder


def test_load_artwork_layers_sizes_and_order(artwork_dir):
    layers = load_artwork_layers(artwork_dir, dpi=100)

    assert [layer.id for layer in layers] == ["logo_2.png", "logo_10.png"]
    assert (layers[0].width, layers[0].height) == (1.0, 1.0)
    assert (layers[1].width, layers[1].height) == (2.0, 1.0)
    assert layers[1].source == artwork_dir / "logo_10.png"


def test_load_artwork_uses_file_dpi(tmp_path):
    Image.new('RGB', (400, 200), color='white').save(tmp_path / "hi_res.tif", dpi=(200, 200))

    layers = load_artwork_layers(tmp_path, dpi=100)

    assert layers[0].width == pytest.approx(2.0)
    assert layers[0].height == pytest.approx(1.0)


def test_load_artwork_missing_folder(tmp_path):
    with pytest.raises(LayoutValidationError):
        load_artwork_layers(tmp_path / "missing")


def test_preview_dimensions(artwork_dir, tmp_path):
    sheet = Sheet(10, 5)
    layers = load_artwork_layers(artwork_dir, dpi=100)
    result = SheetPacker(sheet, padding=0).auto_nest(layers)
    output = tmp_path / "preview.tif"

    ppi = SheetRenderer().generate_preview(sheet, layers, result, output, max_dimension=200)

    assert ppi == pytest.approx(20)
    with Image.open(output) as img:
        assert img.size == (200, 100)
        assert img.mode == 'RGB'


def test_preview_with_fill_and_oversized_layers(tmp_path):
    sheet = Sheet(10, 10)
    layers = [LayerSpec("big", 20, 20), LayerSpec("small", 1, 1)]
    packer = SheetPacker(sheet, padding=0.125)
    nest_result = packer.auto_nest(layers)
    fill_result = packer.smart_fill(layers)
    output = tmp_path / "preview.tif"

    SheetRenderer().generate_preview(sheet, layers, nest_result, output, fill_result=fill_result,
                                     max_dimension=300)

    assert nest_result.oversized
    with Image.open(output) as img:
        assert img.size == (300, 300)
        # oversized layers are tinted red
        r, g, b = img.getpixel((150, 150))
        assert r > g and r > b


def test_print_tiff_places_artwork(artwork_dir, tmp_path):
    sheet = Sheet(10, 5)
    layers = load_artwork_layers(artwork_dir, dpi=100)
    result = SheetPacker(sheet, padding=0).auto_nest(layers)
    output = tmp_path / "print.tif"
    log_path = tmp_path / "print.log"

    placed = SheetRenderer().generate_print_tiff(sheet, layers, result, output, log_path,
                                                 "test_sheet", padding=0, dpi=20)

    assert placed == 2
    # logo_10 (2x1 in, red) is the larger layer and is placed first at the origin
    assert result.placements[0].id == "logo_10.png"
    with Image.open(output) as img:
        assert img.size == (200, 100)
        assert img.mode == 'RGBA'
        assert img.getpixel((5, 5)) == (255, 0, 0, 255)
        assert img.getpixel((190, 90))[3] == 0

    report = log_path.read_text(encoding='utf-8')
    assert "test_sheet" in report
    assert "Efficiency: 6%" in report
    assert "Status: SUCCESS" in report


def test_print_tiff_mirrors_for_sublimation(artwork_dir, tmp_path):
    sheet = Sheet(10, 5)
    layers = load_artwork_layers(artwork_dir, dpi=100)
    result = SheetPacker(sheet, padding=0).auto_nest(layers)
    output = tmp_path / "mirrored.tif"

    SheetRenderer().generate_print_tiff(sheet, layers, result, output, tmp_path / "m.log",
                                        "mirrored", padding=0, dpi=20, mirror=True)

    with Image.open(output) as img:
        assert img.getpixel((194, 5)) == (255, 0, 0, 255)
        assert img.getpixel((5, 5))[3] == 0


def test_print_tiff_without_artwork_places_nothing(tmp_path):
    sheet = Sheet(4, 4)
    layers = [LayerSpec("plain", 1, 1)]
    result = SheetPacker(sheet, padding=0).auto_nest(layers)

    placed = SheetRenderer().generate_print_tiff(sheet, layers, result, tmp_path / "empty.tif",
                                                 tmp_path / "empty.log", "empty", padding=0, dpi=10)

    assert placed == 0


def test_print_tiff_failure_is_logged_and_raised(tmp_path):
    sheet = Sheet(4, 4)
    layers = [LayerSpec("plain", 1, 1)]
    result = SheetPacker(sheet, padding=0).auto_nest(layers)
    log_path = tmp_path / "failed.log"

    with pytest.raises(OSError):
        SheetRenderer().generate_print_tiff(sheet, layers, result, tmp_path / "missing_dir" / "out.tif",
                                            log_path, "failed", padding=0, dpi=10)

    assert "Status: FAILED" in log_path.read_text(encoding='utf-8')


def test_output_filenames():
    assert generate_tiff_filename("sheet", preview=True).endswith("_preview.tif")
    assert generate_tiff_filename("sheet").endswith("_print.tif")
    assert generate_log_filename("sheet").startswith("sheet_")
