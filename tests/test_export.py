"""Tests for tile encoding and pyramid export."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from dzgen.core import DeepZoomGenerator, TileCoord, parse_dzi
from dzgen.export.backends import (
    VIPSBackend,
    get_backend,
    get_backend_name,
    is_vips_available,
    parse_color,
)
from dzgen.export.writer import DeepZoomExporter, render_tile

from .conftest import FakeSlide

requires_vips = pytest.mark.skipif(not is_vips_available(), reason="pyvips is not available")


def _load(data_or_path) -> np.ndarray:
    import pyvips

    if isinstance(data_or_path, Path):
        img = pyvips.Image.new_from_file(str(data_or_path))
    else:
        img = pyvips.Image.new_from_buffer(data_or_path, "")
    return VIPSBackend.to_numpy(img)


class TestParseColor:
    """Tests for background color parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [("#ffffff", (255, 255, 255)), ("F0E0D0", (240, 224, 208)), (" #000080 ", (0, 0, 128))],
    )
    def test_valid(self, value: str, expected: tuple[int, int, int]):
        assert parse_color(value) == expected

    @pytest.mark.parametrize("value", ["#fff", "", "#12345g"])
    def test_invalid(self, value: str):
        with pytest.raises(ValueError):
            parse_color(value)


class TestBackendSelection:
    """Tests for backend selection logic."""

    def test_is_vips_available_returns_bool(self):
        assert isinstance(is_vips_available(), bool)

    def test_get_backend_name(self):
        assert get_backend_name() == "PyVIPS"

    @requires_vips
    def test_get_backend_returns_vips(self):
        assert get_backend() is VIPSBackend


@requires_vips
class TestVIPSBackend:
    """Tests for the PyVIPS tile backend."""

    def test_from_bgra_reorders_bands(self):
        bgra = np.zeros((2, 3, 4), dtype=np.uint8)
        bgra[...] = [0x99, 0x66, 0x33, 0xFF]
        img = VIPSBackend.from_bgra(bgra)
        assert (img.width, img.height, img.bands) == (3, 2, 4)
        np.testing.assert_array_equal(VIPSBackend.to_numpy(img)[0, 0], [0x33, 0x66, 0x99, 0xFF])

    def test_flatten_transparent_uses_background(self):
        img = VIPSBackend.from_bgra(np.zeros((4, 4, 4), dtype=np.uint8))
        flat = VIPSBackend.flatten(img, (255, 0, 0))
        assert flat.bands == 3
        arr = VIPSBackend.to_numpy(flat)
        assert (arr == [255, 0, 0]).all()

    def test_flatten_opaque_keeps_color(self):
        bgra = np.zeros((4, 4, 4), dtype=np.uint8)
        bgra[...] = [30, 20, 10, 255]
        arr = VIPSBackend.to_numpy(VIPSBackend.flatten(VIPSBackend.from_bgra(bgra), (255, 255, 255)))
        assert (arr == [10, 20, 30]).all()

    def test_resize_exact_size(self):
        img = VIPSBackend.flatten(
            VIPSBackend.from_bgra(np.full((200, 250, 4), 255, dtype=np.uint8)), (0, 0, 0)
        )
        resized = VIPSBackend.resize(img, (125, 100))
        assert (resized.width, resized.height) == (125, 100)

    def test_encode_formats(self):
        flat = VIPSBackend.flatten(
            VIPSBackend.from_bgra(np.full((8, 8, 4), 255, dtype=np.uint8)), (0, 0, 0)
        )
        assert VIPSBackend.encode(flat, "jpeg", 90)[:2] == b"\xff\xd8"
        assert VIPSBackend.encode(flat, "png")[:4] == b"\x89PNG"
        with pytest.raises(ValueError):
            VIPSBackend.encode(flat, "gif")


@requires_vips
class TestRenderTile:
    """Tests for rendering single tiles."""

    def test_output_size_and_color(self, single_level_slide: FakeSlide):
        dz = DeepZoomGenerator(single_level_slide, tile_size=254, overlap=1)
        arr = _load(render_tile(dz, TileCoord(10, 3, 3), format="png"))
        assert arr.shape == (39, 239, 3)
        assert (arr == [0x33, 0x66, 0x99]).all()

    def test_resampled_to_deep_zoom_size(self):
        """Tiles read from a coarser native level are scaled to their output size."""
        slide = FakeSlide([(1000, 1000), (333, 333)], downsamples=[1.0, 3.003])
        dz = DeepZoomGenerator(slide, tile_size=254, overlap=1)
        geometry = dz.get_tile_geometry(8, 0, 0)
        assert geometry.size != geometry.output_size
        arr = _load(render_tile(dz, TileCoord(8, 0, 0), format="png"))
        assert arr.shape[:2] == (geometry.output_size.height, geometry.output_size.width)


@requires_vips
class TestDeepZoomExporter:
    """Tests for writing a full pyramid."""

    @pytest.fixture
    def slide(self) -> FakeSlide:
        return FakeSlide([(300, 200)])

    def test_layout(self, slide: FakeSlide, temp_dir: Path):
        dz = DeepZoomGenerator(slide, tile_size=254, overlap=1)
        result = DeepZoomExporter(dz, format="png", workers=2).export(temp_dir / "out" / "slide")

        assert result.dzi_path == temp_dir / "out" / "slide.dzi"
        assert result.tiles_dir == temp_dir / "out" / "slide_files"
        assert result.tile_count == dz.tile_count == 11

        files = sorted(p.relative_to(result.tiles_dir) for p in result.tiles_dir.rglob("*.png"))
        assert len(files) == 11
        assert Path("9/0_0.png") in files
        assert Path("9/1_0.png") in files
        assert Path("0/0_0.png") in files

        descriptor = parse_dzi(result.dzi_path.read_text(encoding="utf-8"))
        assert descriptor.format == "png"
        assert (descriptor.size.width, descriptor.size.height) == (300, 200)

    def test_tile_sizes_on_disk(self, slide: FakeSlide, temp_dir: Path):
        dz = DeepZoomGenerator(slide, tile_size=254, overlap=1)
        result = DeepZoomExporter(dz, format="png").export(temp_dir / "slide")
        assert _load(result.tiles_dir / "9" / "0_0.png").shape == (200, 255, 3)
        assert _load(result.tiles_dir / "9" / "1_0.png").shape == (200, 47, 3)
        assert _load(result.tiles_dir / "0" / "0_0.png").shape == (1, 1, 3)

    def test_jpeg_extension(self, slide: FakeSlide, temp_dir: Path):
        dz = DeepZoomGenerator(slide, tile_size=510, overlap=0)
        result = DeepZoomExporter(dz, format="jpeg", quality=90).export(temp_dir / "slide")
        assert (result.tiles_dir / "9" / "0_0.jpeg").exists()

    def test_progress_callback(self, slide: FakeSlide, temp_dir: Path):
        dz = DeepZoomGenerator(slide, tile_size=254, overlap=1)
        calls = []
        DeepZoomExporter(dz, format="png").export(
            temp_dir / "slide", lambda level, done, total: calls.append((level, done, total))
        )
        assert [done for _, done, _ in calls] == list(range(1, 12))
        assert all(total == 11 for _, _, total in calls)
        assert [level for level, _, _ in calls] == sorted(level for level, _, _ in calls)

    def test_slide_background_color(self, temp_dir: Path):
        slide = FakeSlide([(4, 4)], properties={"openslide.background-color": "00FF00"}, pixel=0)
        dz = DeepZoomGenerator(slide, tile_size=254, overlap=0)
        exporter = DeepZoomExporter(dz, format="png")
        assert exporter.bg_color == (0, 255, 0)
        result = exporter.export(temp_dir / "slide")
        assert (_load(result.tiles_dir / "2" / "0_0.png") == [0, 255, 0]).all()

    def test_read_failure_propagates(self, temp_dir: Path):
        class BrokenSlide(FakeSlide):
            def read_region(self, level, x, y, width, height):
                raise OSError("read failed")

        dz = DeepZoomGenerator(BrokenSlide([(300, 200)]))
        with pytest.raises(OSError, match="read failed"):
            DeepZoomExporter(dz, format="png").export(temp_dir / "slide")
        assert not (temp_dir / "slide.dzi").exists()


class TestExporterValidation:
    """Tests for exporter argument checks."""

    def test_unknown_format(self, single_level_slide: FakeSlide):
        with pytest.raises(ValueError, match="Unsupported tile format"):
            DeepZoomExporter(DeepZoomGenerator(single_level_slide), format="gif")

    def test_workers(self, single_level_slide: FakeSlide):
        with pytest.raises(ValueError, match="workers"):
            DeepZoomExporter(DeepZoomGenerator(single_level_slide), workers=0)

    def test_explicit_background(self, bounded_slide: FakeSlide):
        exporter = DeepZoomExporter(DeepZoomGenerator(bounded_slide), background="#102030")
        assert exporter.bg_color == (16, 32, 48)
