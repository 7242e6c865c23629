import asyncio
import subprocess
import sys
from io import BytesIO
from pathlib import Path
from typing import Iterator, List
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from barcode_raster.export.compositor import (
    RasterCompositor,
    SymbolImage,
    compute_layout,
    decode_svg,
)
from barcode_raster.export.dimensions import CanvasSize, round_half_up
from barcode_raster.export.errors import (
    CanvasLimitError,
    DecodeError,
    DegenerateGeometryError,
)
from barcode_raster.export.resources import Blob, ResourceHandle, ResourceStore

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class SolidSymbol:
    """Stand-in for a decoded symbol: rasterizes to opaque black."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.rasterized: List[tuple] = []

    def rasterize(self, width: int, height: int) -> Image.Image:
        self.rasterized.append((width, height))
        return Image.new("RGBA", (width, height), (0, 0, 0, 255))


class TestComputeLayout:
    def test_wide_symbol_on_default_label(self) -> None:
        layout = compute_layout(CanvasSize(591, 354), 250, 50)
        assert layout.pad == 14
        assert layout.available == (563, 326)
        assert layout.scale == pytest.approx(563 / 250)
        assert layout.final_width == 563
        assert layout.final_height == 113
        assert layout.dx == 14
        assert layout.dy == 121

    @pytest.mark.parametrize(
        "canvas,image",
        [
            (CanvasSize(591, 354), (250, 50)),
            (CanvasSize(591, 354), (120, 118)),
            (CanvasSize(2362, 1417), (301, 97)),
            (CanvasSize(142, 85), (400, 90)),
            (CanvasSize(300, 900), (77, 31)),
        ],
    )
    def test_draw_rect_is_centered(self, canvas: CanvasSize, image: tuple) -> None:
        layout = compute_layout(canvas, *image)
        assert abs((layout.dx + layout.final_width / 2) - canvas.width / 2) <= 1
        assert abs((layout.dy + layout.final_height / 2) - canvas.height / 2) <= 1

    @pytest.mark.parametrize(
        "canvas", [CanvasSize(591, 354), CanvasSize(2362, 1417), CanvasSize(142, 85)]
    )
    def test_padding_rule(self, canvas: CanvasSize) -> None:
        layout = compute_layout(canvas, 100, 40)
        assert layout.pad == round_half_up(min(canvas) * 0.04)
        assert layout.available[0] < canvas.width
        assert layout.available[1] < canvas.height

    def test_draw_rect_stays_inside_quiet_zone(self) -> None:
        canvas = CanvasSize(591, 354)
        layout = compute_layout(canvas, 250, 50)
        assert layout.dx >= layout.pad
        assert layout.dy >= layout.pad
        assert layout.dx + layout.final_width <= canvas.width - layout.pad
        assert layout.dy + layout.final_height <= canvas.height - layout.pad

    def test_aspect_ratio_preserved(self) -> None:
        layout = compute_layout(CanvasSize(591, 354), 300, 100)
        assert layout.final_width / layout.final_height == pytest.approx(3.0, abs=0.02)

    def test_small_image_is_scaled_up(self) -> None:
        layout = compute_layout(CanvasSize(591, 354), 10, 4)
        assert layout.scale > 1
        assert layout.final_width == 563

    def test_large_image_is_scaled_down(self) -> None:
        layout = compute_layout(CanvasSize(591, 354), 5000, 1000)
        assert layout.scale < 1
        assert layout.final_width == 563

    def test_padding_never_zero(self) -> None:
        layout = compute_layout(CanvasSize(10, 10), 5, 5)
        assert layout.pad == 1

    @pytest.mark.parametrize("image", [(0, 50), (50, 0), (0, 0)])
    def test_zero_extent_image(self, image: tuple) -> None:
        with pytest.raises(DegenerateGeometryError):
            compute_layout(CanvasSize(591, 354), *image)

    def test_no_room_inside_padding(self) -> None:
        with pytest.raises(DegenerateGeometryError):
            compute_layout(CanvasSize(2, 2), 10, 10)

    def test_scaled_side_collapses(self) -> None:
        with pytest.raises(DegenerateGeometryError):
            compute_layout(CanvasSize(591, 354), 1_000_000, 1)


class TestRasterCompositor:
    @pytest.fixture
    def store(self) -> ResourceStore:
        return ResourceStore()

    @pytest.fixture
    def handle(self, store: ResourceStore) -> ResourceHandle:
        return store.create(Blob(b"<svg/>", "image/svg+xml;charset=utf-8"))

    def test_composite_draws_centered_symbol(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        symbol = SolidSymbol(200, 50)
        compositor = RasterCompositor(store, decoder=lambda data: symbol)

        canvas = asyncio.run(compositor.composite(handle, CanvasSize(591, 354)))

        assert canvas.size == (591, 354)
        assert canvas.mode == "RGB"
        # final 563x141 at (14, 107)
        assert symbol.rasterized == [(563, 141)]
        assert canvas.getpixel((0, 0)) == WHITE
        assert canvas.getpixel((590, 353)) == WHITE
        assert canvas.getpixel((295, 177)) == BLACK
        assert canvas.getpixel((14, 107)) == BLACK
        assert canvas.getpixel((13, 107)) == WHITE
        assert canvas.getpixel((14, 106)) == WHITE
        assert canvas.getpixel((14 + 563, 107)) == WHITE
        assert canvas.getpixel((14 + 562, 107 + 140)) == BLACK

    def test_transparent_symbol_leaves_white_background(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        class ClearSymbol(SolidSymbol):
            def rasterize(self, width: int, height: int) -> Image.Image:
                return Image.new("RGBA", (width, height), (0, 0, 0, 0))

        compositor = RasterCompositor(store, decoder=lambda data: ClearSymbol(100, 50))
        canvas = asyncio.run(compositor.composite(handle, CanvasSize(200, 100)))
        assert canvas.getextrema() == ((255, 255), (255, 255), (255, 255))

    def test_custom_background(self, store: ResourceStore, handle: ResourceHandle) -> None:
        compositor = RasterCompositor(
            store, background="#ff0000", decoder=lambda data: SolidSymbol(10, 10)
        )
        canvas = asyncio.run(compositor.composite(handle, CanvasSize(100, 100)))
        assert canvas.getpixel((0, 0)) == (255, 0, 0)

    def test_decoder_receives_snapshot_bytes(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        received: List[bytes] = []

        def decoder(data: bytes) -> SolidSymbol:
            received.append(data)
            return SolidSymbol(10, 10)

        asyncio.run(RasterCompositor(store, decoder=decoder).composite(handle, CanvasSize(50, 50)))
        assert received == [b"<svg/>"]

    def test_decode_failure(self, store: ResourceStore, handle: ResourceHandle) -> None:
        def decoder(data: bytes) -> SolidSymbol:
            raise ValueError("malformed")

        compositor = RasterCompositor(store, decoder=decoder)
        with pytest.raises(DecodeError):
            asyncio.run(compositor.composite(handle, CanvasSize(591, 354)))

    def test_revoked_handle(self, store: ResourceStore, handle: ResourceHandle) -> None:
        store.revoke(handle)
        compositor = RasterCompositor(store, decoder=lambda data: SolidSymbol(1, 1))
        with pytest.raises(DecodeError):
            asyncio.run(compositor.composite(handle, CanvasSize(591, 354)))

    def test_degenerate_decoded_image(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        compositor = RasterCompositor(store, decoder=lambda data: SolidSymbol(0, 40))
        with pytest.raises(DegenerateGeometryError):
            asyncio.run(compositor.composite(handle, CanvasSize(591, 354)))

    def test_draw_failure_is_decode_error(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        class BrokenSymbol(SolidSymbol):
            def rasterize(self, width: int, height: int) -> Image.Image:
                raise RuntimeError("cairo error")

        compositor = RasterCompositor(store, decoder=lambda data: BrokenSymbol(10, 10))
        with pytest.raises(DecodeError):
            asyncio.run(compositor.composite(handle, CanvasSize(100, 100)))

    def test_canvas_limit_checked_before_decode(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        calls: List[bytes] = []

        def decoder(data: bytes) -> SolidSymbol:
            calls.append(data)
            return SolidSymbol(10, 10)

        compositor = RasterCompositor(store, max_canvas_side=5000, decoder=decoder)
        with pytest.raises(CanvasLimitError):
            asyncio.run(compositor.composite(handle, CanvasSize(5001, 100)))
        assert calls == []

    def test_canvas_at_limit_is_accepted(self, store: ResourceStore) -> None:
        compositor = RasterCompositor(store, max_canvas_side=600)
        compositor.check_canvas(CanvasSize(600, 600))

    def test_non_positive_canvas(self, store: ResourceStore) -> None:
        with pytest.raises(CanvasLimitError):
            RasterCompositor(store).check_canvas(CanvasSize(0, 10))

    def test_allocation_failure_is_canvas_limit(
        self, store: ResourceStore, handle: ResourceHandle
    ) -> None:
        sprite = Image.new("RGBA", (10, 10), (0, 0, 0, 255))

        class PrebuiltSymbol(SolidSymbol):
            def rasterize(self, width: int, height: int) -> Image.Image:
                return sprite

        compositor = RasterCompositor(store, decoder=lambda data: PrebuiltSymbol(10, 10))
        with patch("barcode_raster.export.compositor.Image.new", side_effect=MemoryError):
            with pytest.raises(CanvasLimitError):
                asyncio.run(compositor.composite(handle, CanvasSize(100, 100)))


class TestSymbolImage:
    @pytest.fixture
    def fake_cairosvg(self) -> Iterator[MagicMock]:
        module = MagicMock()
        with patch.dict(sys.modules, {"cairosvg": module}):
            yield module

    @staticmethod
    def png_of(width: int, height: int) -> bytes:
        buf = BytesIO()
        Image.new("RGBA", (width, height), (0, 0, 0, 255)).save(buf, format="PNG")
        return buf.getvalue()

    def test_rasterize_requests_exact_size(self, fake_cairosvg: MagicMock) -> None:
        fake_cairosvg.svg2png.return_value = self.png_of(40, 20)

        img = SymbolImage(svg=b"<svg/>", width=4, height=2).rasterize(40, 20)

        fake_cairosvg.svg2png.assert_called_once_with(
            bytestring=b"<svg/>", output_width=40, output_height=20
        )
        assert img.size == (40, 20)
        assert img.mode == "RGBA"

    def test_rasterize_fixes_off_by_one_output(self, fake_cairosvg: MagicMock) -> None:
        fake_cairosvg.svg2png.return_value = self.png_of(41, 20)

        img = SymbolImage(svg=b"<svg/>", width=4, height=2).rasterize(40, 20)
        assert img.size == (40, 20)

    def test_decode_svg_reads_intrinsic_size(self, fake_cairosvg: MagicMock) -> None:
        fake_cairosvg.svg2png.return_value = self.png_of(120, 40)

        symbol = decode_svg(b"<svg/>")

        fake_cairosvg.svg2png.assert_called_once_with(bytestring=b"<svg/>")
        assert (symbol.width, symbol.height) == (120, 40)
        assert symbol.svg == b"<svg/>"


class TestMissingRasterizer:
    def test_decode_without_cairosvg_is_decode_error(self) -> None:
        store = ResourceStore()
        handle = store.create(Blob(b"<svg/>", "image/svg+xml;charset=utf-8"))
        with patch.dict(sys.modules, {"cairosvg": None}):
            with pytest.raises(DecodeError) as exc:
                asyncio.run(RasterCompositor(store).decode(handle))
        assert "cairosvg" in exc.value.detail

    def test_package_imports_without_libcairo(self) -> None:
        # a missing native library surfaces as OSError on "import cairosvg"
        code = (
            "import sys\n"
            "class Broken:\n"
            "    def find_spec(self, name, path=None, target=None):\n"
            "        if name == 'cairosvg':\n"
            "            raise OSError('no library called cairo-2')\n"
            "sys.meta_path.insert(0, Broken())\n"
            "import barcode_raster\n"
            "from barcode_raster import check_dependencies, compute_canvas_px\n"
            "assert compute_canvas_px(5, 3, 300) == (591, 354)\n"
            "assert check_dependencies()['cairosvg'] is False\n"
        )
        completed = subprocess.run(
            [sys.executable, "-c", code],
            capture_output=True,
            text=True,
            cwd=Path(__file__).resolve().parents[3],
        )
        assert completed.returncode == 0, completed.stderr
