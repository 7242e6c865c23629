"""
RU: Композиция растра: декодирование снимка SVG, масштабирование с сохранением
пропорций внутри тихой зоны, центрирование на непрозрачном белом холсте.

EN: Raster compositor.

Layout rules (all rounding is half-up, see ``dimensions.round_half_up``):

- ``pad = round(min(w, h) * padding_ratio)``, at least 1 px;
- the symbol is scaled uniformly to fit ``(w - 2*pad, h - 2*pad)``, and is
  scaled up when it is smaller than that box;
- the scaled symbol is centered against the full canvas.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Callable, Final, Tuple

from PIL import Image
from PIL.Image import Resampling

from barcode_raster.export.dimensions import CanvasSize, round_half_up
from barcode_raster.export.errors import (
    CanvasLimitError,
    DecodeError,
    DegenerateGeometryError,
)
from barcode_raster.export.resources import (
    ResourceHandle,
    ResourceRevokedError,
    ResourceStore,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_PADDING_RATIO",
    "DEFAULT_BACKGROUND",
    "MAX_CANVAS_SIDE",
    "SymbolImage",
    "DrawLayout",
    "decode_svg",
    "compute_layout",
    "RasterCompositor",
]

DEFAULT_PADDING_RATIO: Final[float] = 0.04
DEFAULT_BACKGROUND: Final[str] = "#ffffff"
# 10000 x 10000 RGB is ~300MB; beyond this the export is refused
MAX_CANVAS_SIDE: Final[int] = 10000


def _load_cairosvg() -> Any:
    # cairocffi raises OSError when libcairo itself is missing
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        raise ImportError(f"SVG rasterization requires cairosvg and libcairo: {e}") from e
    return cairosvg


@dataclass(frozen=True)
class SymbolImage:
    """Decoded vector symbol: intrinsic pixel size plus its SVG source."""

    svg: bytes
    width: int
    height: int

    def rasterize(self, width: int, height: int) -> Image.Image:
        """Render the vector source at exactly ``width`` x ``height`` (RGBA)."""
        png = _load_cairosvg().svg2png(
            bytestring=self.svg, output_width=width, output_height=height
        )
        with Image.open(BytesIO(png)) as raw:
            img = raw.convert("RGBA")
        if img.size != (width, height):
            img = img.resize((width, height), resample=Resampling.LANCZOS)
        return img


@dataclass(frozen=True)
class DrawLayout:
    canvas: CanvasSize
    pad: int
    available: Tuple[int, int]
    scale: float
    final_width: int
    final_height: int
    dx: int
    dy: int


def decode_svg(data: bytes) -> SymbolImage:
    """Decode an SVG document at its intrinsic size (96 px per inch)."""
    png = _load_cairosvg().svg2png(bytestring=data)
    if not png:
        raise ValueError("SVG decoder returned no data")
    with Image.open(BytesIO(png)) as img:
        img.load()
        width, height = img.size
    return SymbolImage(svg=data, width=width, height=height)


def compute_layout(
    canvas: CanvasSize,
    image_width: int,
    image_height: int,
    padding_ratio: float = DEFAULT_PADDING_RATIO,
) -> DrawLayout:
    """
    Place an ``image_width`` x ``image_height`` image on ``canvas``.

    Raises:
        DegenerateGeometryError: zero-sized image, no room left inside the
            padding, or a scaled side that rounds to zero.
    """
    if image_width <= 0 or image_height <= 0:
        raise DegenerateGeometryError(
            f"decoded image has zero extent ({image_width}x{image_height})"
        )

    w, h = canvas
    pad = round_half_up(min(w, h) * padding_ratio)
    if padding_ratio > 0:
        pad = max(pad, 1)
    avail_w = w - 2 * pad
    avail_h = h - 2 * pad
    if avail_w <= 0 or avail_h <= 0:
        raise DegenerateGeometryError(
            f"canvas {w}x{h} leaves no drawing area inside {pad}px padding"
        )

    scale = min(avail_w / image_width, avail_h / image_height)
    final_w = round_half_up(image_width * scale)
    final_h = round_half_up(image_height * scale)
    if final_w < 1 or final_h < 1:
        raise DegenerateGeometryError(
            f"scaled image collapses to {final_w}x{final_h}"
        )

    return DrawLayout(
        canvas=canvas,
        pad=pad,
        available=(avail_w, avail_h),
        scale=scale,
        final_width=final_w,
        final_height=final_h,
        dx=round_half_up((w - final_w) / 2),
        dy=round_half_up((h - final_h) / 2),
    )


class RasterCompositor:
    """
    Turns a snapshot handle into a fully opaque canvas of an exact size.

    Args:
        store: Store the snapshot handle belongs to.
        background: Canvas fill color.
        padding_ratio: Quiet-zone size relative to the shorter canvas side.
        max_canvas_side: Largest accepted canvas side in pixels.
        decoder: SVG bytes -> ``SymbolImage``; runs in the default executor.
    """

    def __init__(
        self,
        store: ResourceStore,
        background: str = DEFAULT_BACKGROUND,
        padding_ratio: float = DEFAULT_PADDING_RATIO,
        max_canvas_side: int = MAX_CANVAS_SIDE,
        decoder: Callable[[bytes], SymbolImage] = decode_svg,
    ) -> None:
        self.store = store
        self.background = background
        self.padding_ratio = padding_ratio
        self.max_canvas_side = max_canvas_side
        self._decoder = decoder

    def check_canvas(self, canvas: CanvasSize) -> None:
        w, h = canvas
        if w <= 0 or h <= 0:
            raise CanvasLimitError(f"canvas size must be positive, got {w}x{h}")
        if w > self.max_canvas_side or h > self.max_canvas_side:
            raise CanvasLimitError(
                f"canvas {w}x{h} exceeds maximum {self.max_canvas_side}px per side"
            )

    async def decode(self, handle: ResourceHandle) -> SymbolImage:
        """Resolve ``handle`` and decode it off the event loop."""
        try:
            blob = self.store.resolve(handle)
        except ResourceRevokedError as e:
            raise DecodeError(f"snapshot handle {handle} is not live") from e

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._decoder, blob.data)
        except Exception as e:
            logger.error("Symbol decode failed: %r", e)
            raise DecodeError(f"unable to decode symbol image: {e}") from e

    async def composite(self, handle: ResourceHandle, canvas: CanvasSize) -> Image.Image:
        """
        Decode the snapshot and draw it centered on a new canvas.

        Raises:
            CanvasLimitError: canvas outside (0, max_canvas_side].
            DecodeError: snapshot missing or undecodable.
            DegenerateGeometryError: see ``compute_layout``.
        """
        self.check_canvas(canvas)
        symbol = await self.decode(handle)
        layout = compute_layout(canvas, symbol.width, symbol.height, self.padding_ratio)
        logger.debug(
            "Layout: canvas=%sx%s pad=%d scale=%.4f final=%dx%d at (%d, %d)",
            canvas.width,
            canvas.height,
            layout.pad,
            layout.scale,
            layout.final_width,
            layout.final_height,
            layout.dx,
            layout.dy,
        )

        try:
            sprite = symbol.rasterize(layout.final_width, layout.final_height)
        except Exception as e:
            logger.error("Symbol rasterization at %dx%d failed: %r",
                         layout.final_width, layout.final_height, e)
            raise DecodeError(f"unable to draw symbol image: {e}") from e

        try:
            result = Image.new("RGB", (canvas.width, canvas.height), self.background)
        except MemoryError as e:
            raise CanvasLimitError(
                f"not enough memory for a {canvas.width}x{canvas.height} canvas"
            ) from e
        result.paste(sprite, (layout.dx, layout.dy), sprite)
        return result
