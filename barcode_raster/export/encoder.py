"""
RU: Кодирование холста в PNG (без потерь) с метаданными DPI.
EN: Bitmap encoder.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Any, Dict, Final, Optional

from PIL import Image

from barcode_raster.export.errors import EncodeError

logger = logging.getLogger(__name__)

__all__ = [
    "PNG_MIME_TYPE",
    "encode_png_sync",
    "encode_png",
]

PNG_MIME_TYPE: Final[str] = "image/png"


def encode_png_sync(canvas: Image.Image, dpi: Optional[int] = None) -> bytes:
    """
    Encode ``canvas`` as PNG.

    The pHYs chunk carries ``dpi`` so that print dialogs reproduce the
    physical size without manual scaling.
    """
    buf = BytesIO()
    save_kwargs: Dict[str, Any] = {"format": "PNG", "optimize": False}
    if dpi:
        save_kwargs["dpi"] = (dpi, dpi)
    canvas.save(buf, **save_kwargs)
    return buf.getvalue()


async def encode_png(canvas: Image.Image, dpi: Optional[int] = None) -> bytes:
    """
    Encode ``canvas`` in the default executor.

    Raises:
        EncodeError: Pillow failed or produced no bytes.
    """
    loop = asyncio.get_running_loop()
    try:
        data = await loop.run_in_executor(None, encode_png_sync, canvas, dpi)
    except Exception as e:
        logger.error("PNG encoding failed: %r", e)
        raise EncodeError(f"PNG encoding failed: {e}") from e
    if not data:
        raise EncodeError("PNG encoder returned no data")
    logger.debug("Output rendered as PNG (%d bytes)", len(data))
    return data
