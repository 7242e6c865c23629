"""
RU: Снимок векторной поверхности: сериализация SVG в самодостаточный blob.
EN: Vector snapshot serializer.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from barcode_raster.export.errors import SerializationError, SymbolUnavailableError
from barcode_raster.export.resources import Blob, ResourceHandle, ResourceStore
from barcode_raster.export.surface import VectorSurface

logger = logging.getLogger(__name__)

__all__ = [
    "SVG_MIME_TYPE",
    "serialize_svg",
    "serialize_snapshot",
]

SVG_MIME_TYPE: Final[str] = "image/svg+xml;charset=utf-8"
SVG_NAMESPACE: Final[str] = "http://www.w3.org/2000/svg"


def serialize_svg(surface: Optional[VectorSurface]) -> bytes:
    """
    Serialize the surface's ``<svg>`` element (without prolog or doctype).

    Raises:
        SymbolUnavailableError: surface missing, empty, or without ``<svg>``.
        SerializationError: the DOM could not be written out.
    """
    if surface is None or surface.is_empty:
        raise SymbolUnavailableError("vector surface is empty")

    svg_el = surface.svg_element()
    if svg_el is None:
        raise SymbolUnavailableError(
            "surface has no <svg> element", user_message="SVG not found."
        )

    try:
        # standalone document must carry its namespace to be decodable
        snapshot = svg_el.cloneNode(True)
        if not snapshot.getAttribute("xmlns"):
            snapshot.setAttribute("xmlns", SVG_NAMESPACE)
        text = snapshot.toxml()
        data = text.encode("utf-8")
    except Exception as e:
        logger.error("SVG serialization failed: %r", e)
        raise SerializationError(f"SVG serialization failed: {e}") from e

    if not data:
        raise SerializationError("SVG serialization produced no data")
    return data


def serialize_snapshot(
    surface: Optional[VectorSurface], store: ResourceStore
) -> ResourceHandle:
    """Serialize ``surface`` and register it in ``store`` as an SVG blob."""
    data = serialize_svg(surface)
    try:
        handle = store.create(Blob(data=data, mime_type=SVG_MIME_TYPE))
    except Exception as e:
        logger.error("Could not register SVG snapshot: %r", e)
        raise SerializationError(f"Could not register SVG snapshot: {e}") from e
    logger.debug("Snapshot %s: %d bytes of SVG", handle, len(data))
    return handle
