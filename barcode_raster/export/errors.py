"""
RU: Иерархия ошибок экспорта. Каждая ошибка несёт одно сообщение для пользователя.
EN: Export failure taxonomy. Every error is caught at the orchestrator
boundary and surfaced through ``ExportResult.error``.
"""

from __future__ import annotations

from typing import ClassVar, Optional

__all__ = [
    "ExportError",
    "SymbolUnavailableError",
    "SerializationError",
    "DecodeError",
    "DegenerateGeometryError",
    "EncodeError",
    "CanvasLimitError",
    "InvalidResolutionError",
    "ExportBusyError",
]


class ExportError(Exception):
    """Base class for every failure of one export attempt."""

    default_message: ClassVar[str] = (
        "Export failed. Try reducing DPI or changing the barcode format."
    )

    def __init__(self, detail: str = "", user_message: Optional[str] = None) -> None:
        super().__init__(detail or user_message or self.default_message)
        self.detail = detail
        self.user_message = user_message or self.default_message


class SymbolUnavailableError(ExportError):
    """No vector surface (or no <svg> root) to export."""

    default_message = "No barcode to export."


class SerializationError(ExportError):
    """Vector surface could not be serialized into a snapshot blob."""


class DecodeError(ExportError):
    """Snapshot could not be decoded into a raster image."""

    default_message = "Unable to decode symbol image."


class DegenerateGeometryError(ExportError):
    """Decoded image (or its scaled size) has zero extent."""

    default_message = "Barcode image has no visible area."


class EncodeError(ExportError):
    """Canvas could not be encoded to PNG."""


class CanvasLimitError(ExportError):
    """Requested canvas exceeds the configured pixel limit."""

    default_message = "Canvas too large. Reduce DPI or the label size."


class InvalidResolutionError(ExportError):
    """Resolution or physical size is not a positive number."""

    default_message = "DPI must be a positive number."


class ExportBusyError(ExportError):
    """Another export is already running on the same orchestrator."""

    default_message = "An export is already in progress."
