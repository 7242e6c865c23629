"""
RU: Оркестратор экспорта: снимок -> композиция -> PNG, управление временными
ресурсами и единственным слотом загрузки.

EN: Export orchestrator.

State machine::

    IDLE -> SERIALIZING -> RASTERIZING -> ENCODING -> READY
                 \\              \\             \\---> FAILED

Every ``ExportError`` (and any unexpected exception) is converted into a
failed ``ExportResult``; ``export()`` never raises for pipeline failures.
A failed attempt revokes every handle it created and leaves the previous
download available.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from PIL import Image

from barcode_raster.export.compositor import RasterCompositor
from barcode_raster.export.dimensions import CanvasSize, compute_canvas_px
from barcode_raster.export.encoder import PNG_MIME_TYPE, encode_png
from barcode_raster.export.errors import (
    ExportBusyError,
    ExportError,
    InvalidResolutionError,
)
from barcode_raster.export.resources import Blob, ResourceHandle, ResourceStore
from barcode_raster.export.snapshot import serialize_snapshot
from barcode_raster.export.surface import VectorSurface

logger = logging.getLogger(__name__)

__all__ = [
    "ExportState",
    "ExportRequest",
    "DownloadArtifact",
    "ExportResult",
    "ExportOrchestrator",
    "suggested_filename",
]

Encoder = Callable[[Image.Image, Optional[int]], Awaitable[bytes]]


class ExportState(str, Enum):
    IDLE = "idle"
    SERIALIZING = "serializing"
    RASTERIZING = "rasterizing"
    ENCODING = "encoding"
    READY = "ready"
    FAILED = "failed"


def _format_cm(value: float) -> str:
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def suggested_filename(data: str, width_cm: float, height_cm: float) -> str:
    """``{data}_{width}x{height}cm.png``; empty data becomes ``barcode``."""
    return f"{data or 'barcode'}_{_format_cm(width_cm)}x{_format_cm(height_cm)}cm.png"


@dataclass(frozen=True)
class ExportRequest:
    data: str
    dpi: int = 300
    width_cm: float = 5.0
    height_cm: float = 3.0

    @property
    def filename(self) -> str:
        return suggested_filename(self.data, self.width_cm, self.height_cm)


@dataclass(frozen=True)
class DownloadArtifact:
    handle: ResourceHandle
    filename: str
    size: CanvasSize
    dpi: int
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class ExportResult:
    download: Optional[DownloadArtifact] = None
    error: Optional[ExportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.download is not None

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error is not None else None


class ExportOrchestrator:
    """
    Runs export attempts and owns the current download handle.

    Only one attempt runs at a time: a call made while another is in flight
    fails fast with ``ExportBusyError`` and changes nothing.

    Args:
        store: Resource store for snapshots and PNG payloads.
        compositor: Raster compositor bound to the same store.
        encoder: Coroutine encoding a canvas (and DPI) to PNG bytes.
    """

    def __init__(
        self,
        store: Optional[ResourceStore] = None,
        compositor: Optional[RasterCompositor] = None,
        encoder: Encoder = encode_png,
    ) -> None:
        self.store = store if store is not None else ResourceStore()
        self.compositor = (
            compositor if compositor is not None else RasterCompositor(self.store)
        )
        self._encoder = encoder
        self._state = ExportState.IDLE
        self._last_error: Optional[ExportError] = None
        self._download: Optional[DownloadArtifact] = None
        self._in_flight = False

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def last_error(self) -> Optional[ExportError]:
        return self._last_error

    @property
    def current_download(self) -> Optional[DownloadArtifact]:
        return self._download

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def download_bytes(self) -> Optional[bytes]:
        """PNG payload behind the current download handle, if any."""
        if self._download is None:
            return None
        return self.store.resolve(self._download.handle).data

    def _replace_download(self, artifact: Optional[DownloadArtifact]) -> None:
        previous = self._download
        self._download = artifact
        if previous is not None:
            self.store.revoke(previous.handle)

    def close(self) -> None:
        """Revoke the current download and return to IDLE."""
        self._replace_download(None)
        self._state = ExportState.IDLE
        self._last_error = None

    async def export(
        self, surface: Optional[VectorSurface], request: ExportRequest
    ) -> ExportResult:
        if self._in_flight:
            logger.warning("Export rejected: another export is in progress")
            return ExportResult(error=ExportBusyError())

        self._in_flight = True
        try:
            return await self._run(surface, request)
        finally:
            self._in_flight = False

    async def _run(
        self, surface: Optional[VectorSurface], request: ExportRequest
    ) -> ExportResult:
        created: List[ResourceHandle] = []
        logger.info(
            "Export start: data=%r dpi=%s size=%sx%scm",
            request.data,
            request.dpi,
            request.width_cm,
            request.height_cm,
        )
        try:
            if request.dpi <= 0:
                raise InvalidResolutionError(f"dpi must be positive, got {request.dpi}")
            if request.width_cm <= 0 or request.height_cm <= 0:
                raise InvalidResolutionError(
                    f"physical size must be positive, got "
                    f"{request.width_cm}x{request.height_cm}cm",
                    user_message="Label size must be positive.",
                )
            canvas = compute_canvas_px(request.width_cm, request.height_cm, request.dpi)

            self._state = ExportState.SERIALIZING
            snapshot = serialize_snapshot(surface, self.store)
            created.append(snapshot)

            self._state = ExportState.RASTERIZING
            try:
                raster = await self.compositor.composite(snapshot, canvas)
            finally:
                self.store.revoke(snapshot)

            self._state = ExportState.ENCODING
            try:
                png = await self._encoder(raster, request.dpi)
            finally:
                raster.close()

            handle = self.store.create(Blob(data=png, mime_type=PNG_MIME_TYPE))
            created.append(handle)
        except ExportError as e:
            return self._fail(e, created)
        except Exception as e:
            logger.exception("Unexpected export failure")
            return self._fail(ExportError(f"unexpected failure: {e!r}"), created)

        artifact = DownloadArtifact(
            handle=handle,
            filename=request.filename,
            size=canvas,
            dpi=request.dpi,
            data=png,
        )
        self._replace_download(artifact)
        self._state = ExportState.READY
        self._last_error = None
        logger.info(
            "Export ready: %s %dx%d px (%d bytes)",
            artifact.filename,
            canvas.width,
            canvas.height,
            len(png),
        )
        return ExportResult(download=artifact)

    def _fail(self, error: ExportError, created: List[ResourceHandle]) -> ExportResult:
        for handle in created:
            self.store.revoke(handle)
        self._state = ExportState.FAILED
        self._last_error = error
        logger.warning(
            "Export failed (%s): %s", type(error).__name__, error.detail or error
        )
        return ExportResult(error=error)
