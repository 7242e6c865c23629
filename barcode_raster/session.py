"""
RU: Сессия редактора этикетки: состояние формы, перерисовка символа, экспорт
и сохранение PNG.

EN: Label session controller. Holds what the editing form holds (value,
format, DPI, text toggle, physical size), keeps the vector surface in
sync with it and drives the export orchestrator.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Final, Optional

from barcode_raster.barcodegen.svg_generator import (
    BarcodeGenError,
    SvgBarcodeGenerator,
    SymbolOptions,
)
from barcode_raster.export.compositor import (
    DEFAULT_BACKGROUND,
    DEFAULT_PADDING_RATIO,
    MAX_CANVAS_SIDE,
    RasterCompositor,
)
from barcode_raster.export.orchestrator import (
    DownloadArtifact,
    ExportOrchestrator,
    ExportRequest,
    ExportResult,
)
from barcode_raster.export.resources import ResourceStore
from barcode_raster.export.surface import VectorSurface
from barcode_raster.model.enums import DEFAULT_BARCODE_TYPE, BarcodeType

logger = logging.getLogger(__name__)

__all__ = ["BarcodeSession", "RENDER_ERROR_MESSAGE", "safe_filename"]

RENDER_ERROR_MESSAGE: Final[str] = "Unable to render barcode with the current settings."


def safe_filename(name: str) -> str:
    """Replace path separators so a suggested filename stays one path segment."""
    cleaned = name.replace("/", "_").replace("\\", "_")
    if cleaned in ("", ".", ".."):
        return "barcode.png"
    return cleaned


class BarcodeSession:
    """
    One editing session for a single label.

    Example:
        >>> session = BarcodeSession(value="ABC-12345")
        >>> session.render()
        True
        >>> result = asyncio.run(session.export())
        >>> session.download(Path("out"))
        PosixPath('out/ABC-12345_5x3cm.png')
    """

    def __init__(
        self,
        value: str = "ABC-12345",
        barcode_type: BarcodeType = DEFAULT_BARCODE_TYPE,
        dpi: int = 300,
        include_text: bool = True,
        width_cm: float = 5.0,
        height_cm: float = 3.0,
        symbol_options: Optional[SymbolOptions] = None,
        orchestrator: Optional[ExportOrchestrator] = None,
    ) -> None:
        self.value = value
        self.barcode_type = barcode_type
        self.dpi = dpi
        self.width_cm = width_cm
        self.height_cm = height_cm
        self.symbol_options = replace(
            symbol_options or SymbolOptions(), include_text=include_text
        )
        self.surface = VectorSurface()
        self.orchestrator = orchestrator or ExportOrchestrator()
        self.error = ""

    @classmethod
    def from_config(cls, config: Dict[str, Any], value: str = "ABC-12345") -> BarcodeSession:
        """Build a session from ``load_config()`` output."""
        store = ResourceStore()
        compositor = RasterCompositor(
            store,
            background=str(config.get("background", DEFAULT_BACKGROUND)),
            padding_ratio=float(config.get("padding_ratio", DEFAULT_PADDING_RATIO)),
            max_canvas_side=int(config.get("max_canvas_side", MAX_CANVAS_SIDE)),
        )
        return cls(
            value=value,
            barcode_type=BarcodeType.from_tag(str(config.get("barcode_format", "CODE128"))),
            dpi=int(config.get("dpi", 300)),
            include_text=bool(config.get("include_text", True)),
            width_cm=float(config.get("width_cm", 5.0)),
            height_cm=float(config.get("height_cm", 3.0)),
            symbol_options=SymbolOptions.from_config(config),
            orchestrator=ExportOrchestrator(store=store, compositor=compositor),
        )

    @property
    def include_text(self) -> bool:
        return self.symbol_options.include_text

    @include_text.setter
    def include_text(self, value: bool) -> None:
        self.symbol_options = replace(self.symbol_options, include_text=value)

    @property
    def current_download(self) -> Optional[DownloadArtifact]:
        return self.orchestrator.current_download

    def update(self, **fields: Any) -> bool:
        """
        Change form fields and re-render the symbol.

        Accepts ``value``, ``barcode_type``, ``include_text``, ``dpi``,
        ``width_cm`` and ``height_cm``. DPI and size only affect the next
        export, so they do not trigger a re-render on their own.
        """
        rerender = False
        for name, val in fields.items():
            if name not in {"value", "barcode_type", "include_text", "dpi", "width_cm", "height_cm"}:
                raise AttributeError(f"Unknown session field: {name}")
            setattr(self, name, val)
            rerender = rerender or name in {"value", "barcode_type", "include_text"}
        if rerender:
            return self.render()
        return not self.error

    def render(self) -> bool:
        """Regenerate the vector symbol. Returns False (and sets ``error``) on failure."""
        self.error = ""
        generator = SvgBarcodeGenerator(self.barcode_type, self.value)
        try:
            generator.render_to(self.surface, self.symbol_options)
        except BarcodeGenError as e:
            logger.warning("Render failed for %s %r: %s", self.barcode_type.value, self.value, e)
            self.error = RENDER_ERROR_MESSAGE
            return False
        return True

    async def export(self) -> ExportResult:
        """Rasterize the current symbol at the session's DPI and size."""
        self.error = ""
        request = ExportRequest(
            data=self.value,
            dpi=self.dpi,
            width_cm=self.width_cm,
            height_cm=self.height_cm,
        )
        result = await self.orchestrator.export(self.surface, request)
        if result.error is not None:
            self.error = result.error.user_message
        return result

    def download(self, directory: Path) -> Optional[Path]:
        """
        Write the current PNG into ``directory`` under its suggested name.

        Returns None when there is nothing to download.
        """
        artifact = self.orchestrator.current_download
        if artifact is None:
            return None
        payload = self.orchestrator.download_bytes()
        if payload is None:
            return None
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / safe_filename(artifact.filename)
        target.write_bytes(payload)
        logger.info("Saved %s (%d bytes)", target, len(payload))
        return target

    def close(self) -> None:
        self.orchestrator.close()
        self.surface.clear()
