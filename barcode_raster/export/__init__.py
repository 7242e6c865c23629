"""
export

Конвейер растеризации: размер холста -> снимок SVG -> композиция -> PNG.

Public API:
    - compute_canvas_px: физический размер + DPI -> размер холста
    - serialize_snapshot: векторная поверхность -> отзываемый SVG-ресурс
    - RasterCompositor: декодирование, масштабирование, центрирование
    - encode_png: холст -> PNG
    - ExportOrchestrator: последовательность шагов и слот загрузки
"""

from barcode_raster.export.compositor import RasterCompositor, compute_layout
from barcode_raster.export.dimensions import CanvasSize, compute_canvas_px
from barcode_raster.export.encoder import encode_png
from barcode_raster.export.orchestrator import (
    DownloadArtifact,
    ExportOrchestrator,
    ExportRequest,
    ExportResult,
    ExportState,
)
from barcode_raster.export.resources import ResourceStore
from barcode_raster.export.snapshot import serialize_snapshot
from barcode_raster.export.surface import VectorSurface

__all__ = [
    "CanvasSize",
    "compute_canvas_px",
    "serialize_snapshot",
    "RasterCompositor",
    "compute_layout",
    "encode_png",
    "ExportOrchestrator",
    "ExportRequest",
    "ExportResult",
    "ExportState",
    "DownloadArtifact",
    "ResourceStore",
    "VectorSurface",
]
