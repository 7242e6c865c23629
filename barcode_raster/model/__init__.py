"""Domain model: barcode formats supported by the export pipeline."""

from barcode_raster.model.enums import BarcodeType

__all__ = ["BarcodeType"]
