"""
barcodegen

Генерация векторного (SVG) символа линейного штрихкода через python-barcode.

Public API:
    - SvgBarcodeGenerator: рендер символа в SVG и на VectorSurface (class)
    - SymbolOptions: геометрия символа в CSS-пикселях (dataclass)
    - BarcodeGenError: исключение для ошибок генерации

Примеры:
    >>> from barcode_raster.barcodegen import SvgBarcodeGenerator
    >>> svg = SvgBarcodeGenerator(BarcodeType.CODE128, "ABC-12345").render_svg()

Зависимости:
    python-barcode
"""

from barcode_raster.barcodegen.svg_generator import (
    BarcodeGenError,
    SvgBarcodeGenerator,
    SvgWriterOptions,
    SymbolOptions,
)

__all__ = [
    "SvgBarcodeGenerator",
    "SvgWriterOptions",
    "SymbolOptions",
    "BarcodeGenError",
]
