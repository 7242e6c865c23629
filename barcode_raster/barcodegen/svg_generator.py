from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, TypedDict

import barcode as pybarcode
from barcode.errors import BarcodeNotFoundError
from barcode.writer import SVGWriter

from barcode_raster.export.dimensions import round_half_up
from barcode_raster.export.surface import VectorSurface
from barcode_raster.model.enums import BarcodeType

logger = logging.getLogger(__name__)

__all__ = [
    "SvgBarcodeGenerator",
    "BarcodeGenError",
    "SvgWriterOptions",
    "SymbolOptions",
    "PX_TO_MM",
    "PX_TO_PT",
]

# CSS px are defined at 96 per inch
PX_TO_MM = 25.4 / 96
PX_TO_PT = 72 / 96

EMPTY_DATA_PLACEHOLDER = " "


class SvgWriterOptions(TypedDict, total=False):
    """
    Типобезопасные опции python-barcode SVGWriter (единицы библиотеки).

    Полный список опций см. в документации python-barcode:
    https://python-barcode.readthedocs.io/
    """

    module_width: float  # Ширина одного модуля/бара (в мм)
    module_height: float  # Высота модулей (в мм)
    quiet_zone: float  # Пустая зона слева и справа (в мм)
    font_size: int  # Размер шрифта HRI (в пунктах)
    text_distance: float  # Расстояние между штрихкодом и текстом (в мм)
    background: str
    foreground: str
    write_text: bool


@dataclass(frozen=True)
class SymbolOptions:
    """
    Symbol geometry in CSS pixels, as the editing form expresses it.

    Defaults: 2px modules, 60px bars, 8px margin, 14px text.
    """

    include_text: bool = True
    module_width_px: float = 2.0
    bar_height_px: float = 60.0
    margin_px: float = 8.0
    font_size_px: float = 14.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> SymbolOptions:
        return cls(
            include_text=bool(config.get("include_text", True)),
            module_width_px=float(config.get("module_width_px", 2.0)),
            bar_height_px=float(config.get("bar_height_px", 60.0)),
            margin_px=float(config.get("margin_px", 8.0)),
            font_size_px=float(config.get("font_size_px", 14.0)),
        )

    def writer_options(self) -> SvgWriterOptions:
        return {
            "module_width": self.module_width_px * PX_TO_MM,
            "module_height": self.bar_height_px * PX_TO_MM,
            "quiet_zone": self.margin_px * PX_TO_MM,
            "font_size": max(1, round_half_up(self.font_size_px * PX_TO_PT)),
            "text_distance": 1,
            "background": "white",
            "foreground": "black",
            "write_text": self.include_text,
        }


class BarcodeGenError(Exception):
    """Symbol could not be generated for the given data/format."""


class SvgBarcodeGenerator:
    """
    Renders a linear barcode to SVG with python-barcode.

    Format rules (checksums, allowed characters) are python-barcode's;
    any library failure is reported as ``BarcodeGenError``.

    Args:
        barcode_type: Symbol format.
        data: Payload string; empty data is encoded as a single space.
        options: Extra keyword arguments for the python-barcode class.
    """

    _pybarcode_support: Dict[BarcodeType, str] = {
        BarcodeType.CODE128: "code128",
        BarcodeType.EAN13: "ean13",
        BarcodeType.UPC: "upc",
        BarcodeType.CODE39: "code39",
        BarcodeType.ITF: "itf",
    }

    # Code 39 carries no check digit unless asked for
    _constructor_defaults: Dict[BarcodeType, Dict[str, Any]] = {
        BarcodeType.CODE39: {"add_checksum": False},
    }

    def __init__(
        self,
        barcode_type: BarcodeType,
        data: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not isinstance(barcode_type, BarcodeType):
            raise TypeError(
                f"barcode_type must be BarcodeType enum, got {type(barcode_type)!r}"
            )
        self.barcode_type = barcode_type
        self.data = data
        self.options: Dict[str, Any] = dict(options) if options else {}

    @property
    def payload(self) -> str:
        return self.data or EMPTY_DATA_PLACEHOLDER

    def render_svg(self, symbol_options: Optional[SymbolOptions] = None) -> bytes:
        """
        Рендеринг символа в SVG.

        Args:
            symbol_options: Геометрия символа; по умолчанию ``SymbolOptions()``.

        Returns:
            SVG-документ в UTF-8.

        Raises:
            BarcodeGenError: Если python-barcode не смог построить символ.
        """
        symbol_options = symbol_options or SymbolOptions()
        logger.debug(
            "Rendering SVG for barcode [%s] data=%s",
            self.barcode_type.value,
            self.data,
        )

        barcode_name = self._pybarcode_support.get(self.barcode_type)
        if not barcode_name:
            raise BarcodeGenError(
                f"Barcode type {self.barcode_type} not supported by python-barcode"
            )

        ctor_options = {
            **self._constructor_defaults.get(self.barcode_type, {}),
            **self.options,
        }
        try:
            bclass = pybarcode.get_barcode_class(barcode_name)
            barcode_inst = bclass(self.payload, writer=SVGWriter(), **ctor_options)
            svg = barcode_inst.render(writer_options=dict(symbol_options.writer_options()))
        except BarcodeNotFoundError as e:
            raise BarcodeGenError(
                f"Barcode class not found for type: {self.barcode_type}"
            ) from e
        except Exception as e:
            raise BarcodeGenError(
                f"Barcode generation failed for {self.barcode_type.value}: {e}"
            ) from e

        if isinstance(svg, str):
            svg = svg.encode("utf-8")
        if not isinstance(svg, bytes) or not svg:
            raise BarcodeGenError("Barcode output is not an SVG document")
        return svg

    def render_to(
        self, surface: VectorSurface, symbol_options: Optional[SymbolOptions] = None
    ) -> None:
        """Render and replace the content of ``surface``; clears it on failure."""
        try:
            svg = self.render_svg(symbol_options)
            surface.populate(svg)
        except BarcodeGenError:
            surface.clear()
            raise
        except Exception as e:
            surface.clear()
            raise BarcodeGenError(f"Generated SVG could not be parsed: {e}") from e

    @classmethod
    def supported_types(cls) -> Set[BarcodeType]:
        return set(cls._pybarcode_support.keys())

    @classmethod
    def barcode_name_map(cls) -> Dict[BarcodeType, str]:
        return dict(cls._pybarcode_support)
