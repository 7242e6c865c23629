"""
model/enums.py

(Кратко RU: Перечисления форматов штрихкода, поддерживаемых экспортом.)

EN: Linear barcode formats accepted by the symbol encoder. Values are the
format tags used by the form and the configuration file; the mapping to
python-barcode class names lives in the generator.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final, Literal

_logger: Final[logging.Logger] = logging.getLogger(__name__)


class BarcodeType(str, Enum):
    CODE128 = "CODE128"
    EAN13 = "EAN13"
    UPC = "UPC"  # UPC-A
    CODE39 = "CODE39"
    ITF = "ITF"  # Interleaved 2 of 5

    @classmethod
    def from_tag(cls, tag: str) -> BarcodeType:
        """Resolve a format tag case-insensitively ("code128", "Ean13", ...)."""
        normalized = tag.strip().upper().replace("-", "")
        try:
            return cls(normalized)
        except ValueError:
            _logger.warning("Unknown barcode format tag: %r", tag)
            raise ValueError(
                f"Unknown barcode format {tag!r}; expected one of "
                f"{', '.join(t.value for t in cls)}"
            ) from None

    def localized_name(self, lang: Literal["ru", "en"] = "ru") -> str:
        names_ru = {
            BarcodeType.CODE128: "Code 128",
            BarcodeType.EAN13: "EAN-13",
            BarcodeType.UPC: "UPC-A",
            BarcodeType.CODE39: "Code 39",
            BarcodeType.ITF: "Чередующийся 2 из 5",
        }
        names_en = {
            BarcodeType.CODE128: "Code 128",
            BarcodeType.EAN13: "EAN-13",
            BarcodeType.UPC: "UPC-A",
            BarcodeType.CODE39: "Code 39",
            BarcodeType.ITF: "Interleaved 2 of 5",
        }
        return (
            names_ru.get(self, self.value)
            if lang == "ru"
            else names_en.get(self, self.value)
        )


DEFAULT_BARCODE_TYPE: Final[BarcodeType] = BarcodeType.CODE128

__all__ = [
    "BarcodeType",
    "DEFAULT_BARCODE_TYPE",
]
