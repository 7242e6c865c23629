import pytest

from barcode_raster.model.enums import DEFAULT_BARCODE_TYPE, BarcodeType


def test_format_tags() -> None:
    assert [t.value for t in BarcodeType] == ["CODE128", "EAN13", "UPC", "CODE39", "ITF"]


def test_default_is_code128() -> None:
    assert DEFAULT_BARCODE_TYPE is BarcodeType.CODE128


@pytest.mark.parametrize(
    "tag,expected",
    [
        ("CODE128", BarcodeType.CODE128),
        ("code128", BarcodeType.CODE128),
        (" Ean13 ", BarcodeType.EAN13),
        ("EAN-13", BarcodeType.EAN13),
        ("upc", BarcodeType.UPC),
        ("itf", BarcodeType.ITF),
    ],
)
def test_from_tag(tag: str, expected: BarcodeType) -> None:
    assert BarcodeType.from_tag(tag) is expected


def test_from_tag_unknown() -> None:
    with pytest.raises(ValueError, match="Unknown barcode format"):
        BarcodeType.from_tag("QR")


def test_localized_name() -> None:
    assert BarcodeType.ITF.localized_name("en") == "Interleaved 2 of 5"
    assert BarcodeType.EAN13.localized_name("ru") == "EAN-13"


def test_str_enum_compares_to_tag() -> None:
    assert BarcodeType.CODE39 == "CODE39"
