from decimal import Decimal

import pytest

from qbuilder.services.catalog.csv_import import CatalogCSVError, parse_catalog_csv


def test_parses_english_headers():
    content = (
        "name,unit,defaultPrice,description\n"
        "Wall tiling,sqm,120,Ceramic tiles\n"
        "Paint job,room,\"1,250.50\",\n"
    ).encode()

    result = parse_catalog_csv(content)

    assert result.skipped == []
    assert [(r.row, r.name, r.unit, r.default_price) for r in result.rows] == [
        (2, "Wall tiling", "sqm", Decimal("120.00")),
        (3, "Paint job", "room", Decimal("1250.50")),
    ]
    assert result.rows[0].description == "Ceramic tiles"
    assert result.rows[1].description is None


def test_parses_hebrew_headers_with_bom_and_shekel_sign():
    content = "\ufeffשם,יחידה,מחיר\nריצוף,מטר,₪95\n".encode("utf-8")

    result = parse_catalog_csv(content)

    assert len(result.rows) == 1
    assert result.rows[0].name == "ריצוף"
    assert result.rows[0].default_price == Decimal("95.00")


def test_price_is_optional():
    result = parse_catalog_csv(b"name,unit\nSite visit,visit\n")
    assert result.rows[0].default_price is None


def test_skips_invalid_rows_with_reasons():
    content = (
        "name,unit,price\n"
        "Wall tiling,sqm,120\n"
        ",sqm,10\n"
        "X,sqm,10\n"
        "Demolition,day,abc\n"
        "Grouting,sqm,-5\n"
        "wall TILING,sqm,130\n"
    ).encode()

    result = parse_catalog_csv(content)

    assert [r.name for r in result.rows] == ["Wall tiling"]
    assert result.skipped == [
        {"row": 3, "reason": "Missing name or unit"},
        {"row": 4, "reason": "Name or unit has invalid length"},
        {"row": 5, "reason": "Invalid price"},
        {"row": 6, "reason": "Invalid price"},
        {"row": 7, "reason": "Duplicate name in file: wall TILING"},
    ]


def test_missing_required_column():
    with pytest.raises(CatalogCSVError, match="unit"):
        parse_catalog_csv(b"name,price\nWall tiling,120\n")


def test_empty_file():
    with pytest.raises(CatalogCSVError):
        parse_catalog_csv(b"")


def test_not_utf8():
    with pytest.raises(CatalogCSVError):
        parse_catalog_csv("name,unit\nריצוף,sqm\n".encode("cp1255"))


def test_skips_prices_too_large_for_storage():
    content = (
        "name,unit,price\n"
        "Concrete,m3,123456789012.50\n"
        "Crane hire,day,99999999.995\n"
        "Steel frame,ton,99999999.99\n"
    ).encode()

    result = parse_catalog_csv(content)

    assert [(r.name, r.default_price) for r in result.rows] == [("Steel frame", Decimal("99999999.99"))]
    assert result.skipped == [
        {"row": 2, "reason": "Invalid price"},
        {"row": 3, "reason": "Invalid price"},
    ]
