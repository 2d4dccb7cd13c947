# qbuilder/services/catalog/csv_import.py
"""
Parsing of catalog CSV uploads.

Headers may be English or Hebrew; see ``HEADER_ALIASES``. Parsing never
touches the database; duplicate detection against existing items happens
in the catalog service.
"""
import csv
import io
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from qbuilder.utils.decimal_utils import to_decimal

HEADER_ALIASES = {
    "name": ("name", "Name", "שם"),
    "unit": ("unit", "Unit", "יחידה"),
    "default_price": ("defaultPrice", "DefaultPrice", "מחיר", "price", "Price"),
    "description": ("description", "Description", "תיאור"),
}

NAME_MAX = 200
UNIT_MAX = 20
MAX_PRICE = Decimal("1e8")


@dataclass
class ParsedRow:
    row: int
    name: str
    unit: str
    default_price: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass
class ParseResult:
    rows: list[ParsedRow] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)


class CatalogCSVError(ValueError):
    pass


def _pick(record: dict, aliases: tuple[str, ...]) -> str:
    for alias in aliases:
        value = record.get(alias)
        if value is not None and value.strip():
            return value.strip()
    return ""


def _parse_price(raw: str) -> Optional[Decimal]:
    raw = raw.replace(",", "").replace("₪", "").strip()
    if not raw:
        return None
    price = Decimal(raw)
    if not price.is_finite() or price < 0:
        raise InvalidOperation(raw)
    price = to_decimal(price)
    # Numeric(10, 2) holds at most 8 integer digits
    if price >= MAX_PRICE:
        raise InvalidOperation(raw)
    return price


def parse_catalog_csv(content: bytes) -> ParseResult:
    """
    Parse ``content`` into catalog rows.

    Row numbers count the header as row 1, matching what a spreadsheet shows.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise CatalogCSVError("File is not valid UTF-8")

    reader = csv.DictReader(io.StringIO(text))
    headers = {h.strip() for h in (reader.fieldnames or []) if h}

    if not headers:
        raise CatalogCSVError("CSV file has no header row")
    for column in ("name", "unit"):
        if not headers.intersection(HEADER_ALIASES[column]):
            raise CatalogCSVError(f"Missing required column: {column}")

    result = ParseResult()
    seen: set[str] = set()

    for index, record in enumerate(reader, start=2):
        record = {(k or "").strip(): (v or "") for k, v in record.items() if isinstance(v, str)}

        name = _pick(record, HEADER_ALIASES["name"])
        unit = _pick(record, HEADER_ALIASES["unit"])

        if not name or not unit:
            result.skipped.append({"row": index, "reason": "Missing name or unit"})
            continue
        if len(name) < 2 or len(name) > NAME_MAX or len(unit) > UNIT_MAX:
            result.skipped.append({"row": index, "reason": "Name or unit has invalid length"})
            continue

        try:
            price = _parse_price(_pick(record, HEADER_ALIASES["default_price"]))
        except (InvalidOperation, ValueError):
            result.skipped.append({"row": index, "reason": "Invalid price"})
            continue

        key = name.casefold()
        if key in seen:
            result.skipped.append({"row": index, "reason": f"Duplicate name in file: {name}"})
            continue
        seen.add(key)

        result.rows.append(
            ParsedRow(
                row=index,
                name=name,
                unit=unit,
                default_price=price,
                description=_pick(record, HEADER_ALIASES["description"]) or None,
            )
        )

    return result
