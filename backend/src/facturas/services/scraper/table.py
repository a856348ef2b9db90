"""
Line-item table detection for invoice pages.

Invoices typically list their lines in an HTML table. This module finds
that table and maps its columns so we can reliably read Description,
Quantity, Unit Price and Amount.

Design Decisions:
- Header detection identifies column names for semantic mapping
- Keyword matching covers Spanish and English headers
- Positional fallback (first column = description, last = amount) when
  only some headers are recognised
- Totals rows inside the table body are skipped, they are read separately
"""

import logging
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from facturas.domain.models import LineItem

from .normalize import FieldNormalizer, clean_text

logger = logging.getLogger(__name__)


# Semantic column -> header keywords, checked in this order per header cell
COLUMN_KEYWORDS: dict[str, list[str]] = {
    "cantidad": ["cantidad", "cant", "uds", "unidades", "qty", "quantity", "units", "horas", "hours"],
    "precio_unitario": ["unitario", "p. unit", "precio", "unit", "price", "tarifa", "rate"],
    "importe": ["importe", "amount", "monto", "total", "subtotal"],
    "descripcion": [
        "descripción", "descripcion", "concepto", "description", "detalle",
        "producto", "artículo", "articulo", "servicio", "item",
    ],
}

NUMERIC_COLUMNS = ("cantidad", "precio_unitario", "importe")

# A row whose whole description is a totals label, e.g. "IVA (21%):"
TOTALS_ROW_PATTERN = re.compile(
    r"^(sub\s*-?\s*total|total(\s+(factura|a\s+pagar|due|iva|general))?|grand\s+total|importe\s+total"
    r"|amount\s+due|iva|i\.v\.a\.?|impuestos?|tax|vat|base\s+imponible)"
    r"\s*(\d+(?:[.,]\d+)?\s*%|\([^)]*\))?\s*:?$",
    re.IGNORECASE,
)

# Minimum header cells for the positional fallback
MIN_POSITIONAL_COLUMNS = 3


@dataclass
class DetectedTable:
    """A line-item table detected in the page."""
    element: Tag
    headers: list[str]
    column_names: dict[str, int] = field(default_factory=dict)  # name -> column index
    rows: list[list[str]] = field(default_factory=list)  # data rows, cell texts

    def get_column(self, name: str) -> int | None:
        """Column index for a semantic name, if mapped."""
        return self.column_names.get(name)

    def cell(self, row: list[str], name: str) -> str | None:
        """Text of the named column in a data row."""
        index = self.get_column(name)
        if index is None or index >= len(row):
            return None
        return row[index] or None


class TableDetector:
    """
    Finds the line-item table in a parsed page.

    Example:
        detector = TableDetector()
        table = detector.detect(soup)
        items = detector.extract_line_items(table) if table else []
    """

    def __init__(self, normalizer: FieldNormalizer | None = None) -> None:
        self.normalizer = normalizer or FieldNormalizer()

    def detect(self, soup: BeautifulSoup) -> DetectedTable | None:
        """Return the first table that looks like a list of invoice lines."""
        for element in soup.find_all("table"):
            table = self._analyze(element)
            if table is not None:
                logger.debug(
                    f"Line-item table found: columns={table.column_names}, rows={len(table.rows)}"
                )
                return table

        logger.debug("No line-item table found")
        return None

    def extract_line_items(self, table: DetectedTable) -> list[LineItem]:
        """Convert data rows into LineItem values."""
        items: list[LineItem] = []
        for row in table.rows:
            descripcion = clean_text(table.cell(row, "descripcion"))
            if not descripcion:
                continue

            items.append(
                LineItem(
                    descripcion=descripcion,
                    cantidad=self._number(table.cell(row, "cantidad"), quantity=True),
                    precio_unitario=self._number(table.cell(row, "precio_unitario")),
                    importe=self._number(table.cell(row, "importe")),
                )
            )
        return items

    def _number(self, text: str | None, quantity: bool = False):
        if not text:
            return None
        if quantity:
            return self.normalizer.normalize_quantity(text).value
        return self.normalizer.normalize_amount(text).value

    def _analyze(self, element: Tag) -> DetectedTable | None:
        rows = _own_rows(element)
        if not rows:
            return None

        header_row = _find_header_row(element, rows)
        headers = [clean_text(c.get_text(" ")) for c in _cells(header_row)]
        column_names = map_columns(headers)

        has_description = "descripcion" in column_names
        has_numeric = any(name in column_names for name in NUMERIC_COLUMNS)

        if not (has_description and has_numeric):
            if len(headers) < MIN_POSITIONAL_COLUMNS or not column_names:
                return None
            used = set(column_names.values())
            if "descripcion" not in column_names and 0 not in used:
                column_names["descripcion"] = 0
                used.add(0)
            last = len(headers) - 1
            if "importe" not in column_names and last not in used:
                column_names["importe"] = last
            if "descripcion" not in column_names:
                return None

        data_rows: list[list[str]] = []
        for row in rows:
            if row is header_row or row.parent.name == "tfoot":
                continue
            cells = [clean_text(c.get_text(" ")) for c in _cells(row)]
            if len(cells) < 2:
                continue
            index = column_names["descripcion"]
            descripcion = cells[index] if index < len(cells) else ""
            if not descripcion or TOTALS_ROW_PATTERN.match(descripcion):
                continue
            data_rows.append(cells)

        if not data_rows:
            return None

        return DetectedTable(
            element=element,
            headers=headers,
            column_names=column_names,
            rows=data_rows,
        )


def map_columns(headers: list[str]) -> dict[str, int]:
    """
    Map header texts to semantic column names.

    Each header is given the first semantic name whose keywords it
    contains; each semantic name is assigned at most once.
    """
    mapping: dict[str, int] = {}
    for index, header in enumerate(headers):
        lowered = header.lower()
        if not lowered:
            continue
        for name, keywords in COLUMN_KEYWORDS.items():
            if name in mapping:
                continue
            if any(keyword in lowered for keyword in keywords):
                mapping[name] = index
                break
    return mapping


def _own_rows(table: Tag) -> list[Tag]:
    """Rows of this table, excluding rows of nested tables."""
    return [row for row in table.find_all("tr") if row.find_parent("table") is table]


def _cells(row: Tag) -> list[Tag]:
    return row.find_all(["th", "td"], recursive=False)


def _find_header_row(table: Tag, rows: list[Tag]) -> Tag:
    thead = table.find("thead")
    if thead is not None and thead.find_parent("table") is table:
        row = thead.find("tr")
        if row is not None:
            return row

    for row in rows:
        cells = _cells(row)
        if len(cells) >= 2 and all(c.name == "th" for c in cells):
            return row

    return rows[0]
