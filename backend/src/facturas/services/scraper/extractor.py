"""
Invoice field extraction from HTML pages.

This module reads a fixed list of invoice fields from a parsed page using:
1. Explicit CSS selectors (class names, ids, schema.org microdata)
2. Label proximity: a label element ("Total", "Fecha") and the value next to it
3. Positional and regex fallbacks over the page text

Each strategy carries its own confidence, so callers can tell a selector
hit from a heuristic guess. There is no cross-field validation; a field
no strategy finds is reported as missing.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from decimal import Decimal

from bs4 import BeautifulSoup, NavigableString, Tag

from facturas.domain.models import (
    FALLBACK_CONFIDENCE,
    LABEL_CONFIDENCE,
    SELECTOR_CONFIDENCE,
    ExtractedField,
    LineItem,
    Party,
    ScrapedInvoice,
)

from .normalize import FieldNormalizer, clean_text, parse_date
from .table import TableDetector

logger = logging.getLogger(__name__)


# =============================================================================
# Selectors and labels per field
# =============================================================================

NUMBER_SELECTORS = [
    "[itemprop=invoiceNumber]",
    ".invoice-number",
    ".numero-factura",
    "#invoice-number",
    "#numero-factura",
    "[data-field=numero]",
]
NUMBER_LABELS = [
    "nº factura", "numero de factura", "numero factura",
    "invoice number", "invoice no", "invoice #", "numero", "factura",
]

DATE_SELECTORS = [
    "time[datetime]",
    "[itemprop=dateCreated]",
    ".invoice-date",
    ".fecha",
    "#fecha",
]
DATE_LABELS = ["fecha de emision", "fecha factura", "fecha", "invoice date", "date"]

ISSUER_SELECTORS = [
    "[itemprop=seller]",
    ".issuer",
    ".emisor",
    ".seller",
    ".vendor",
    "#emisor",
]
ISSUER_LABELS = ["emisor", "proveedor", "vendedor", "from", "de"]

CUSTOMER_SELECTORS = [
    "[itemprop=customer]",
    ".client",
    ".cliente",
    ".customer",
    ".bill-to",
    "#cliente",
]
CUSTOMER_LABELS = ["facturar a", "bill to", "cliente", "customer", "para"]

SUBTOTAL_SELECTORS = [".subtotal", "#subtotal", "[data-field=subtotal]"]
SUBTOTAL_LABELS = ["subtotal", "sub-total", "base imponible"]

TAX_SELECTORS = [".tax", ".iva", ".impuestos", "#iva", "[data-field=iva]"]
TAX_LABELS = ["iva", "impuestos", "impuesto", "tax", "vat"]
# Prefix matches of a tax label that name a tax identifier, e.g. "Tax ID"
TAX_EXCLUDE = re.compile(r"\b(id|no|number|num|numero|nif|cif|reg|registration)\b")

TOTAL_SELECTORS = [
    "[itemprop=totalPaymentDue]",
    ".total",
    ".invoice-total",
    "#total",
    "[data-field=total]",
]
TOTAL_LABELS = ["total factura", "total a pagar", "importe total", "total due", "total"]
# Prefix matches of "total" that name another amount
TOTAL_EXCLUDE = re.compile(r"iva|tax|vat|impuesto|sub|base")

CURRENCY_SELECTORS = ["[itemprop=priceCurrency]", "[data-field=moneda]", ".currency", ".moneda"]

NAME_SELECTORS = ["[itemprop=name]", ".name", ".nombre", "h2", "h3", "h4", "strong", "b"]
ADDRESS_SELECTORS = ["address", "[itemprop=address]", ".address", ".direccion"]

TAX_ID_PATTERN = re.compile(
    r"\b(?:N\.?I\.?F\.?|C\.?I\.?F\.?|RFC|VAT(?:\s*(?:ID|No\.?))?|Tax\s*ID)\s*[:.#]?\s*([A-Z0-9][A-Z0-9\-]{5,})",
    re.IGNORECASE,
)

INVOICE_NUMBER_PATTERN = re.compile(
    r"(?:factura|invoice)\s*(?:n[º°o]\.?|n[uú]m(?:ero)?\.?|number|#)?\s*[:#]?\s*([A-Z0-9][A-Z0-9\-/]{2,})",
    re.IGNORECASE,
)

# Elements that can hold a label
LABEL_TAGS = ["th", "td", "dt", "h2", "h3", "h4", "h5", "strong", "b", "span", "label", "p", "div", "li"]
CELL_TAGS = {"th", "td", "dt", "dd"}
MAX_LABEL_LENGTH = 80
# Climbing out of these would read an unrelated block
VALUE_SEARCH_STOP = {"body", "html", "[document]", "table", "tbody", "thead", "tfoot", "tr", "dl", "ul", "ol"}


@dataclass
class LabelMatch:
    """A label element and the value found next to it."""
    label: str
    element: Tag
    value_text: str
    value_element: Tag | None
    exact: bool
    inline: bool = False  # value shares the label element ("Fecha: 15/01/2024")


class HtmlInvoiceExtractor:
    """
    Extracts invoice fields from an HTML page.

    Example:
        extractor = HtmlInvoiceExtractor()
        invoice = extractor.extract(html, "https://example.com/factura/1")
        invoice.total.value  # Decimal("1210.00")
    """

    def __init__(
        self,
        normalizer: FieldNormalizer | None = None,
        table_detector: TableDetector | None = None,
    ) -> None:
        self.normalizer = normalizer or FieldNormalizer()
        self.table_detector = table_detector or TableDetector(self.normalizer)

    def extract(self, html: str, url: str) -> ScrapedInvoice:
        """Parse a page and read every invoice field from it."""
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style", "noscript", "template"]):
            tag.decompose()

        table = self.table_detector.detect(soup)
        items = self.table_detector.extract_line_items(table) if table else []

        subtotal = self.extract_amount(soup, SUBTOTAL_SELECTORS, SUBTOTAL_LABELS)
        impuestos = self.extract_amount(soup, TAX_SELECTORS, TAX_LABELS, exclude=TAX_EXCLUDE)
        total = self.extract_amount(soup, TOTAL_SELECTORS, TOTAL_LABELS, exclude=TOTAL_EXCLUDE)
        if not total.found:
            total = self._total_from_items(items, subtotal, impuestos)

        invoice = ScrapedInvoice(
            url=url,
            titulo=self.extract_title(soup),
            numero=self.extract_invoice_number(soup),
            fecha=self.extract_date(soup),
            emisor=self.extract_party(soup, ISSUER_SELECTORS, ISSUER_LABELS, positional="header"),
            cliente=self.extract_party(soup, CUSTOMER_SELECTORS, CUSTOMER_LABELS),
            subtotal=subtotal,
            impuestos=impuestos,
            total=total,
            moneda=self.extract_currency(soup, [total, subtotal, impuestos], table.element if table else None),
            items=items,
        )

        logger.info(
            f"Extracted invoice from {url}: numero={invoice.numero.value}, "
            f"items={len(items)}, total={invoice.total.value}"
        )
        if invoice.review_fields:
            logger.debug(f"Fields needing review: {invoice.review_fields}")
        return invoice

    # -------------------------------------------------------------------------
    # Field extractors
    # -------------------------------------------------------------------------

    def extract_title(self, soup: BeautifulSoup) -> ExtractedField[str]:
        heading = soup.find("h1")
        if heading is not None:
            field = self.normalizer.normalize_string(heading.get_text(" "), SELECTOR_CONFIDENCE, "h1")
            if field.found:
                return field

        if soup.title is not None:
            return self.normalizer.normalize_string(soup.title.get_text(" "), LABEL_CONFIDENCE, "title")

        return ExtractedField.missing()

    def extract_invoice_number(self, soup: BeautifulSoup) -> ExtractedField[str]:
        """Extract the invoice number by selector, label, then regex over the page text."""
        hit = _select_first(soup, NUMBER_SELECTORS)
        if hit:
            element, selector = hit
            field = self.normalizer.normalize_string(_element_value(element), SELECTOR_CONFIDENCE, selector)
            if field.found:
                return field

        match = find_label(soup, NUMBER_LABELS)
        if match and _has_digit(match.value_text):
            return self.normalizer.normalize_string(match.value_text, LABEL_CONFIDENCE, match.label)

        text = clean_text(soup.get_text(" "))
        for found in INVOICE_NUMBER_PATTERN.finditer(text):
            candidate = found.group(1)
            if _has_digit(candidate):
                return self.normalizer.normalize_string(candidate, FALLBACK_CONFIDENCE, "regex")

        return ExtractedField.missing()

    def extract_date(self, soup: BeautifulSoup) -> ExtractedField:
        """Extract the issue date."""
        for selector in DATE_SELECTORS:
            for element in soup.select(selector):
                field = self.normalizer.normalize_date(_element_value(element), SELECTOR_CONFIDENCE, selector)
                if field.found:
                    return field

        match = find_label(soup, DATE_LABELS)
        if match:
            field = self.normalizer.normalize_date(match.value_text, LABEL_CONFIDENCE, match.label)
            if field.found:
                return field

        parsed = parse_date(soup.get_text(" "))
        if parsed is not None:
            return ExtractedField(value=parsed, confidence=FALLBACK_CONFIDENCE, source="text")

        return ExtractedField.missing()

    def extract_party(
        self,
        soup: BeautifulSoup,
        selectors: list[str],
        labels: list[str],
        positional: str | None = None,
    ) -> ExtractedField[Party]:
        """
        Extract an issuer or customer block.

        Args:
            selectors: Selectors for the block container
            labels: Labels that introduce the block ("Emisor", "Cliente")
            positional: Element name to fall back on (e.g. the page header)
        """
        hit = _select_first(soup, selectors)
        if hit:
            element, selector = hit
            party = self._party_from_container(element, labels)
            if not party.is_empty:
                return ExtractedField(value=party, confidence=SELECTOR_CONFIDENCE, source=selector)

        match = find_label(soup, labels)
        if match:
            container = _party_container(match)
            party = self._party_from_container(container, labels) if container else Party()
            if party.is_empty:
                party = Party(nombre=clean_text(match.value_text) or None)
            if not party.is_empty:
                return ExtractedField(value=party, confidence=LABEL_CONFIDENCE, source=match.label)

        if positional:
            element = soup.find(positional)
            if element is not None:
                party = self._party_from_container(element, labels)
                if not party.is_empty:
                    return ExtractedField(value=party, confidence=FALLBACK_CONFIDENCE, source=positional)

        return ExtractedField.missing()

    def extract_amount(
        self,
        soup: BeautifulSoup,
        selectors: list[str],
        labels: list[str],
        exclude: re.Pattern | None = None,
    ) -> ExtractedField[Decimal]:
        """
        Extract a totals-block amount.

        Totals sit at the bottom of the page, so the last selector match
        and the last label match win.
        """
        for selector in selectors:
            for element in reversed(soup.select(selector)):
                field = self.normalizer.normalize_amount(_element_value(element), SELECTOR_CONFIDENCE, selector)
                if field.found:
                    return field

        match = find_label(soup, labels, prefer_last=True, exclude=exclude)
        if match:
            field = self.normalizer.normalize_amount(match.value_text, LABEL_CONFIDENCE, match.label)
            if field.found:
                return field

        return ExtractedField.missing()

    def extract_currency(
        self,
        soup: BeautifulSoup,
        amounts: list[ExtractedField],
        table: Tag | None = None,
    ) -> ExtractedField[str]:
        """Detect the currency from microdata, the amounts' raw text, then the items table."""
        hit = _select_first(soup, CURRENCY_SELECTORS)
        if hit:
            element, selector = hit
            value = _element_value(element)
            code = self.normalizer.detect_currency(value) or clean_text(value).upper() or None
            if code and len(code) == 3 and code.isalpha():
                return ExtractedField(value=code, confidence=SELECTOR_CONFIDENCE, raw_text=value, source=selector)

        for amount in amounts:
            code = self.normalizer.detect_currency(amount.raw_text)
            if code:
                return ExtractedField(value=code, confidence=LABEL_CONFIDENCE, raw_text=amount.raw_text, source=amount.source)

        if table is not None:
            code = self.normalizer.detect_currency(table.get_text(" "))
            if code:
                return ExtractedField(value=code, confidence=FALLBACK_CONFIDENCE, source="table")

        return ExtractedField.missing()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _party_from_container(self, container: Tag, labels: list[str]) -> Party:
        label_set = {normalize_label(label) for label in labels}

        nombre = None
        for selector in NAME_SELECTORS:
            for element in container.select(selector):
                text = clean_text(element.get_text(" "))
                if (
                    text
                    and not text.endswith(":")
                    and normalize_label(text) not in label_set
                    and not TAX_ID_PATTERN.search(text)
                ):
                    nombre = text
                    break
            if nombre:
                break

        text = container.get_text("\n")
        if nombre is None:
            for line in text.split("\n"):
                line = clean_text(line)
                if not line or normalize_label(line) in label_set or TAX_ID_PATTERN.search(line):
                    continue
                # "Emisor: ACME S.L." on a single line
                if ":" in line and normalize_label(line.split(":", 1)[0]) in label_set:
                    line = clean_text(line.split(":", 1)[1])
                    if not line:
                        continue
                nombre = line
                break

        nif = None
        tax_id = TAX_ID_PATTERN.search(clean_text(text))
        if tax_id and _has_digit(tax_id.group(1)):
            nif = tax_id.group(1)

        direccion = None
        address = _select_first(container, ADDRESS_SELECTORS)
        if address:
            direccion = clean_text(address[0].get_text(" ")) or None

        return Party(nombre=nombre, nif=nif, direccion=direccion)

    def _total_from_items(
        self,
        items: list[LineItem],
        subtotal: ExtractedField[Decimal],
        impuestos: ExtractedField[Decimal],
    ) -> ExtractedField[Decimal]:
        base = subtotal.value
        if base is None:
            amounts = [item.effective_amount for item in items]
            if not amounts or any(a is None for a in amounts):
                return ExtractedField.missing()
            base = sum(amounts, Decimal("0"))

        total = base + (impuestos.value or Decimal("0"))
        logger.warning(f"Total not found on page, computed {total} from lines and tax")
        return ExtractedField(value=total, confidence=FALLBACK_CONFIDENCE, source="computed")


# =============================================================================
# Label matching
# =============================================================================

def normalize_label(text: str) -> str:
    """Lowercase, strip accents and trailing punctuation for label comparison."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return clean_text(stripped).lower().rstrip(" :.-")


def find_label(
    soup: Tag,
    labels: list[str],
    prefer_last: bool = False,
    exclude: re.Pattern | None = None,
) -> LabelMatch | None:
    """
    Find the value next to the best-matching label element.

    Exact label matches win over prefix matches; then earlier labels in
    ``labels`` win; then document order decides (first, or last when
    ``prefer_last`` is set).
    """
    normalized = [normalize_label(label) for label in labels]
    candidates: list[tuple[int, int, int, LabelMatch]] = []

    for position, element in enumerate(soup.find_all(LABEL_TAGS)):
        if element.find(True) is not None and element.name not in CELL_TAGS:
            continue
        text = normalize_label(element.get_text(" "))
        if not text or len(text) > MAX_LABEL_LENGTH:
            continue

        for priority, label in enumerate(normalized):
            exact = text == label
            if not exact:
                if not text.startswith(label) or text[len(label)].isalnum():
                    continue
                if exclude is not None and exclude.search(text[len(label):]):
                    continue
            match = _label_value(element, label, exact)
            if match is None:
                continue
            candidates.append((0 if exact else 1, priority, position, match))
            break

    if not candidates:
        return None

    best_kind = min(c[0] for c in candidates)
    best_priority = min(c[1] for c in candidates if c[0] == best_kind)
    pool = [c for c in candidates if c[0] == best_kind and c[1] == best_priority]
    chosen = max(pool, key=lambda c: c[2]) if prefer_last else min(pool, key=lambda c: c[2])
    return chosen[3]


def _label_value(element: Tag, label: str, exact: bool) -> LabelMatch | None:
    """Read the value that belongs to a label element."""
    # "Fecha: 15/01/2024" inside a single element
    raw = clean_text(element.get_text(" "))
    if not exact and ":" in raw:
        remainder = clean_text(raw.split(":", 1)[1])
        if remainder:
            return LabelMatch(label, element, remainder, None, exact, inline=True)

    current = element
    for _ in range(3):
        value = _next_value(current)
        if value is not None:
            text, value_element = value
            return LabelMatch(label, element, text, value_element, exact)
        parent = current.parent
        if parent is None or parent.name in VALUE_SEARCH_STOP:
            break
        current = parent

    return None


def _next_value(element: Tag) -> tuple[str, Tag | None] | None:
    """Text of the first non-empty sibling after an element."""
    if element.name == "dt":
        dd = element.find_next_sibling("dd")
        if dd is not None:
            text = clean_text(dd.get_text(" "))
            return (text, dd) if text else None

    for sibling in element.next_siblings:
        if isinstance(sibling, NavigableString):
            text = clean_text(str(sibling)).lstrip(": ")
            if text:
                return text, None
        elif isinstance(sibling, Tag):
            if sibling.name == "br":
                continue
            text = clean_text(sibling.get_text(" "))
            if text:
                return text, sibling
    return None


def _party_container(match: LabelMatch) -> Tag | None:
    """Block holding a party's details, given the label that introduced it."""
    if match.inline:
        return None
    if match.element.name in CELL_TAGS:
        return match.value_element
    parent = match.element.parent
    if parent is None or parent.name in ("body", "html", "[document]"):
        return match.value_element
    return parent


# =============================================================================
# Small utilities
# =============================================================================

def _select_first(root: Tag, selectors: list[str]) -> tuple[Tag, str] | None:
    """First element with a value for the first selector that matches."""
    for selector in selectors:
        for element in root.select(selector):
            if _element_value(element):
                return element, selector
    return None


def _element_value(element: Tag) -> str:
    """Machine-readable attribute if present, otherwise the visible text."""
    for attribute in ("datetime", "content", "value"):
        value = element.get(attribute)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return clean_text(element.get_text(" "))


def _has_digit(text: str | None) -> bool:
    return bool(text) and any(ch.isdigit() for ch in text)
