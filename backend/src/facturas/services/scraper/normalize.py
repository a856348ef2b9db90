"""
Field normalization for scraped invoice text.

This module cleans and normalizes extracted text into typed values:
- Monetary amounts: Strip currency symbols, resolve separators, parse decimals
- Dates: Parse ISO, European, English and Spanish long-form dates
- Quantities: Parse numeric values with unit handling

Design Decisions:
- European (1.234,56) and US (1,234.56) separators are told apart by position
- Percentages are ignored when looking for an amount in a text fragment
- Unparsable values come back as None with zero confidence, never a guess
"""

import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from facturas.domain.models import ExtractedField

logger = logging.getLogger(__name__)


# Currency markers -> ISO code, longest first so "US$" wins over "$"
CURRENCY_MARKERS = [
    ("US$", "USD"),
    ("EUR", "EUR"),
    ("USD", "USD"),
    ("GBP", "GBP"),
    ("MXN", "MXN"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("$", "USD"),
]

# A number that is not part of a percentage
NUMBER_PATTERN = re.compile(r"(?<![\d.,])-?\d(?:[\d.,]*\d)?(?![\d.,]*\s*%)")

# Date format patterns to try (in order of preference)
DATE_FORMATS = [
    "%Y-%m-%d",      # ISO format: 2024-01-15
    "%d/%m/%Y",      # European: 15/01/2024
    "%d-%m-%Y",      # European with dashes
    "%d.%m.%Y",      # European with dots
    "%d/%m/%y",      # European short year
    "%m/%d/%Y",      # US: 01/15/2024
    "%d %b %Y",      # 15 Jan 2024
    "%d %B %Y",      # 15 January 2024
    "%b %d, %Y",     # Jan 15, 2024
    "%B %d, %Y",     # January 15, 2024
    "%B %d %Y",      # January 15 2024
]

# Substrings that look like a date, tried in order
DATE_FRAGMENTS = [
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}"),
    re.compile(r"\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}"),
    re.compile(r"\d{1,2}\s+[A-Za-z]{3,9}\.?\s+\d{4}"),
    re.compile(r"[A-Za-z]{3,9}\.?\s+\d{1,2},?\s+\d{4}"),
]

SPANISH_MONTHS = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}

SPANISH_DATE_PATTERN = re.compile(
    r"(\d{1,2})\s+de\s+([a-záéíóú]+)\s+(?:de|del)\s+(\d{4})",
    re.IGNORECASE,
)


class FieldNormalizer:
    """
    Normalizes raw page text into typed domain values.

    Handles multi-format parsing for:
    - Monetary amounts (Decimal)
    - Dates (date)
    - Quantities (Decimal)
    - Strings (with cleaning)

    Example:
        normalizer = FieldNormalizer()
        result = normalizer.normalize_amount("1.234,56 €")
        # result.value = Decimal("1234.56")
    """

    def normalize_amount(
        self,
        text: str,
        confidence: float = 1.0,
        source: str | None = None,
    ) -> ExtractedField[Decimal]:
        """
        Parse a monetary amount from text.

        Handles:
        - Currency symbols and codes (€, $, EUR, etc.)
        - Thousands separators (1,234.56 or 1.234,56)
        - Surrounding labels ("Total: 1.234,56 €"); the last number wins

        Args:
            text: Raw text
            confidence: Confidence of the strategy that found the text
            source: Selector or label the text came from

        Returns:
            ExtractedField with Decimal value, or None if nothing parses
        """
        value = parse_decimal(text)
        if value is None:
            logger.debug(f"No amount found in '{text}'")
            return ExtractedField(value=None, confidence=0.0, raw_text=text, source=source)

        return ExtractedField(
            value=value,
            confidence=confidence,
            raw_text=text,
            source=source,
        )

    def normalize_quantity(
        self,
        text: str,
        confidence: float = 1.0,
        source: str | None = None,
    ) -> ExtractedField[Decimal]:
        """
        Parse a quantity from text.

        Handles integer or decimal quantities with optional units
        ("3 uds", "2,5 h").
        """
        value = parse_decimal(text, last=False)
        if value is not None and value < 0:
            value = abs(value)

        if value is None:
            return ExtractedField(value=None, confidence=0.0, raw_text=text, source=source)
        return ExtractedField(value=value, confidence=confidence, raw_text=text, source=source)

    def normalize_date(
        self,
        text: str,
        confidence: float = 1.0,
        source: str | None = None,
    ) -> ExtractedField[date]:
        """
        Parse a date from text.

        Tries Spanish long form first, then each date-like fragment against
        the known formats. Day-first is preferred for numeric dates.
        """
        parsed = parse_date(text)
        if parsed is None:
            logger.debug(f"Failed to parse date '{text}'")
            return ExtractedField(value=None, confidence=0.0, raw_text=text, source=source)

        return ExtractedField(value=parsed, confidence=confidence, raw_text=text, source=source)

    def normalize_string(
        self,
        text: str,
        confidence: float = 1.0,
        source: str | None = None,
    ) -> ExtractedField[str]:
        """
        Clean and normalize a string field.

        Removes extra whitespace and control characters. Empty results
        come back as a missing field.
        """
        cleaned = clean_text(text)
        if not cleaned:
            return ExtractedField(value=None, confidence=0.0, raw_text=text, source=source)

        return ExtractedField(value=cleaned, confidence=confidence, raw_text=text, source=source)

    def detect_currency(self, text: str | None) -> str | None:
        """Return the ISO code of the first currency marker in text."""
        if not text:
            return None
        upper = text.upper()
        for marker, code in CURRENCY_MARKERS:
            if marker in upper:
                return code
        return None


def clean_text(text: str | None) -> str:
    """Remove control characters and collapse whitespace."""
    if not text:
        return ""
    cleaned = re.sub(r"[\x00-\x1f\x7f-\x9f]", " ", text)
    return " ".join(cleaned.split())


def parse_decimal(text: str | None, last: bool = True) -> Decimal | None:
    """
    Parse the last (or first) number in text into a Decimal.

    Percentages are skipped, so "IVA 21% 210,00" yields 210.00.
    """
    if not text:
        return None

    matches = NUMBER_PATTERN.findall(text.replace("\xa0", " "))
    if not matches:
        return None

    token = matches[-1] if last else matches[0]
    negative = token.startswith("-")
    digits = token.lstrip("-")

    if "," in digits and "." in digits:
        # Whichever separator comes last is the decimal one
        if digits.rindex(",") > digits.rindex("."):
            digits = digits.replace(".", "").replace(",", ".")
        else:
            digits = digits.replace(",", "")
    elif "," in digits:
        parts = digits.split(",")
        if len(parts) == 2 and len(parts[1]) in (1, 2):
            digits = digits.replace(",", ".")
        else:
            digits = digits.replace(",", "")
    elif "." in digits:
        parts = digits.split(".")
        if len(parts) > 2 or len(parts[1]) == 3:
            digits = digits.replace(".", "")

    try:
        value = Decimal(digits)
    except (InvalidOperation, ValueError) as e:
        logger.warning(f"Failed to parse number '{token}': {e}")
        return None

    return -value if negative else value


def parse_date(text: str | None) -> date | None:
    """Parse the first recognisable date in text."""
    if not text:
        return None
    cleaned = clean_text(text)

    spanish = SPANISH_DATE_PATTERN.search(cleaned)
    if spanish:
        day, month_name, year = spanish.groups()
        month = SPANISH_MONTHS.get(month_name.lower())
        if month:
            try:
                return date(int(year), month, int(day))
            except ValueError:
                pass

    candidates = [cleaned]
    for pattern in DATE_FRAGMENTS:
        candidates.extend(m.group(0) for m in pattern.finditer(cleaned))

    for candidate in candidates:
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue

    return None
