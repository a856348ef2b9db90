"""
Domain models for invoice data scraped from HTML pages.

These models represent the structured result of reading an invoice
page. Each extracted value carries a confidence score and the raw text
it came from, so callers can tell a selector hit from a heuristic guess.

Design Decisions:
- Using dataclasses for immutable, typed domain objects
- ExtractedField wrapper keeps extraction metadata out of business values
- Decimal for all monetary values to avoid floating-point errors
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Generic, TypeVar

T = TypeVar("T")

# Below this, a field is flagged for manual review
REVIEW_THRESHOLD = 0.7

# Confidence by extraction strategy
SELECTOR_CONFIDENCE = 0.95
LABEL_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.6


@dataclass(frozen=True)
class ExtractedField(Generic[T]):
    """
    A field extracted from an invoice page.

    Wraps the actual value with metadata about extraction quality.

    Type Parameters:
        T: The type of the extracted value (str, Decimal, date, etc.)
    """
    value: T | None
    confidence: float
    raw_text: str | None = None  # Text before normalization
    source: str | None = None  # Selector or label that produced the value

    @property
    def found(self) -> bool:
        return self.value is not None

    @property
    def requires_review(self) -> bool:
        """Flag if the field is missing or below the acceptance threshold."""
        return self.value is None or self.confidence < REVIEW_THRESHOLD

    def __post_init__(self) -> None:
        """Validate confidence range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0-1, got {self.confidence}")

    @classmethod
    def missing(cls) -> "ExtractedField[T]":
        """A field no strategy could find."""
        return cls(value=None, confidence=0.0)


@dataclass(frozen=True)
class Party:
    """Issuer or customer block of an invoice."""
    nombre: str | None = None
    nif: str | None = None
    direccion: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.nombre or self.nif or self.direccion)


@dataclass(frozen=True)
class LineItem:
    """A single line item from an invoice table."""
    descripcion: str
    cantidad: Decimal | None = None
    precio_unitario: Decimal | None = None
    importe: Decimal | None = None

    @property
    def calculated_total(self) -> Decimal | None:
        """Compute expected amount from quantity * unit price."""
        if self.cantidad is None or self.precio_unitario is None:
            return None
        return self.cantidad * self.precio_unitario

    @property
    def effective_amount(self) -> Decimal | None:
        """Stated amount, or quantity * unit price when the row has none."""
        if self.importe is not None:
            return self.importe
        return self.calculated_total


@dataclass(frozen=True)
class ScrapedInvoice:
    """
    Invoice data read from a single HTML page.

    Each scalar field is an ExtractedField; line items are plain values
    since they come from a single table detection.
    """
    url: str
    titulo: ExtractedField[str]
    numero: ExtractedField[str]
    fecha: ExtractedField[date]
    emisor: ExtractedField[Party]
    cliente: ExtractedField[Party]
    subtotal: ExtractedField[Decimal]
    impuestos: ExtractedField[Decimal]
    total: ExtractedField[Decimal]
    moneda: ExtractedField[str]
    items: list[LineItem] = field(default_factory=list)

    @property
    def review_fields(self) -> list[str]:
        """Names of fields that are missing or low-confidence."""
        fields = {
            "titulo": self.titulo,
            "numero": self.numero,
            "fecha": self.fecha,
            "emisor": self.emisor,
            "cliente": self.cliente,
            "subtotal": self.subtotal,
            "impuestos": self.impuestos,
            "total": self.total,
            "moneda": self.moneda,
        }
        flagged = [name for name, f in fields.items() if f.requires_review]
        if not self.items:
            flagged.append("items")
        return flagged
