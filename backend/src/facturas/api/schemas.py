"""
Pydantic schemas for API request/response validation.

These schemas define the contract between clients and the backend.
All monetary values use strings to avoid floating point issues.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from facturas.domain.models import LineItem, Party, ScrapedInvoice
from facturas.infrastructure.database import TITULO_MAX_LENGTH, URL_MAX_LENGTH


# =============================================================================
# Request Schemas
# =============================================================================

class FacturaRequest(BaseModel):
    """
    Body for creating or replacing an invoice.

    ``titulo`` is optional here so the route can answer a missing title
    with 400 instead of a schema error.
    """
    titulo: str | None = Field(
        default=None,
        max_length=TITULO_MAX_LENGTH,
        description="Invoice title (required, non-empty)",
    )
    descripcion: str | None = Field(
        default=None,
        description="Free-form description",
    )
    url: str | None = Field(
        default=None,
        max_length=URL_MAX_LENGTH,
        description="Link to the invoice document",
    )


class ScrapeRequest(BaseModel):
    """Request to scrape an invoice page."""
    url: str | None = Field(
        default=None,
        description="http(s) URL of the invoice page",
    )


# =============================================================================
# Response Schemas
# =============================================================================

class FacturaResponse(BaseModel):
    """A stored invoice."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    titulo: str
    descripcion: str | None = None
    url: str | None = None


class FacturaCreatedResponse(BaseModel):
    message: str = "Factura creada"
    id: int


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "OK"
    timestamp: datetime
    version: str
    database: str = "connected"


class PartyResponse(BaseModel):
    """Issuer or customer block."""
    nombre: str | None = None
    nif: str | None = None
    direccion: str | None = None

    @classmethod
    def from_domain(cls, party: Party | None) -> "PartyResponse | None":
        if party is None:
            return None
        return cls(nombre=party.nombre, nif=party.nif, direccion=party.direccion)


class LineItemResponse(BaseModel):
    """Single invoice line."""
    descripcion: str
    cantidad: str | None = None
    precio_unitario: str | None = None
    importe: str | None = None

    @classmethod
    def from_domain(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            descripcion=item.descripcion,
            cantidad=_decimal_str(item.cantidad),
            precio_unitario=_decimal_str(item.precio_unitario),
            importe=_decimal_str(item.importe),
        )


class ScrapedInvoiceResponse(BaseModel):
    """Invoice fields extracted from a page."""
    url: str
    titulo: str | None = None
    numero: str | None = None
    fecha: date | None = None
    emisor: PartyResponse | None = None
    cliente: PartyResponse | None = None
    items: list[LineItemResponse] = []
    subtotal: str | None = None
    impuestos: str | None = None
    total: str | None = None
    moneda: str | None = None
    revisar: list[str] = Field(
        default=[],
        description="Fields that are missing or extracted with low confidence",
    )

    @classmethod
    def from_domain(cls, invoice: ScrapedInvoice) -> "ScrapedInvoiceResponse":
        return cls(
            url=invoice.url,
            titulo=invoice.titulo.value,
            numero=invoice.numero.value,
            fecha=invoice.fecha.value,
            emisor=PartyResponse.from_domain(invoice.emisor.value),
            cliente=PartyResponse.from_domain(invoice.cliente.value),
            items=[LineItemResponse.from_domain(item) for item in invoice.items],
            subtotal=_decimal_str(invoice.subtotal.value),
            impuestos=_decimal_str(invoice.impuestos.value),
            total=_decimal_str(invoice.total.value),
            moneda=invoice.moneda.value,
            revisar=invoice.review_fields,
        )


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: list | None = None


def _decimal_str(value) -> str | None:
    return None if value is None else str(value)
