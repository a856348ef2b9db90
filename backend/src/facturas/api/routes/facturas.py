"""
Invoice CRUD endpoints.

Each handler is a direct pass-through to the repository. Any error not
handled here is turned into a 500 by the application's exception handler.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from facturas.api.dependencies import RepositoryDep
from facturas.api.schemas import (
    ErrorResponse,
    FacturaCreatedResponse,
    FacturaRequest,
    FacturaResponse,
    MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/facturas",
    tags=["facturas"],
    responses={500: {"model": ErrorResponse, "description": "Database or unexpected error"}},
)

TITULO_REQUIRED = "El título es requerido"
NOT_FOUND = "Factura no encontrada"


def _require_titulo(request: FacturaRequest) -> str:
    """Return the title or answer 400 if it is missing or blank."""
    if not request.titulo or not request.titulo.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=TITULO_REQUIRED,
        )
    return request.titulo


@router.get("", response_model=list[FacturaResponse])
async def list_facturas(repository: RepositoryDep) -> list[FacturaResponse]:
    """List every stored invoice."""
    facturas = await repository.list_all()
    return [FacturaResponse.model_validate(f) for f in facturas]


@router.post(
    "",
    response_model=FacturaCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Missing title"}},
)
async def create_factura(
    request: FacturaRequest,
    repository: RepositoryDep,
) -> FacturaCreatedResponse:
    """Create an invoice and return its id."""
    titulo = _require_titulo(request)
    factura = await repository.create(
        titulo=titulo,
        descripcion=request.descripcion,
        url=request.url,
    )
    return FacturaCreatedResponse(id=factura.id)


@router.get(
    "/{factura_id}",
    response_model=FacturaResponse,
    responses={404: {"description": "Invoice not found"}},
)
async def get_factura(factura_id: int, repository: RepositoryDep) -> FacturaResponse:
    factura = await repository.get(factura_id)
    if factura is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return FacturaResponse.model_validate(factura)


@router.put(
    "/{factura_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing title"},
        404: {"description": "Invoice not found"},
    },
)
async def update_factura(
    factura_id: int,
    request: FacturaRequest,
    repository: RepositoryDep,
) -> MessageResponse:
    """Replace the title, description and URL of an invoice."""
    titulo = _require_titulo(request)
    factura = await repository.update(
        factura_id,
        titulo=titulo,
        descripcion=request.descripcion,
        url=request.url,
    )
    if factura is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return MessageResponse(message="Factura actualizada correctamente")


@router.delete(
    "/{factura_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Invoice not found"}},
)
async def delete_factura(factura_id: int, repository: RepositoryDep) -> MessageResponse:
    if not await repository.delete(factura_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return MessageResponse(message="Factura eliminada correctamente")
