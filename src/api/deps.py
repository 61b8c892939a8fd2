from fastapi import Query, Request

from ..services.cfdi_types import CfdiFilters
from ..services.facturama import FacturamaClient


def get_facturama(request: Request) -> FacturamaClient:
    """Client bound to the production Facturama account"""
    return request.app.state.facturama


def get_sandbox_facturama(request: Request) -> FacturamaClient:
    """Client bound to the sandbox Facturama account"""
    return request.app.state.sandbox_facturama


def get_cfdi_filters(
    folio_start: str | None = Query(None, alias="folioStart", description="Folio inicial"),
    folio_end: str | None = Query(None, alias="folioEnd", description="Folio final"),
    rfc: str | None = Query(None, description="RFC"),
    tax_entity_name: str | None = Query(None, alias="taxEntityName", description="Nombre del receptor"),
    date_start: str | None = Query(None, alias="dateStart", description="Fecha inicio (dd/mm/yyyy)"),
    date_end: str | None = Query(None, alias="dateEnd", description="Fecha fin (dd/mm/yyyy)"),
    status: str | None = Query(None, description="Estado de factura"),
    order_number: str | None = Query(None, alias="orderNumber", description="Ordenar por folio"),
    page: str | None = Query(None, description="Número de página"),
) -> CfdiFilters:
    return CfdiFilters(
        folio_start=folio_start,
        folio_end=folio_end,
        rfc=rfc,
        tax_entity_name=tax_entity_name,
        date_start=date_start,
        date_end=date_end,
        status=status,
        order_number=order_number,
        page=page,
    )
