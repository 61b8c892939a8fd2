from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from loguru import logger

from ..deps import get_cfdi_filters, get_facturama, get_sandbox_facturama
from ...models.cfdi import CfdiRequest
from ...services.cfdi_types import FILE_MEDIA_TYPES, CfdiFilters, UpstreamReply
from ...services.facturama import FacturamaClient, InvalidFileFormatError

router = APIRouter(prefix="/api", tags=["CFDI"])


def relay(reply: UpstreamReply) -> Response:
    """Turn a Facturama reply into the proxy response (200 on success, upstream status on error)."""
    if not reply.is_error:
        return JSONResponse(status_code=200, content=reply.body)
    if reply.raw is not None:
        return Response(content=reply.raw, status_code=reply.status_code, media_type=reply.media_type)
    return JSONResponse(status_code=reply.status_code, content=reply.body)


@router.post("/cfdi", summary="Crear CFDI")
async def create_cfdi(cfdi: CfdiRequest, facturama: FacturamaClient = Depends(get_facturama)):
    """Stamp a new CFDI (regular or global) with the production account."""
    logger.info(
        "Create CFDI request",
        cfdi_type=cfdi.cfdi_type,
        receiver=cfdi.receiver.rfc,
        items=len(cfdi.items),
    )
    return relay(await facturama.create_cfdi(cfdi))


@router.post("/sandbox/cfdi", summary="Crear CFDI de prueba")
async def create_sandbox_cfdi(cfdi: CfdiRequest, facturama: FacturamaClient = Depends(get_sandbox_facturama)):
    """Same contract as ``POST /api/cfdi`` against the sandbox account."""
    logger.info(
        "Create sandbox CFDI request",
        cfdi_type=cfdi.cfdi_type,
        receiver=cfdi.receiver.rfc,
        items=len(cfdi.items),
    )
    return relay(await facturama.create_cfdi(cfdi))


@router.get("/cfdi", summary="Consultar CFDIs emitidos")
async def list_cfdis(
    filters: CfdiFilters = Depends(get_cfdi_filters),
    facturama: FacturamaClient = Depends(get_facturama),
):
    """
    List issued CFDIs.

    Filters are forwarded to Facturama as-is after ``type=issued``; no
    filtering or pagination happens here.
    """
    return relay(await facturama.list_cfdis(filters))


@router.get(
    "/cfdi/{cfdi_id}/download",
    summary="Descargar PDF o XML de un CFDI",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}, "application/xml": {}}}},
)
async def download_cfdi(
    cfdi_id: str,
    file_format: str | None = Query(None, alias="format", description="Formato: xml o pdf"),
    cfdi_type: str = Query(..., alias="type", description="Tipo de CFDI (issued)"),
    facturama: FacturamaClient = Depends(get_facturama),
):
    if file_format not in FILE_MEDIA_TYPES:
        raise HTTPException(status_code=400, detail=InvalidFileFormatError.message)

    cfdi_file = await facturama.fetch_file(cfdi_id, file_format, cfdi_type)
    logger.info(f"Serving {cfdi_file.filename} ({len(cfdi_file.content)} bytes)")
    return Response(
        content=cfdi_file.content,
        media_type=cfdi_file.media_type,
        headers={"Content-Disposition": f'attachment; filename="{cfdi_file.filename}"'},
    )
