from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Download formats and the media type served for each
FILE_MEDIA_TYPES = {
    "pdf": "application/pdf",
    "xml": "application/xml",
}

# Listing filters, in the order Facturama receives them after type=issued
FILTER_ORDER = (
    "folioStart",
    "folioEnd",
    "rfc",
    "taxEntityName",
    "dateStart",
    "dateEnd",
    "status",
    "orderNumber",
    "page",
)


class FileEnvelope(BaseModel):
    """JSON wrapper Facturama returns for ``GET /cfdi/{format}/{type}/{id}``."""
    model_config = ConfigDict(populate_by_name=True)

    content_encoding: str | None = Field(default=None, alias="ContentEncoding")
    content_type: str | None = Field(default=None, alias="ContentType")
    content_length: int | None = Field(default=None, alias="ContentLength")
    content: str = Field(default="", alias="Content")  # base64


class CfdiFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    folio_start: str | None = Field(default=None, alias="folioStart")
    folio_end: str | None = Field(default=None, alias="folioEnd")
    rfc: str | None = None
    tax_entity_name: str | None = Field(default=None, alias="taxEntityName")
    date_start: str | None = Field(default=None, alias="dateStart")  # dd/mm/yyyy
    date_end: str | None = Field(default=None, alias="dateEnd")  # dd/mm/yyyy
    status: str | None = None
    order_number: str | None = Field(default=None, alias="orderNumber")
    page: str | None = None

    def to_params(self) -> list[tuple[str, str]]:
        """Ordered query parameters; empty filters are left out."""
        values = self.model_dump(by_alias=True)
        params = [("type", "issued")]
        for key in FILTER_ORDER:
            if values[key]:
                params.append((key, values[key]))
        return params


@dataclass(frozen=True)
class UpstreamReply:
    """Status and body of a Facturama response, relayed as-is to the caller."""
    status_code: int
    body: Any = None
    raw: bytes | None = None  # set when an error body is not JSON
    media_type: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400


@dataclass(frozen=True)
class CfdiFile:
    content: bytes
    media_type: str
    filename: str
