"""
Facturama REST client.

Wraps the three upstream calls the proxy needs (create, list, fetch file)
behind one class that is built from an immutable FacturamaConfig. Each call
is a single round trip with basic auth and the configured deadline; there
are no retries.

Usage:
    client = FacturamaClient(settings.production_config())
    reply = await client.create_cfdi(cfdi)

    # Tests can inject a transport instead of reaching the network
    client = FacturamaClient(config, transport=httpx.MockTransport(handler))
"""

import base64
import binascii
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ..core.config import FacturamaConfig
from ..models.cfdi import CfdiRequest
from .cfdi_types import FILE_MEDIA_TYPES, CfdiFile, CfdiFilters, FileEnvelope, UpstreamReply


class FacturamaError(Exception):
    """Base error; status_code and message become the ``{"error": ...}`` response."""

    status_code = 500
    message = "Facturama request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidFileFormatError(FacturamaError):
    status_code = 400
    message = "Invalid format. Use 'xml' or 'pdf'"


class CfdiSerializationError(FacturamaError):
    message = "Could not serialize CFDI payload"


class RequestBuildError(FacturamaError):
    message = "Could not build Facturama request"


class FacturamaUnavailableError(FacturamaError):
    message = "Could not contact Facturama"


class FacturamaTimeoutError(FacturamaError):
    status_code = 504
    message = "Facturama did not respond in time"


class InvalidResponseError(FacturamaError):
    message = "Could not parse Facturama response"


class InvalidFileContentError(FacturamaError):
    message = "Could not decode base64 file content"


class FacturamaStatusError(FacturamaError):
    """Upstream answered with an error status; message holds its raw body."""


class FacturamaClient:
    def __init__(
        self,
        config: FacturamaConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        name: str = "production",
    ):
        """
        Initialize the client.

        Args:
            config: Base URL, credentials and timeout of the Facturama account
            transport: Optional httpx transport (tests use a mock transport)
            name: Label used in log records ("production" or "sandbox")
        """
        self.config = config
        self.name = name
        self._transport = transport
        self._log = logger.bind(account=name)

    def _open(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            auth=httpx.BasicAuth(self.config.username, self.config.password),
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            client = self._open()
        except httpx.InvalidURL as e:
            self._log.error(f"Invalid Facturama base URL: {e}")
            raise RequestBuildError() from e

        async with client:
            try:
                request = client.build_request(method, path, **kwargs)
            except httpx.InvalidURL as e:
                self._log.error(f"Could not build {operation} request: {e}")
                raise RequestBuildError() from e

            try:
                response = await client.send(request)
            except httpx.TimeoutException as e:
                self._log.error(f"Facturama {operation} timed out after {self.config.timeout}s")
                raise FacturamaTimeoutError() from e
            except httpx.RequestError as e:
                self._log.error(f"Facturama {operation} failed: {e!r}")
                raise FacturamaUnavailableError() from e

        self._log.info(
            "Facturama call",
            operation=operation,
            method=method,
            path=request.url.path,
            status=response.status_code,
        )
        if response.is_error:
            self._log.warning(f"Facturama {operation} returned {response.status_code}")
        return response

    def _reply(self, response: httpx.Response) -> UpstreamReply:
        if response.is_error:
            try:
                return UpstreamReply(response.status_code, body=response.json())
            except ValueError:
                return UpstreamReply(
                    response.status_code,
                    raw=response.content,
                    media_type=response.headers.get("content-type"),
                )

        try:
            body = response.json()
        except ValueError as e:
            self._log.error(f"Facturama returned a non-JSON body: {e}")
            raise InvalidResponseError() from e
        return UpstreamReply(response.status_code, body=body)

    async def create_cfdi(self, cfdi: CfdiRequest) -> UpstreamReply:
        """POST a CFDI to ``/3/cfdis`` and return Facturama's reply."""
        try:
            payload = cfdi.to_facturama_json()
        except PydanticSerializationError as e:
            self._log.error(f"Could not serialize CFDI: {e}")
            raise CfdiSerializationError() from e

        response = await self._request(
            "create_cfdi",
            "POST",
            "/3/cfdis",
            content=payload,
            headers={"Content-Type": "application/json"},
        )
        return self._reply(response)

    async def list_cfdis(self, filters: CfdiFilters) -> UpstreamReply:
        """GET issued CFDIs matching the given filters."""
        response = await self._request(
            "list_cfdis",
            "GET",
            "/cfdi",
            params=filters.to_params(),
            headers={"Accept": "application/json"},
        )
        return self._reply(response)

    async def fetch_file(self, cfdi_id: str, file_format: str, cfdi_type: str) -> CfdiFile:
        """
        Download the XML or PDF of a CFDI.

        Facturama wraps the file in a JSON envelope whose ``Content`` field is
        base64; the decoded bytes are returned.

        Raises:
            InvalidFileFormatError: file_format is not "xml" or "pdf" (no call is made)
            FacturamaStatusError: upstream answered with an error status
            InvalidResponseError: the envelope is not valid JSON
            InvalidFileContentError: ``Content`` is not valid base64
        """
        media_type = FILE_MEDIA_TYPES.get(file_format)
        if media_type is None:
            raise InvalidFileFormatError()

        path = f"/cfdi/{file_format}/{quote(cfdi_type, safe='')}/{quote(cfdi_id, safe='')}"
        response = await self._request("fetch_file", "GET", path)
        if response.is_error:
            raise FacturamaStatusError(response.text, status_code=response.status_code)

        try:
            envelope = FileEnvelope.model_validate_json(response.content)
        except ValidationError as e:
            self._log.error(f"Invalid file envelope for CFDI {cfdi_id}: {e.error_count()} errors")
            raise InvalidResponseError() from e

        try:
            content = base64.b64decode(envelope.content, validate=True)
        except (binascii.Error, ValueError) as e:
            self._log.error(f"Invalid base64 content for CFDI {cfdi_id}: {e}")
            raise InvalidFileContentError() from e

        return CfdiFile(content=content, media_type=media_type, filename=f"{cfdi_id}.{file_format}")
