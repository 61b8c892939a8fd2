"""
Unit tests for FacturamaClient using an injected httpx.MockTransport.
"""

import asyncio
import base64
import json

import httpx
import pytest
from loguru import logger

from src.core.config import FacturamaConfig
from src.models.cfdi import CfdiRequest, Item, Receiver, Tax
from src.services.cfdi_types import CfdiFilters
from src.services.facturama import (
    FacturamaClient,
    FacturamaStatusError,
    FacturamaTimeoutError,
    FacturamaUnavailableError,
    InvalidFileContentError,
    InvalidFileFormatError,
    InvalidResponseError,
)

CONFIG = FacturamaConfig(
    base_url="https://api.facturama.test",
    username="user",
    password="secret",
    timeout=2.0,
)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served"""

    def __init__(self, handler):
        self.requests = []

        def record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def make_client(handler):
    transport = RecordingTransport(handler)
    return FacturamaClient(CONFIG, transport=transport), transport


def test_create_cfdi_posts_aliased_json():
    client, transport = make_client(lambda request: httpx.Response(201, json={"Id": "new"}))
    cfdi = CfdiRequest(
        cfdi_type="I",
        payment_form="03",
        payment_method="PUE",
        expedition_place="64000",
        receiver=Receiver(rfc="EKU9003173C9", cfdi_use="G03", name="ESCUELA KEMPER URGATE"),
        items=[
            Item(
                product_code="84111506",
                description="Servicio de facturación",
                quantity=2.0,
                unit_price=100.0,
                subtotal=200.0,
                taxes=[Tax(name="IVA", rate=0.16, base=200.0, total=32.0, is_federal_tax=True)],
                total=232.0,
            )
        ],
    )

    reply = asyncio.run(client.create_cfdi(cfdi))

    assert reply.status_code == 201
    assert reply.body == {"Id": "new"}
    assert not reply.is_error

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.facturama.test/3/cfdis"
    assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"user:secret").decode()
    sent = json.loads(request.content)
    assert "GlobalInformation" not in sent
    assert sent["Receiver"]["Rfc"] == "EKU9003173C9"
    assert sent["Items"][0]["Taxes"][0] == {
        "Name": "IVA",
        "Rate": 0.16,
        "Base": 200.0,
        "Total": 32.0,
        "IsRetention": False,
        "IsFederalTax": True,
    }


def test_list_cfdis_builds_ordered_query():
    client, transport = make_client(lambda request: httpx.Response(200, json=[{"Id": "a"}]))
    filters = CfdiFilters(page="1", rfc="ABC123", folio_start="10")

    reply = asyncio.run(client.list_cfdis(filters))

    assert reply.body == [{"Id": "a"}]
    assert str(transport.requests[0].url) == (
        "https://api.facturama.test/cfdi?type=issued&folioStart=10&rfc=ABC123&page=1"
    )


def test_error_reply_keeps_json_body():
    client, _ = make_client(lambda request: httpx.Response(400, json={"Message": "bad"}))

    reply = asyncio.run(client.list_cfdis(CfdiFilters()))

    assert reply.is_error
    assert reply.status_code == 400
    assert reply.body == {"Message": "bad"}
    assert reply.raw is None


def test_error_reply_keeps_raw_body_when_not_json():
    client, _ = make_client(lambda request: httpx.Response(401, content=b""))

    reply = asyncio.run(client.list_cfdis(CfdiFilters()))

    assert reply.status_code == 401
    assert reply.raw == b""


def test_success_with_invalid_json_raises():
    client, _ = make_client(lambda request: httpx.Response(200, content=b"{not json"))

    with pytest.raises(InvalidResponseError):
        asyncio.run(client.list_cfdis(CfdiFilters()))


def test_connect_error_raises_unavailable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(refuse)

    with pytest.raises(FacturamaUnavailableError) as exc_info:
        asyncio.run(client.list_cfdis(CfdiFilters()))
    assert exc_info.value.status_code == 500


def test_timeout_raises_timeout_error():
    def stall(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = make_client(stall)

    with pytest.raises(FacturamaTimeoutError) as exc_info:
        asyncio.run(client.create_cfdi(CfdiRequest()))
    assert exc_info.value.status_code == 504


def test_fetch_file_decodes_content():
    xml = b'<?xml version="1.0" encoding="utf-8"?><cfdi:Comprobante Version="4.0"/>'
    client, transport = make_client(
        lambda request: httpx.Response(200, json={"ContentEncoding": "base64", "Content": base64.b64encode(xml).decode()})
    )

    cfdi_file = asyncio.run(client.fetch_file("XyZ-1", "xml", "issued"))

    assert cfdi_file.content == xml
    assert cfdi_file.media_type == "application/xml"
    assert cfdi_file.filename == "XyZ-1.xml"
    assert transport.requests[0].url.path == "/cfdi/xml/issued/XyZ-1"


def test_fetch_file_rejects_unknown_format_without_request():
    client, transport = make_client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(InvalidFileFormatError) as exc_info:
        asyncio.run(client.fetch_file("1", "gif", "issued"))

    assert exc_info.value.status_code == 400
    assert transport.requests == []


def test_fetch_file_error_status_carries_raw_body():
    client, _ = make_client(lambda request: httpx.Response(403, text="Forbidden"))

    with pytest.raises(FacturamaStatusError) as exc_info:
        asyncio.run(client.fetch_file("1", "pdf", "issued"))

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Forbidden"


def test_fetch_file_invalid_base64_raises():
    client, _ = make_client(lambda request: httpx.Response(200, json={"Content": "@@@"}))

    with pytest.raises(InvalidFileContentError):
        asyncio.run(client.fetch_file("1", "pdf", "issued"))


def test_fetch_file_empty_content_returns_empty_file():
    client, _ = make_client(lambda request: httpx.Response(200, json={}))

    cfdi_file = asyncio.run(client.fetch_file("1", "pdf", "issued"))

    assert cfdi_file.content == b""
    assert cfdi_file.media_type == "application/pdf"


def test_configured_timeout_reaches_request():
    client, transport = make_client(lambda request: httpx.Response(200, json=[]))

    asyncio.run(client.list_cfdis(CfdiFilters()))

    assert transport.requests[0].extensions["timeout"] == {
        "connect": 2.0,
        "read": 2.0,
        "write": 2.0,
        "pool": 2.0,
    }


def test_failure_logs_are_bound_to_account():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="ERROR")
    try:
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"Content": "@@@"}))
        client = FacturamaClient(CONFIG, transport=transport, name="sandbox")
        with pytest.raises(InvalidFileContentError):
            asyncio.run(client.fetch_file("1", "xml", "issued"))

        transport = RecordingTransport(lambda request: httpx.Response(200, content=b"{not json"))
        client = FacturamaClient(CONFIG, transport=transport, name="sandbox")
        with pytest.raises(InvalidResponseError):
            asyncio.run(client.list_cfdis(CfdiFilters()))
    finally:
        logger.remove(sink_id)

    assert len(records) == 2
    assert all(record["extra"]["account"] == "sandbox" for record in records)
