import json

import httpx
import pytest

from invoicer.models.document import Document
from invoicer.services.api_client import DocumentApiClient, TransportError


def _client(handler):
    http = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))
    return DocumentApiClient("http://testserver", client=http)


def test_render_pdf_posts_payload_with_kind():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"%PDF-1.4 fake", headers={"Content-Type": "application/pdf"})

    api = _client(handler)
    content = api.render_pdf(Document(invoice_number="INV-0003", client_name="Acme"), "receipt")
    assert content == b"%PDF-1.4 fake"
    assert seen["path"] == "/api/invoice"
    assert seen["body"]["type"] == "receipt"
    assert seen["body"]["invoiceNumber"] == "INV-0003"
    assert seen["body"]["clientName"] == "Acme"


def test_non_2xx_is_transport_error():
    api = _client(lambda request: httpx.Response(500, json={"error": "Failed to generate invoice"}))
    with pytest.raises(TransportError):
        api.render_pdf(Document())


def test_network_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        _client(handler).next_receipt_number()


def test_next_receipt_number():
    api = _client(lambda request: httpx.Response(200, json={"receiptNumber": "RCT-20261018-0004"}))
    assert api.next_receipt_number() == "RCT-20261018-0004"


def test_receipt_number_accepts_number_key():
    api = _client(lambda request: httpx.Response(200, json={"number": "RCT-20261018-0005"}))
    assert api.next_receipt_number() == "RCT-20261018-0005"


def test_receipt_number_missing_is_transport_error():
    api = _client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(TransportError):
        api.next_receipt_number()
