import base64
import dataclasses
import json
from decimal import Decimal

import pytest
import requests

from storefront.domain.errors import GatewayError, InvalidAmount, InvoiceNotFound
from storefront.services.gateway import build_gateway
from storefront.services.gateway.fake_adapter import FakeInvoiceGateway
from storefront.services.gateway.http_adapter import XenditGateway
from storefront.services.gateway.port import CreateInvoiceRequest, CustomerInfo, InvoiceItem, to_gateway_amount

INVOICE = {
    "id": "inv_123",
    "external_id": "ORDER-7",
    "invoice_url": "https://checkout.test/inv_123",
    "status": "PENDING",
    "expiry_date": "2026-01-02T00:00:00.000Z",
    "amount": 250,
    "description": "Payment for Order #7",
}


def make_response(status_code=200, body=None, raw=None):
    resp = requests.Response()
    resp.status_code = status_code
    if raw is not None:
        resp._content = raw.encode("utf-8")
    else:
        resp._content = json.dumps(body if body is not None else {}).encode("utf-8")
    return resp


class StubSession:
    """Stands in for requests.Session, replaying queued outcomes."""

    def __init__(self, *outcomes):
        self.headers = {}
        self.outcomes = list(outcomes)
        self.sent = []

    def _next(self):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def request(self, method, url, timeout=None, **kwargs):
        self.sent.append({"method": method, "url": url, "timeout": timeout, **kwargs})
        return self._next()

    def get(self, url, timeout=None):
        self.sent.append({"method": "GET", "url": url, "timeout": timeout})
        return self._next()


@pytest.fixture()
def http_settings(settings):
    return dataclasses.replace(
        settings,
        payment_gateway="http",
        xendit_secret_key="xnd_test_key",
        xendit_api_url="https://api.test/v2/",
        gateway_timeout=5,
    )


def invoice_request(amount=250):
    return CreateInvoiceRequest(
        external_id="ORDER-7",
        amount=amount,
        payer_email="buyer@example.com",
        description="Payment for Order #7",
        customer=CustomerInfo(given_names="buyer", email="buyer@example.com"),
        items=[InvoiceItem(name="Desk", quantity=2, price=125)],
    )


class TestAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [("250.00", 250), ("249.50", 250), ("249.49", 249), ("0.50", 1)],
    )
    def test_rounds_half_up_to_whole_units(self, value, expected):
        assert to_gateway_amount(Decimal(value)) == expected

    @pytest.mark.parametrize("value", ["0", "0.49", "-5"])
    def test_non_positive_amount_rejected(self, value):
        with pytest.raises(InvalidAmount):
            to_gateway_amount(Decimal(value))


class TestXenditGateway:
    def test_create_invoice_request_shape(self, http_settings):
        session = StubSession(make_response(200, INVOICE))
        gateway = XenditGateway(http_settings, session=session)

        invoice = gateway.create_invoice(invoice_request())

        expected_auth = "Basic " + base64.b64encode(b"xnd_test_key:").decode("ascii")
        assert session.headers["Authorization"] == expected_auth
        sent = session.sent[0]
        assert sent["method"] == "POST"
        assert sent["url"] == "https://api.test/v2/invoices"
        assert sent["timeout"] == 5
        body = sent["json"]
        assert body["external_id"] == "ORDER-7"
        assert body["amount"] == 250
        assert body["invoice_duration"] == 86400
        assert body["customer"]["given_names"] == "buyer"
        assert body["items"] == [{"name": "Desk", "quantity": 2, "price": 125}]
        assert body["success_redirect_url"] == http_settings.success_redirect_url
        assert invoice.id == "inv_123"
        assert invoice.invoice_url == "https://checkout.test/inv_123"

    def test_zero_amount_never_reaches_network(self, http_settings):
        session = StubSession()
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(InvalidAmount):
            gateway.create_invoice(invoice_request(amount=0))
        assert session.sent == []

    def test_upstream_error_is_surfaced(self, http_settings):
        session = StubSession(make_response(400, {"error_code": "API_VALIDATION_ERROR"}))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(GatewayError) as exc:
            gateway.create_invoice(invoice_request())

        assert exc.value.upstream_status == 400
        assert "API_VALIDATION_ERROR" in exc.value.detail

    def test_post_is_not_retried(self, http_settings):
        session = StubSession(requests.ConnectionError("refused"), make_response(200, INVOICE))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(GatewayError):
            gateway.create_invoice(invoice_request())
        assert len(session.sent) == 1

    def test_timeout_becomes_gateway_error(self, http_settings):
        session = StubSession(requests.Timeout("slow"))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(GatewayError):
            gateway.expire_invoice("inv_123")

    def test_non_json_body(self, http_settings):
        session = StubSession(make_response(200, raw="<html>oops</html>"))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(GatewayError):
            gateway.create_invoice(invoice_request())

    def test_missing_fields(self, http_settings):
        session = StubSession(make_response(200, {"id": "inv_123"}))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(GatewayError):
            gateway.create_invoice(invoice_request())

    def test_get_retries_transport_errors(self, http_settings):
        session = StubSession(requests.ConnectionError("reset"), make_response(200, INVOICE))
        gateway = XenditGateway(http_settings, session=session)

        invoice = gateway.get_invoice("inv_123")

        assert invoice.id == "inv_123"
        assert len(session.sent) == 2
        assert session.sent[1]["url"] == "https://api.test/v2/invoices/inv_123"

    def test_get_missing_invoice(self, http_settings):
        session = StubSession(make_response(404, {"error_code": "INVOICE_NOT_FOUND_ERROR"}))
        gateway = XenditGateway(http_settings, session=session)

        with pytest.raises(InvoiceNotFound):
            gateway.get_invoice("nope")

    def test_expire_invoice(self, http_settings):
        session = StubSession(make_response(200, {**INVOICE, "status": "EXPIRED"}))
        gateway = XenditGateway(http_settings, session=session)

        invoice = gateway.expire_invoice("inv_123")

        assert invoice.status == "EXPIRED"
        assert session.sent[0]["url"] == "https://api.test/v2/invoices/inv_123/expire"


class TestFakeGateway:
    def test_create_get_expire(self):
        gateway = FakeInvoiceGateway()
        created = gateway.create_invoice(invoice_request())

        assert gateway.get_invoice(created.id).status == "PENDING"
        assert gateway.expire_invoice(created.id).status == "EXPIRED"
        assert [c["method"] for c in gateway.calls] == ["create_invoice", "get_invoice", "expire_invoice"]

    def test_configured_failure(self):
        gateway = FakeInvoiceGateway()
        gateway.configure(should_succeed=False, failure_status=503, failure_reason="down")

        with pytest.raises(GatewayError) as exc:
            gateway.create_invoice(invoice_request())
        assert exc.value.upstream_status == 503


def test_factory_selects_adapter(settings, http_settings):
    assert isinstance(build_gateway(settings), FakeInvoiceGateway)
    assert isinstance(build_gateway(http_settings), XenditGateway)
