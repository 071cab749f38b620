# storefront/services/gateway/http_adapter.py
import base64
from dataclasses import asdict

import requests
from requests import RequestException

from storefront.domain.errors import GatewayError, InvalidAmount, InvoiceNotFound
from storefront.services.gateway.port import CreateInvoiceRequest, Invoice, InvoiceGateway
from storefront.utils.logging import get_logger
from storefront.utils.retry import http_retry
from storefront.utils.settings import Settings

logger = get_logger(__name__)


def basic_auth_header(secret_key: str) -> str:
    credentials = base64.b64encode(f"{secret_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


def parse_invoice(data) -> Invoice:
    if not isinstance(data, dict):
        raise GatewayError("Malformed gateway response", detail="expected a JSON object")
    try:
        return Invoice(
            id=str(data["id"]),
            external_id=str(data["external_id"]),
            invoice_url=str(data.get("invoice_url", "")),
            status=str(data["status"]),
            expiry_date=str(data.get("expiry_date", "")),
            amount=int(data["amount"]),
            paid_amount=int(data.get("paid_amount") or 0),
            description=str(data.get("description") or ""),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GatewayError("Malformed gateway response", detail=f"missing or invalid field: {e}") from e


class XenditGateway(InvoiceGateway):
    """Invoice API client. No local state: every call goes to the provider."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.base_url = settings.xendit_api_url.rstrip("/")
        self.timeout = settings.gateway_timeout
        self.success_redirect_url = settings.success_redirect_url
        self.failure_redirect_url = settings.failure_redirect_url
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": basic_auth_header(settings.xendit_secret_key)})

    def create_invoice(self, request: CreateInvoiceRequest) -> Invoice:
        if request.amount <= 0:
            raise InvalidAmount(f"Invoice amount must be greater than 0, got {request.amount}")

        body = {
            "external_id": request.external_id,
            "amount": request.amount,
            "payer_email": request.payer_email,
            "description": request.description,
            "customer": {
                "given_names": request.customer.given_names,
                "email": request.customer.email,
                "mobile_number": request.customer.mobile_number or "",
            },
            "items": [
                {k: v for k, v in asdict(item).items() if v is not None}
                for item in request.items
            ],
            "invoice_duration": request.invoice_duration,
            "success_redirect_url": self.success_redirect_url,
            "failure_redirect_url": self.failure_redirect_url,
        }

        logger.info(f"Creating invoice for {request.external_id}", amount=request.amount)
        return self._call("POST", "/invoices", "Failed to create invoice", json=body)

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self._get(invoice_id)

    def expire_invoice(self, invoice_id: str) -> Invoice:
        logger.info(f"Expiring invoice {invoice_id}")
        return self._call("POST", f"/invoices/{invoice_id}/expire", "Failed to expire invoice")

    def _get(self, invoice_id: str) -> Invoice:
        try:
            resp = self._get_with_retry(f"{self.base_url}/invoices/{invoice_id}")
        except RequestException as e:
            raise GatewayError("Failed to get invoice", detail=str(e)) from e

        if resp.status_code == 404:
            raise InvoiceNotFound(invoice_id)
        return self._parse(resp, "Failed to get invoice")

    @http_retry()
    def _get_with_retry(self, url: str) -> requests.Response:
        # GET is safe to repeat; POSTs are sent once
        logger.info(f"XenditGateway GET {url}")
        return self.session.get(url, timeout=self.timeout)

    def _call(self, method: str, path: str, failure: str, **kwargs) -> Invoice:
        url = f"{self.base_url}{path}"
        logger.info(f"XenditGateway {method} {url}")

        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as e:
            raise GatewayError(failure, detail=str(e)) from e

        return self._parse(resp, failure)

    def _parse(self, resp: requests.Response, failure: str) -> Invoice:
        if not resp.ok:
            logger.warning(f"{failure}: upstream returned {resp.status_code}")
            raise GatewayError(failure, upstream_status=resp.status_code, detail=resp.text)

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError(failure, upstream_status=resp.status_code, detail="response is not JSON") from e

        return parse_invoice(data)
