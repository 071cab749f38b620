"""In-process invoice gateway for development and tests.

Keeps invoices in memory and never touches the network. It can be told to
fail, which is how the upstream-error paths are exercised.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from storefront.domain.errors import GatewayError, InvalidAmount, InvoiceNotFound
from storefront.services.gateway.port import CreateInvoiceRequest, Invoice, InvoiceGateway


class FakeInvoiceGateway(InvoiceGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_status: int = 503
        self.failure_reason: str = "Service unavailable"
        self.invoices: dict[str, Invoice] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_status: int = 503, failure_reason: str = "Service unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_status = failure_status
        self.failure_reason = failure_reason

    def create_invoice(self, request: CreateInvoiceRequest) -> Invoice:
        self.calls.append({"method": "create_invoice", "external_id": request.external_id, "amount": request.amount})
        if request.amount <= 0:
            raise InvalidAmount(f"Invoice amount must be greater than 0, got {request.amount}")
        self._maybe_fail("Failed to create invoice")

        expiry = datetime.now(timezone.utc) + timedelta(seconds=request.invoice_duration)
        invoice_id = f"fake_inv_{uuid4().hex[:12]}"
        invoice = Invoice(
            id=invoice_id,
            external_id=request.external_id,
            invoice_url=f"https://checkout.fake/{invoice_id}",
            status="PENDING",
            expiry_date=expiry.isoformat(),
            amount=request.amount,
            description=request.description,
        )
        self.invoices[invoice_id] = invoice
        return invoice

    def get_invoice(self, invoice_id: str) -> Invoice:
        self.calls.append({"method": "get_invoice", "invoice_id": invoice_id})
        self._maybe_fail("Failed to get invoice")
        if invoice_id not in self.invoices:
            raise InvoiceNotFound(invoice_id)
        return self.invoices[invoice_id]

    def expire_invoice(self, invoice_id: str) -> Invoice:
        self.calls.append({"method": "expire_invoice", "invoice_id": invoice_id})
        self._maybe_fail("Failed to expire invoice")
        if invoice_id not in self.invoices:
            raise GatewayError("Failed to expire invoice", upstream_status=404, detail="INVOICE_NOT_FOUND_ERROR")

        current = self.invoices[invoice_id]
        expired = Invoice(**{**current.__dict__, "status": "EXPIRED"})
        self.invoices[invoice_id] = expired
        return expired

    def _maybe_fail(self, message: str) -> None:
        if not self.should_succeed:
            raise GatewayError(message, upstream_status=self.failure_status, detail=self.failure_reason)
