"""Invoice gateway port.

The contract every payment-gateway adapter implements, so the HTTP
adapter and the in-process fake are interchangeable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from storefront.domain.errors import InvalidAmount


def round_amount(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_gateway_amount(value: Decimal) -> int:
    """Whole currency units, rounded half up. Must be positive."""
    amount = round_amount(value)
    if amount <= 0:
        raise InvalidAmount(f"Invoice amount must be greater than 0, got {amount}")
    return amount


@dataclass(frozen=True)
class CustomerInfo:
    given_names: str
    email: str
    mobile_number: str | None = None


@dataclass(frozen=True)
class InvoiceItem:
    name: str
    quantity: int
    price: int
    category: str | None = None


@dataclass(frozen=True)
class CreateInvoiceRequest:
    external_id: str
    amount: int
    payer_email: str
    description: str
    customer: CustomerInfo
    items: list[InvoiceItem] = field(default_factory=list)
    invoice_duration: int = 86400


@dataclass(frozen=True)
class Invoice:
    id: str
    external_id: str
    invoice_url: str
    status: str
    expiry_date: str
    amount: int
    paid_amount: int = 0
    description: str = ""


class InvoiceGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_invoice(self, request: CreateInvoiceRequest) -> Invoice:
        """Create a payable invoice."""
        ...

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice:
        """Fetch an invoice by its gateway id."""
        ...

    @abstractmethod
    def expire_invoice(self, invoice_id: str) -> Invoice:
        """Expire an open invoice so it can no longer be paid."""
        ...
