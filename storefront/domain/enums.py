# storefront/domain/enums.py
from enum import Enum


class Role(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SETTLED = "settled"
    EXPIRED = "expired"
    FAILED = "failed"

    @classmethod
    def from_gateway(cls, raw: str | None) -> "PaymentStatus":
        """Total mapping of a gateway status string, unknown values become FAILED."""
        value = (raw or "").strip().upper()
        if value in ("PAID", "SETTLED"):
            return cls.PAID
        if value == "PENDING":
            return cls.PENDING
        if value == "EXPIRED":
            return cls.EXPIRED
        return cls.FAILED

    @property
    def is_paid(self) -> bool:
        return self in (PaymentStatus.PAID, PaymentStatus.SETTLED)

    def to_order_status(self) -> OrderStatus:
        if self.is_paid:
            return OrderStatus.PAID
        if self is PaymentStatus.EXPIRED:
            return OrderStatus.EXPIRED
        if self is PaymentStatus.PENDING:
            return OrderStatus.PENDING
        return OrderStatus.FAILED


# admin-settable statuses and the state each one must come from
FULFILMENT_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.PAID},
    OrderStatus.SHIPPED: {OrderStatus.PROCESSING},
    OrderStatus.DELIVERED: {OrderStatus.SHIPPED},
}

# order states a payment notification may move from, and where to
WEBHOOK_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PENDING,
        OrderStatus.PAID,
        OrderStatus.EXPIRED,
        OrderStatus.FAILED,
    },
    OrderStatus.EXPIRED: {OrderStatus.PAID},
    OrderStatus.FAILED: {OrderStatus.PAID},
    OrderStatus.PAID: {OrderStatus.PAID},
}

WEBHOOK_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: set(PaymentStatus),
    PaymentStatus.EXPIRED: {PaymentStatus.EXPIRED, PaymentStatus.PAID, PaymentStatus.SETTLED},
    PaymentStatus.FAILED: {PaymentStatus.FAILED, PaymentStatus.PAID, PaymentStatus.SETTLED},
    PaymentStatus.PAID: {PaymentStatus.PAID, PaymentStatus.SETTLED},
    PaymentStatus.SETTLED: {PaymentStatus.PAID, PaymentStatus.SETTLED},
}
