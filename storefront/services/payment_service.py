# storefront/services/payment_service.py
from sqlalchemy.orm import Session

from storefront.data.models.payment import PaymentModel
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.errors import Forbidden, NotOwner, NotPending, OrderNotFound, ValidationFailed
from storefront.repos.order_repo import OrderRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.gateway.port import (
    CreateInvoiceRequest,
    CustomerInfo,
    Invoice,
    InvoiceGateway,
    InvoiceItem,
    round_amount,
    to_gateway_amount,
)
from storefront.utils.auth import TokenClaims
from storefront.utils.logging import get_logger
from storefront.utils.permissions import can_manage_invoices
from storefront.utils.settings import Settings

logger = get_logger(__name__)


class PaymentService:
    """
    Opens invoices for pending orders. The order is already committed when
    this runs; a gateway failure leaves it pending and payable later.
    """

    def __init__(self, db: Session, gateway: InvoiceGateway, settings: Settings):
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.gateway = gateway
        self.settings = settings

    def create_payment(self, order_id: int, actor: TokenClaims) -> Invoice:
        order = self.orders.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        if order.user_id != actor.user_id:
            raise NotOwner("This is not your order")

        if order.status != OrderStatus.PENDING.value:
            raise NotPending(f"Order {order_id} is {order.status}, only pending orders can be paid")

        if not order.items:
            raise ValidationFailed(f"Order {order_id} has no items")

        request = CreateInvoiceRequest(
            external_id=order.external_id,
            amount=to_gateway_amount(order.total_price),
            payer_email=actor.email,
            description=f"Payment for Order #{order.id}",
            customer=CustomerInfo(given_names=actor.username, email=actor.email),
            items=[
                InvoiceItem(name=item.product_name, quantity=item.quantity, price=round_amount(item.price))
                for item in order.items
            ],
            invoice_duration=self.settings.invoice_duration_seconds,
        )

        invoice = self.gateway.create_invoice(request)
        self._record_invoice(order, invoice)

        logger.info(f"Invoice {invoice.id} created for order {order.id}", amount=invoice.amount)
        return invoice

    def get_invoice(self, invoice_id: str, actor: TokenClaims) -> Invoice:
        if not can_manage_invoices(actor.role):
            payment = self.payments.get_by_invoice_id(invoice_id)
            order = self.orders.get_order(payment.order_id) if payment else None
            if order is None or order.user_id != actor.user_id:
                raise NotOwner("This is not your invoice")

        return self.gateway.get_invoice(invoice_id)

    def expire_invoice(self, invoice_id: str, actor: TokenClaims) -> Invoice:
        if not can_manage_invoices(actor.role):
            raise Forbidden("Only admin can expire invoices")

        invoice = self.gateway.expire_invoice(invoice_id)
        logger.info(f"Invoice {invoice_id} expired by user {actor.user_id}")
        return invoice

    def _record_invoice(self, order, invoice: Invoice) -> None:
        # one payment row per order reference; a new invoice replaces the old one
        try:
            payment = self.payments.get_by_external_id(order.external_id)
            if payment is None:
                payment = self.payments.add_payment(
                    PaymentModel(order_id=order.id, external_id=order.external_id, amount=order.total_price)
                )
            payment.invoice_id = invoice.id
            payment.gateway_status = invoice.status
            payment.status = PaymentStatus.PENDING.value
            self.payments.commit()
        except Exception:
            self.payments.rollback()
            raise
