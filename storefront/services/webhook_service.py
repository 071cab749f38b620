# storefront/services/webhook_service.py
import hmac
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.payment import PaymentModel
from storefront.domain.enums import (
    WEBHOOK_ORDER_TRANSITIONS,
    WEBHOOK_PAYMENT_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
)
from storefront.domain.errors import InvalidWebhookToken, MalformedReference, OrderNotFound
from storefront.domain.schemas import WebhookPayload
from storefront.repos.order_repo import OrderRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.notification_service import NotificationService
from storefront.services.pricing_service import to_money
from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)

_REFERENCE = re.compile(r"ORDER-(\d+)")


def parse_order_id(external_id: str) -> int:
    match = _REFERENCE.fullmatch(external_id or "")
    if not match:
        raise MalformedReference(f"Invalid external_id format: {external_id!r}, expected ORDER-<id>")
    return int(match.group(1))


@dataclass
class ReconcileResult:
    order: OrderModel
    payment: PaymentModel | None
    applied: bool
    changed: bool = False


class WebhookService:
    """
    Reconciles invoice callbacks with local orders and payments.

    A callback is authenticated, its reference parsed, and then Payment and
    Order are updated in a single transaction. Callbacks are replayed by the
    gateway, so the same body must be safe to apply any number of times.
    """

    def __init__(self, db: Session, settings: Settings):
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.settings = settings
        self.notification_service = NotificationService()

    def authenticate(self, callback_token: str | None) -> None:
        expected = self.settings.xendit_webhook_token
        if not expected:
            if self.settings.webhook_allow_unverified:
                logger.warning("Webhook verification disabled, accepting unverified callback")
                return
            raise InvalidWebhookToken("Webhook verification is not configured")

        if not callback_token or not hmac.compare_digest(
            callback_token.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning("Rejected webhook with invalid callback token")
            raise InvalidWebhookToken("Invalid webhook token")

    def handle(self, payload: WebhookPayload, callback_token: str | None) -> ReconcileResult:
        self.authenticate(callback_token)
        return self.reconcile(payload)

    def reconcile(self, payload: WebhookPayload) -> ReconcileResult:
        """Apply an already authenticated callback."""
        order_id = parse_order_id(payload.external_id)
        status = PaymentStatus.from_gateway(payload.status)

        logger.info(
            f"Webhook for {payload.external_id}",
            invoice_id=payload.id,
            gateway_status=payload.status,
            mapped=status.value,
        )

        try:
            result = self._reconcile(order_id, payload, status)
        except Exception:
            self.orders.rollback()
            raise

        if result.changed:
            self._notify_safely(result.order.user_id, result.order.id, status.value)

        return result

    def _reconcile(self, order_id: int, payload: WebhookPayload, status: PaymentStatus) -> ReconcileResult:
        order = self.orders.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        payment = self.payments.get_by_external_id(payload.external_id)
        current_order = OrderStatus(order.status)
        target_order = status.to_order_status()

        payment_ok = payment is None or status in WEBHOOK_PAYMENT_TRANSITIONS[PaymentStatus(payment.status)]
        order_ok = target_order in WEBHOOK_ORDER_TRANSITIONS.get(current_order, set())
        if not payment_ok:
            logger.warning(
                f"Ignoring stale webhook for order {order_id}",
                order_status=current_order.value,
                payment_status=payment.status,
                incoming=status.value,
            )
            return ReconcileResult(order, payment, applied=False)

        payment = self._upsert_payment(order, payment, payload, status)

        if not order_ok:
            # the payment is still recorded, the order keeps its state
            if status.is_paid:
                logger.warning(
                    f"Payment received for order {order_id} in state {current_order.value}, refund required",
                    payment_id=payment.id,
                    paid_amount=str(payment.paid_amount),
                )
            else:
                logger.warning(
                    f"Order {order_id} in state {current_order.value} not moved to {target_order.value}",
                    payment_id=payment.id,
                )
            self.orders.commit()
            return ReconcileResult(order, payment, applied=False)

        changed = current_order is not target_order
        self.orders.set_status(order, target_order.value)
        self.orders.commit()

        logger.info(
            f"Order {order_id} reconciled",
            payment_id=payment.id,
            payment_status=payment.status,
            order_status=f"{current_order.value} -> {target_order.value}",
        )
        return ReconcileResult(order, payment, applied=True, changed=changed)

    def _upsert_payment(
        self,
        order: OrderModel,
        payment: PaymentModel | None,
        payload: WebhookPayload,
        status: PaymentStatus,
    ) -> PaymentModel:
        is_new = payment is None
        if is_new:
            amount = payload.amount if payload.amount is not None else order.total_price
            payment = PaymentModel(order_id=order.id, external_id=payload.external_id, amount=to_money(amount))
        elif payload.amount is not None:
            payment.amount = to_money(payload.amount)

        payment.status = status.value
        payment.invoice_id = payload.id
        payment.gateway_status = payload.status
        if payload.payment_channel:
            payment.payment_channel = payload.payment_channel
        if payload.payment_method:
            payment.payment_method = payload.payment_method
            payment.method = payload.payment_method
        if payload.paid_amount is not None:
            payment.paid_amount = to_money(payload.paid_amount)
        # first paid callback wins, replays keep the original timestamp
        if status.is_paid and payment.paid_at is None:
            payment.paid_at = datetime.now(timezone.utc)

        if is_new:
            self.payments.add_payment(payment)
        return payment

    def _notify_safely(self, user_id: int, order_id: int, status: str) -> None:
        # already committed, a broker outage must not turn the callback into an error
        try:
            self.notification_service.send_payment_notification(user_id, order_id, status)
        except Exception as e:
            logger.warning(f"Payment notification for order {order_id} failed: {e}")

