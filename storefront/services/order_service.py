# storefront/services/order_service.py
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import FULFILMENT_TRANSITIONS, OrderStatus
from storefront.domain.errors import (
    ConcurrencyConflict,
    EmptyCart,
    Forbidden,
    InvalidStatus,
    InvalidTransition,
    NotOwner,
    NotPending,
    OrderNotFound,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.gateway.port import InvoiceGateway
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import NotificationService
from storefront.services.pricing_service import PricingService
from storefront.utils.auth import TokenClaims
from storefront.utils.logging import get_logger
from storefront.utils.permissions import can_cancel_order, can_set_order_status, can_view_order

logger = get_logger(__name__)


class OrderService:
    """
    Order ledger: checkout, cancellation and the admin-driven fulfilment
    statuses. Payment-driven statuses belong to the webhook reconciler.
    """

    def __init__(
        self,
        db: Session,
        inventory: InventoryService | None = None,
        pricing: PricingService | None = None,
        gateway: InvoiceGateway | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.payments = PaymentRepo(db)
        self.inventory = inventory or InventoryService(db)
        self.pricing = pricing or PricingService(db)
        self.gateway = gateway
        self.notification_service = NotificationService()

    def create_from_cart(self, user_id: int) -> OrderModel:
        """
        Use Case: checkout.

        1. Prices the cart (snapshot)
        2. Reserves stock for every line
        3. Inserts Order + OrderItems in `pending`
        4. Empties the cart

        All four steps commit together; any failure rolls every one of them back.
        """
        cart = self.carts.get_cart_by_user(user_id)
        items = self.carts.get_cart_items(cart.id) if cart else []
        if not items:
            raise EmptyCart("Cart is empty. Add items to cart before creating order.")

        try:
            snapshot = self.pricing.snapshot(items)

            for line in snapshot.lines:
                self.inventory.reserve(line.product_id, line.quantity)

            order = OrderModel(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                total_price=snapshot.total,
            )
            order.items = [
                OrderItemModel(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    price=line.unit_price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                )
                for line in snapshot.lines
            ]
            self.repo.add_order(order)

            self.carts.delete_cart_items(cart.id)
            rowcount = self.carts.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={"version": cart.version + 1},
            )
            if rowcount == 0:
                raise ConcurrencyConflict("Cart changed during checkout, please retry")

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.id} created for user {user_id}",
            total=str(order.total_price),
            lines=len(snapshot.lines),
        )
        self._notify_safely(self.notification_service.send_order_notification, user_id, order.id)

        return order

    def get_order(self, order_id: int, actor: TokenClaims) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        if not can_view_order(actor.role, order.user_id == actor.user_id):
            raise NotOwner("This is not your order")

        return order

    def list_orders(self, actor: TokenClaims, all_users: bool = False) -> list[OrderModel]:
        if all_users:
            if not can_set_order_status(actor.role):
                raise Forbidden("Only admin can list all orders")
            return self.repo.list_orders()
        return self.repo.list_orders(user_id=actor.user_id)

    def update_status(self, order_id: int, new_status: str, actor: TokenClaims) -> OrderModel:
        if not can_set_order_status(actor.role):
            raise Forbidden("Only admin can update order status")

        try:
            target = OrderStatus(new_status)
        except ValueError:
            target = None
        if target not in FULFILMENT_TRANSITIONS:
            valid = ", ".join(s.value for s in FULFILMENT_TRANSITIONS)
            raise InvalidStatus(f"Invalid status. Valid statuses: {valid}")

        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        current = OrderStatus(order.status)
        if current not in FULFILMENT_TRANSITIONS[target]:
            raise InvalidTransition(f"Cannot move order {order_id} from {current.value} to {target.value}")

        try:
            self.repo.set_status(order, target.value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} status {current.value} -> {target.value}")
        return order

    def cancel(self, order_id: int, actor: TokenClaims) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        if not can_cancel_order(actor.role, order.user_id == actor.user_id):
            raise NotOwner("This is not your order")

        if order.status != OrderStatus.PENDING.value:
            raise NotPending(f"Only pending orders can be cancelled, order {order_id} is {order.status}")

        try:
            for item in order.items:
                self.inventory.release(item.product_id, item.quantity)
            self.repo.set_status(order, OrderStatus.CANCELLED.value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} cancelled by user {actor.user_id}, stock released")

        payment = self.payments.get_by_order(order.id)
        if self.gateway is not None and payment is not None and payment.invoice_id:
            self._notify_safely(self.gateway.expire_invoice, payment.invoice_id)

        return order

    def _notify_safely(self, action, *args) -> None:
        # the order is already committed, a side effect failing must not undo it
        try:
            action(*args)
        except Exception as e:
            logger.warning(f"Post-commit action {getattr(action, '__name__', action)} failed: {e}")
