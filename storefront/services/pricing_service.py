# storefront/services/pricing_service.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import EmptyCart, InsufficientStock, ProductInactive, ProductNotFound
from storefront.repos.product_repo import ProductRepo

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SnapshotLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class PricingSnapshot:
    lines: tuple[SnapshotLine, ...]
    total: Decimal


class PricingService:
    """
    Prices a cart at a single point in time. All-or-nothing: one bad line
    fails the whole snapshot.
    """

    def __init__(self, db: Session):
        self.products = ProductRepo(db)

    def snapshot(self, items: Sequence[CartItemModel]) -> PricingSnapshot:
        if not items:
            raise EmptyCart()

        products = self.products.get_products(i.product_id for i in items)

        lines = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise ProductNotFound(item.product_id)
            if not product.is_active:
                raise ProductInactive(product.name)
            if product.stock < item.quantity:
                raise InsufficientStock(product.name, requested=item.quantity, available=product.stock)

            unit_price = to_money(product.price)
            lines.append(
                SnapshotLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=(unit_price * item.quantity).quantize(CENTS),
                )
            )

        total = sum((line.subtotal for line in lines), Decimal("0.00"))
        return PricingSnapshot(lines=tuple(lines), total=total)
