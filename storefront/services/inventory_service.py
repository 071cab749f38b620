# storefront/services/inventory_service.py
from sqlalchemy.orm import Session

from storefront.domain.errors import (
    InsufficientStock,
    InvalidQuantity,
    ProductInactive,
    ProductNotFound,
)
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Stock ledger. Operations never commit: they join the caller's
    transaction, so a reservation lives or dies with the order it belongs to.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def reserve(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")

        if self.repo.decrement_stock(product_id, quantity) == 1:
            logger.debug(f"Reserved {quantity} unit(s) of product {product_id}")
            return

        # the CAS missed, read the row to say why
        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if not product.is_active:
            raise ProductInactive(product.name)

        logger.info(
            f"Reservation rejected for product {product_id}: "
            f"requested {quantity}, available {product.stock}"
        )
        raise InsufficientStock(product.name, requested=quantity, available=product.stock)

    def release(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")

        if self.repo.increment_stock(product_id, quantity) == 0:
            raise ProductNotFound(product_id)

        logger.debug(f"Released {quantity} unit(s) of product {product_id}")

    def restock(self, product_id: int, quantity: int) -> None:
        self.release(product_id, quantity)
        logger.info(f"Product {product_id} restocked with {quantity} unit(s)")
