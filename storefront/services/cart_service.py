from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartItemNotFound,
    ConcurrencyConflict,
    InsufficientStock,
    InvalidQuantity,
    NotOwner,
    ProductInactive,
    ProductNotFound,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.pricing_service import to_money
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases for the cart: commands (add, update, remove, clear) change
    state, list only reads it.

    Adding to the cart only checks availability. Stock is reserved at
    checkout, so several carts may hold the last unit until one of them
    checks out.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # query
    def list_items(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)

        lines = []
        for item in items:
            product = products[item.product_id]
            price = to_money(product.price)
            lines.append(
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": product.name,
                    "quantity": item.quantity,
                    "price": price,
                    "subtotal": price * item.quantity,
                    "available": bool(product.is_active) and product.stock >= item.quantity,
                }
            )

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "version": cart.version,
            "items": lines,
            "total": sum((line["subtotal"] for line in lines), Decimal("0.00")),
        }

    def get_or_create_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_cart_by_user(user_id)
        if existing:
            return existing

        created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
        self.repo.commit()

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    # commands
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")

        cart = self.get_or_create_cart(user_id)

        try:
            existing_item = self.repo.get_cart_item(cart.id, product_id)
            combined = quantity + (existing_item.quantity if existing_item else 0)
            self._check_available(product_id, combined)

            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, "
                    f"quantity {existing_item.quantity} -> {combined}"
                )
                existing_item.quantity = combined
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding product {product_id} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                )

            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.list_items(user_id)

    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            return self.remove_item(user_id, item_id)

        cart = self.get_or_create_cart(user_id)
        item = self._owned_item(cart, item_id)

        try:
            self._check_available(item.product_id, quantity)
            item.quantity = quantity
            self.repo.add_cart_item(item)
            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} quantity set to {quantity}")
        return self.list_items(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        item = self._owned_item(cart, item_id)

        try:
            self.repo.delete_cart_item(item)
            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} removed from cart {cart.id}")
        return self.list_items(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)

        try:
            removed = self.repo.delete_cart_items(cart.id)
            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart.id} cleared, {removed} item(s) removed")
        return self.list_items(user_id)

    # helpers
    def _owned_item(self, cart: CartModel, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if item is None:
            raise CartItemNotFound(item_id)
        if item.cart_id != cart.id:
            raise NotOwner("Cart item belongs to another user")
        return item

    def _check_available(self, product_id: int, quantity: int) -> None:
        product = self.products.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if not product.is_active:
            raise ProductInactive(product.name)
        if product.stock < quantity:
            raise InsufficientStock(product.name, requested=quantity, available=product.stock)

    def _bump_version(self, cart: CartModel) -> None:
        # optimistic locking: UPDATE ... WHERE version = :old
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )
        if rowcount == 0:
            raise ConcurrencyConflict()
