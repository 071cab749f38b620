# storefront/services/product_service.py
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import Forbidden, NotOwner, ProductNotFound
from storefront.domain.schemas import ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.pricing_service import to_money
from storefront.utils.auth import TokenClaims
from storefront.utils.logging import get_logger
from storefront.utils.permissions import can_create_product, can_manage_product

logger = get_logger(__name__)


class ProductService:
    """Catalogue maintenance. Stock only changes through the inventory ledger."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.inventory = InventoryService(db)

    def list_products(self) -> list[ProductModel]:
        return self.repo.list_products(active_only=True)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def create_product(self, payload: ProductCreate, actor: TokenClaims) -> ProductModel:
        if not can_create_product(actor.role):
            raise Forbidden("Only sellers and admins can create products")

        product = self.repo.create_product(
            ProductModel(
                seller_id=actor.user_id,
                name=payload.name,
                price=to_money(payload.price),
                stock=payload.stock,
                is_active=True,
            )
        )
        logger.info(f"Product {product.id} created by user {actor.user_id}", stock=product.stock)
        return product

    def update_product(self, product_id: int, payload: ProductUpdate, actor: TokenClaims) -> ProductModel:
        product = self._managed(product_id, actor)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "price" in changes:
            changes["price"] = to_money(changes["price"])

        return self.repo.update_product(product, changes)

    def restock(self, product_id: int, quantity: int, actor: TokenClaims) -> ProductModel:
        self._managed(product_id, actor)

        try:
            self.inventory.restock(product_id, quantity)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return self.get_product(product_id)

    def _managed(self, product_id: int, actor: TokenClaims) -> ProductModel:
        product = self.get_product(product_id)
        if not can_manage_product(actor.role, product.seller_id == actor.user_id):
            raise NotOwner("You can only manage your own products")
        return product
