# storefront/repos/product_repo.py
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel

_products = ProductModel.__table__


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars()
        return {p.id: p for p in rows}

    def list_products(self, active_only: bool = True, seller_id: int | None = None) -> list[ProductModel]:
        stmt = select(ProductModel).order_by(ProductModel.id)
        if active_only:
            stmt = stmt.where(ProductModel.is_active.is_(True))
        if seller_id is not None:
            stmt = stmt.where(ProductModel.seller_id == seller_id)
        return list(self.db.execute(stmt).scalars())

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product(self, product: ProductModel, changes: dict) -> ProductModel:
        for field, value in changes.items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        Compare-and-swap on the stock counter. Matches only when the product
        is active and still has enough units, so the counter can never go
        below zero even with concurrent writers.
        """
        result = self.db.execute(
            update(_products)
            .where(
                _products.c.id == product_id,
                _products.c.is_active.is_(True),
                _products.c.stock >= quantity,
            )
            .values(stock=_products.c.stock - quantity)
        )
        self._refresh(product_id, result.rowcount)
        return result.rowcount

    def increment_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(_products)
            .where(_products.c.id == product_id)
            .values(stock=_products.c.stock + quantity)
        )
        self._refresh(product_id, result.rowcount)
        return result.rowcount

    def _refresh(self, product_id: int, rowcount: int) -> None:
        # core UPDATE bypasses the identity map
        if rowcount:
            self.db.get(ProductModel, product_id, populate_existing=True)
