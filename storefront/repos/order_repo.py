# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id, options=[selectinload(OrderModel.items)])

    def list_orders(self, user_id: int | None = None) -> list[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items)).order_by(OrderModel.id.desc())
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars())

    def set_status(self, order: OrderModel, status: str) -> OrderModel:
        order.status = status
        self.db.flush()
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
