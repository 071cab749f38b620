# storefront/data/models/payment.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric

from storefront.data.database import Base
from storefront.domain.enums import PaymentStatus


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    # "ORDER-{order_id}", one payment per reference
    external_id = Column(String(64), nullable=False, unique=True)

    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    invoice_id = Column(String(255), nullable=True)
    gateway_status = Column(String(50), nullable=True)
    payment_channel = Column(String(50), nullable=True)
    payment_method = Column(String(50), nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
