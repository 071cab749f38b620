# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import Role


class UserRegister(BaseModel):
    """Self-registration, always creates a buyer."""

    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    # bcrypt only reads the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value


class UserLogin(BaseModel):
    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    token: str
    user: UserRead


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Partial update. Stock is not editable here, use restock."""

    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    is_active: bool | None = None


class RestockIn(BaseModel):
    quantity: int = Field(..., gt=0)


class ProductOut(BaseModel):
    id: int
    seller_id: int | None
    name: str
    price: Decimal
    stock: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class ItemQuantityIn(BaseModel):
    # 0 removes the line
    quantity: int = Field(..., ge=0)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    subtotal: Decimal
    available: bool


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    version: int
    items: List[CartItemOut]
    total: Decimal


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    total_price: Decimal
    external_id: str
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class InvoiceOut(BaseModel):
    invoice_id: str
    external_id: str
    invoice_url: str
    amount: int
    status: str
    expiry_date: str

    @classmethod
    def from_invoice(cls, invoice) -> "InvoiceOut":
        return cls(
            invoice_id=invoice.id,
            external_id=invoice.external_id,
            invoice_url=invoice.invoice_url,
            amount=invoice.amount,
            status=invoice.status,
            expiry_date=invoice.expiry_date,
        )


class WebhookPayload(BaseModel):
    """Invoice callback body. Unknown fields are ignored."""

    id: str
    external_id: str
    status: str
    amount: Decimal | None = None
    paid_amount: Decimal | None = None
    payment_channel: str | None = None
    payment_method: str | None = None


class WebhookResult(BaseModel):
    payment_id: int | None
    payment_status: str | None
    order_status: str
    applied: bool


class WebhookResponse(BaseModel):
    success: bool
    message: str
    data: WebhookResult | None = None
