# storefront/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import ProductCreate, ProductOut, ProductUpdate, RestockIn
from storefront.services.product_service import ProductService
from storefront.utils.auth import TokenClaims

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return ProductService(db).list_products()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).get_product(product_id)
    except StorefrontError as e:
        raise to_http(e)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).create_product(payload, user)
    except StorefrontError as e:
        raise to_http(e)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).update_product(product_id, payload, user)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/{product_id}/restock", response_model=ProductOut)
def restock_product(
    product_id: int,
    payload: RestockIn,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).restock(product_id, payload.quantity, user)
    except StorefrontError as e:
        raise to_http(e)
