# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CartOut, ItemIn, ItemQuantityIn
from storefront.services.cart_service import CartService
from storefront.utils.auth import TokenClaims

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(user: TokenClaims = Depends(get_current_user), db: Session = Depends(get_db)):
    return CartService(db).list_items(user.user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.add_item(user.user_id, payload.product_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: ItemQuantityIn,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.update_quantity(user.user_id, item_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.remove_item(user.user_id, item_id)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("", response_model=CartOut)
def clear_cart(user: TokenClaims = Depends(get_current_user), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        return svc.clear(user.user_id)
    except StorefrontError as e:
        raise to_http(e)
