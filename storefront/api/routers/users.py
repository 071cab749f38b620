from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_app_settings, get_current_user, to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import AuthResponse, UserLogin, UserRead, UserRegister
from storefront.services.user_service import UserService
from storefront.utils.auth import TokenClaims
from storefront.utils.settings import Settings

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    payload: UserRegister,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    service = UserService(db, settings)
    try:
        return service.register(payload)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    service = UserService(db, settings)
    try:
        return service.login(payload)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/me", response_model=UserRead)
def me(
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    service = UserService(db, settings)
    try:
        return service.get_user(user.user_id)
    except StorefrontError as e:
        raise to_http(e)
