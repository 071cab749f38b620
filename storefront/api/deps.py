# storefront/api/deps.py
from functools import lru_cache

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.domain.errors import InvalidToken, StorefrontError
from storefront.services.gateway import build_gateway
from storefront.services.gateway.port import InvoiceGateway
from storefront.utils.auth import TokenClaims, verify_token
from storefront.utils.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


def to_http(e: StorefrontError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
    return HTTPException(status_code=e.status_code, detail=str(e), headers=headers)


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def _gateway() -> InvoiceGateway:
    return build_gateway(get_settings())


def get_gateway() -> InvoiceGateway:
    return _gateway()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_app_settings),
) -> TokenClaims:
    try:
        if credentials is None:
            raise InvalidToken("Missing bearer token")
        return verify_token(credentials.credentials, settings.jwt_secret)
    except InvalidToken as e:
        raise to_http(e)
