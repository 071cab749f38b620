# storefront/utils/auth.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from storefront.domain.enums import Role
from storefront.domain.errors import InvalidToken

_BCRYPT_ROUNDS = 12
_JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    username: str
    role: Role


def hash_password(password: str, rounds: int = _BCRYPT_ROUNDS) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        # not a bcrypt hash
        return False


def issue_token(claims: TokenClaims, secret: str, ttl_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(claims.user_id),
        "user_id": claims.user_id,
        "email": claims.email,
        "username": claims.username,
        "role": claims.role.value,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALGORITHM)


def verify_token(token: str, secret: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, secret, algorithms=[_JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken(f"Invalid token: {e}") from e

    try:
        return TokenClaims(
            user_id=int(payload["user_id"]),
            email=payload["email"],
            username=payload["username"],
            role=Role(payload["role"]),
        )
    except (KeyError, ValueError) as e:
        raise InvalidToken("Token is missing required claims") from e
