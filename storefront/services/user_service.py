from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.enums import Role
from storefront.domain.errors import DuplicateUser, InvalidCredentials, UserNotFound
from storefront.domain.schemas import AuthResponse, UserLogin, UserRead, UserRegister
from storefront.repos.user_repo import UserRepo
from storefront.utils.auth import TokenClaims, hash_password, issue_token, verify_password
from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, settings: Settings):
        self.repo = UserRepo(db)
        self.settings = settings

    def register(self, payload: UserRegister) -> AuthResponse:
        username = payload.username.strip()
        email = payload.email.strip().lower()

        if self.repo.get_by_username(username):
            raise DuplicateUser(f"Username {username!r} is already taken")
        if self.repo.get_by_email(email):
            raise DuplicateUser(f"Email {email!r} is already registered")

        # sellers and admins are provisioned, never self-registered
        user = self.repo.create_user(
            UserModel(
                username=username,
                email=email,
                password_hash=hash_password(payload.password),
                role=Role.BUYER.value,
            )
        )
        logger.info(f"Registered user {user.id}", username=username)
        return self._auth_response(user)

    def login(self, payload: UserLogin) -> AuthResponse:
        identifier = payload.username_or_email.strip()
        if "@" in identifier:
            user = self.repo.get_by_email(identifier.lower())
        else:
            user = self.repo.get_by_username(identifier)

        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt", identifier=identifier)
            raise InvalidCredentials()

        return self._auth_response(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return UserRead.model_validate(user)

    def _auth_response(self, user: UserModel) -> AuthResponse:
        claims = TokenClaims(
            user_id=user.id,
            email=user.email,
            username=user.username,
            role=Role(user.role),
        )
        token = issue_token(claims, self.settings.jwt_secret, self.settings.jwt_ttl_seconds)
        return AuthResponse(token=token, user=UserRead.model_validate(user))
