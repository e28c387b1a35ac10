"""
Identity provider.

Registers accounts, checks passwords and turns bearer tokens back into
users. Every other component only ever sees the resulting `user_id`.

Passwords are hashed with passlib (pbkdf2_sha256); tokens are HS256 JWTs
signed with python-jose, `sub` holding the user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AuthSettings, get_settings
from finance_tracker.errors import EmailAlreadyRegisteredError, UnauthorizedError
from finance_tracker.models.user import User, UserCreate
from finance_tracker.services.storage import DuplicateError, UserStorageInterface


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class IdentityService:
    def __init__(
        self,
        users: UserStorageInterface,
        settings: Optional[AuthSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = users
        self._settings = settings or get_settings().auth
        self._audit = audit_logger or AuditLogger()

    def create_access_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self._settings.access_token_expire_minutes)
        )
        return jwt.encode(
            {"sub": str(user_id), "exp": expire},
            self._settings.secret_key,
            algorithm=self._settings.algorithm,
        )

    async def register(self, data: UserCreate) -> User:
        email = data.email.lower()
        if await self._users.get_by_email(email) is not None:
            raise EmailAlreadyRegisteredError("Email already registered")

        user = User(
            email=email,
            name=data.name,
            password_hash=get_password_hash(data.password),
        )
        try:
            user = await self._users.save(user)
        except DuplicateError as e:
            raise EmailAlreadyRegisteredError("Email already registered") from e

        await self._audit.log_user_registered(user.id, user.email)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Raises UnauthorizedError for an unknown email or a wrong password alike."""
        user = await self._users.get_by_email(email.lower())
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Incorrect email or password")
        if not user.is_active:
            raise UnauthorizedError("Account is disabled")

        await self._audit.log_user_logged_in(user.id)
        return user

    async def resolve(self, token: Optional[str]) -> User:
        """Bearer token to active user, or UnauthorizedError."""
        if not token:
            raise UnauthorizedError("Not authenticated")
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key,
                algorithms=[self._settings.algorithm],
            )
            subject = payload.get("sub")
            if not isinstance(subject, str):
                raise JWTError("Token subject must be a string")
            user_id = UUID(subject)
        except (JWTError, ValueError) as e:
            raise UnauthorizedError("Could not validate credentials") from e

        user = await self._users.get_by_id(user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("Could not validate credentials")
        return user
