import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import AuthProvider, User
from app.features.auth.schemas.auth import TokenResponse, UserResponse
from app.features.auth.utils.oauth import GoogleOAuthVerifier
from app.features.auth.utils.security import (
    REFRESH_TOKEN,
    TokenIssuer,
    hash_password,
    verify_password,
)
from app.features.auth.utils.username_generator import generate_unique_username
from app.features.auth.utils.verification import VerificationCodeManager, VerificationFlow
from app.platform.exceptions import (
    ConflictError,
    InternalError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    WrongCredentialsError,
)
from app.platform.utils.validators import (
    is_allowed_email_domain,
    is_valid_email,
    is_valid_password,
    is_valid_username,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        tokens: TokenIssuer,
        codes: Optional[VerificationCodeManager] = None,
        google: Optional[GoogleOAuthVerifier] = None,
    ):
        self.db = db
        self.tokens = tokens
        self.codes = codes
        self.google = google

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email), User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.username == username, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.google_id == google_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    def build_token_response(self, user: User) -> TokenResponse:
        return TokenResponse(
            user=UserResponse.model_validate(user),
            access_token=self.tokens.issue_access_token(user.id, user.username),
            refresh_token=self.tokens.issue_refresh_token(user.id, user.username),
            expires_in=self.tokens.access_expires_in,
        )

    async def _save_new_user(self, user: User) -> User:
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("邮箱或用户名已被使用")
        return user

    async def register(self, email: str, username: str, password: str) -> TokenResponse:
        email = normalize_email(email)
        username = username.strip()

        if not is_valid_email(email):
            raise ValidationError("邮箱格式不正确")
        if not is_allowed_email_domain(email):
            raise ValidationError("不支持该邮箱域名，请使用常见邮箱注册")
        if not is_valid_username(username):
            raise ValidationError("用户名长度必须在3-50个字符之间")
        if not is_valid_password(password):
            raise ValidationError("密码至少8位，且必须包含字母和数字")

        if await self.get_user_by_email(email):
            raise ConflictError("邮箱已被注册")
        if await self.get_user_by_username(username):
            raise ConflictError("用户名已被使用")

        user = await self._save_new_user(
            User(
                email=email,
                username=username,
                password_hash=hash_password(password),
                auth_provider=AuthProvider.LOCAL,
            )
        )
        logger.info(f"Registered user {user.id} ({user.username})")
        return self.build_token_response(user)

    async def login(self, username_or_email: str, password: str) -> TokenResponse:
        """
        Password login by username or email.

        Unknown accounts, accounts without a password and wrong passwords all
        raise the same WrongCredentialsError.
        """
        identifier = username_or_email.strip()
        user = await self.get_user_by_username(identifier)
        if user is None:
            user = await self.get_user_by_email(identifier)

        if user is None or not verify_password(password, user.password_hash):
            raise WrongCredentialsError()

        return self.build_token_response(user)

    async def _require_registered(self, email: str) -> None:
        if await self.get_user_by_email(email) is None:
            raise NotFoundError("该邮箱未注册")

    async def send_login_code(self, email: str) -> str:
        """Send a login code to a registered email. Returns the masked address."""
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError("邮箱格式不正确")
        return await self._code_manager().issue(
            email, VerificationFlow.LOGIN_CODE, precheck=self._require_registered
        )

    async def login_with_code(self, email: str, code: str) -> TokenResponse:
        email = normalize_email(email)
        await self._code_manager().verify(email, code, VerificationFlow.LOGIN_CODE)

        user = await self.get_user_by_email(email)
        if user is None:
            raise WrongCredentialsError()

        return self.build_token_response(user)

    async def refresh(self, refresh_token: str) -> TokenResponse:
        claims = self.tokens.parse_token(refresh_token, expected_type=REFRESH_TOKEN)

        user = await self.get_user_by_id(claims.user_id)
        if user is None:
            raise InvalidTokenError("用户不存在")

        return self.build_token_response(user)

    async def google_login(self, token: str) -> TokenResponse:
        """
        Sign in with a Google ID token.

        Lookup order is google id, then email (the local account gets linked),
        then a brand new account with a generated username.
        """
        if self.google is None:
            raise InternalError("Google 登录未配置")

        info = await self.google.verify_token(token)
        if not info.email or not info.email_verified:
            raise UnauthorizedError("Google 邮箱未验证")

        user = await self.get_user_by_google_id(info.sub)
        if user is not None:
            return self.build_token_response(user)

        user = await self.get_user_by_email(info.email)
        if user is not None:
            user.google_id = info.sub
            user.auth_provider = AuthProvider.GOOGLE
            if not user.avatar_url and info.picture:
                user.avatar_url = info.picture
            try:
                await self.db.commit()
                await self.db.refresh(user)
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("该 Google 账号已绑定其他用户")
            logger.info(f"Linked Google account to user {user.id}")
            return self.build_token_response(user)

        username = await generate_unique_username(info.email, self.db)
        user = await self._save_new_user(
            User(
                email=normalize_email(info.email),
                username=username,
                google_id=info.sub,
                auth_provider=AuthProvider.GOOGLE,
                avatar_url=info.picture,
            )
        )
        logger.info(f"Created user {user.id} from Google sign-in")
        return self.build_token_response(user)

    def _code_manager(self) -> VerificationCodeManager:
        if self.codes is None:
            raise InternalError("验证码服务未配置")
        return self.codes
