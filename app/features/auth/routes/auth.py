from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.schemas.auth import (
    GoogleAuthRequest,
    LoginRequest,
    LoginWithCodeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SendLoginCodeRequest,
    UserResponse,
)
from app.features.auth.schemas.password_reset import (
    ChangePasswordRequest,
    CodeSentResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SetPasswordRequest,
)
from app.features.auth.services import password_reset
from app.features.auth.services.auth_service import AuthService
from app.features.auth.utils.oauth import GoogleOAuthVerifier
from app.features.auth.utils.security import ACCESS_TOKEN, TokenIssuer
from app.features.auth.utils.verification import VerificationCodeManager
from app.platform.cache.redis import get_redis
from app.platform.config import Settings, get_settings
from app.platform.db.session import get_db
from app.platform.exceptions import UnauthorizedError
from app.platform.response import api_response
from app.platform.services.email import EmailSender, get_email_sender

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


def get_google_verifier(settings: Settings = Depends(get_settings)) -> GoogleOAuthVerifier:
    return GoogleOAuthVerifier(settings.GOOGLE_CLIENT_ID)


def get_code_manager(
    redis: Redis = Depends(get_redis),
    email_sender: EmailSender = Depends(get_email_sender),
) -> VerificationCodeManager:
    return VerificationCodeManager(redis, email_sender)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    codes: VerificationCodeManager = Depends(get_code_manager),
    google: GoogleOAuthVerifier = Depends(get_google_verifier),
) -> AuthService:
    return AuthService(db, tokens, codes=codes, google=google)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """
    Dependency to get the current authenticated user.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("未提供认证令牌")

    claims = tokens.parse_token(credentials.credentials, expected_type=ACCESS_TOKEN)

    user = await AuthService(db, tokens).get_user_by_id(claims.user_id)
    if user is None:
        raise UnauthorizedError("用户不存在")

    return user


@router.post("/register", response_model=dict, summary="Register a new user")
async def register(request: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    token_response = await auth_service.register(request.email, request.username, request.password)
    return api_response(data=token_response, message="注册成功")


@router.post("/login", response_model=dict, summary="Login with username or email")
async def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    token_response = await auth_service.login(request.username, request.password)
    return api_response(data=token_response, message="登录成功")


@router.post("/google", response_model=dict, summary="Login with a Google ID token")
async def google_login(
    request: GoogleAuthRequest, auth_service: AuthService = Depends(get_auth_service)
):
    token_response = await auth_service.google_login(request.id_token)
    return api_response(data=token_response, message="登录成功")


@router.post("/refresh", response_model=dict, summary="Refresh the token pair")
async def refresh(request: RefreshTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    token_response = await auth_service.refresh(request.refresh_token)
    return api_response(data=token_response, message="刷新成功")


@router.get("/me", response_model=dict, summary="Get current user")
async def me(current_user: User = Depends(get_current_user)):
    return api_response(data=UserResponse.model_validate(current_user))


@router.post("/forgot-password", response_model=dict, summary="Request a password reset code")
async def forgot_password(
    request: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    codes: VerificationCodeManager = Depends(get_code_manager),
):
    masked = await password_reset.request_reset(db, codes, request.email)
    return api_response(data=CodeSentResponse(masked_email=masked), message="验证码已发送")


@router.post("/reset-password", response_model=dict, summary="Reset password with a code")
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    codes: VerificationCodeManager = Depends(get_code_manager),
):
    await password_reset.reset_password(db, codes, request.email, request.code, request.new_password)
    return api_response(message="密码重置成功")


@router.post("/change-password", response_model=dict, summary="Change password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    codes: VerificationCodeManager = Depends(get_code_manager),
):
    await password_reset.change_password(
        db, codes, current_user.id, request.current_password, request.new_password
    )
    return api_response(message="密码修改成功")


@router.post("/set-password", response_model=dict, summary="Set a password for Google accounts")
async def set_password(
    request: SetPasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await password_reset.set_initial_password(db, current_user.id, request.new_password)
    return api_response(message="密码设置成功")


@router.post("/send-login-code", response_model=dict, summary="Request a login code")
async def send_login_code(
    request: SendLoginCodeRequest, auth_service: AuthService = Depends(get_auth_service)
):
    masked = await auth_service.send_login_code(request.email)
    return api_response(data=CodeSentResponse(masked_email=masked), message="验证码已发送")


@router.post("/login-code", response_model=dict, summary="Login with an emailed code")
async def login_with_code(
    request: LoginWithCodeRequest, auth_service: AuthService = Depends(get_auth_service)
):
    token_response = await auth_service.login_with_code(request.email, request.code)
    return api_response(data=token_response, message="登录成功")
