from app.features.auth.schemas.auth import (
    GoogleAuthRequest,
    LoginRequest,
    LoginWithCodeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SendLoginCodeRequest,
    TokenResponse,
    UserResponse,
)
from app.features.auth.schemas.password_reset import (
    ChangePasswordRequest,
    CodeSentResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SetPasswordRequest,
)

__all__ = [
    "ChangePasswordRequest",
    "CodeSentResponse",
    "ForgotPasswordRequest",
    "GoogleAuthRequest",
    "LoginRequest",
    "LoginWithCodeRequest",
    "RefreshTokenRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SendLoginCodeRequest",
    "SetPasswordRequest",
    "TokenResponse",
    "UserResponse",
]
