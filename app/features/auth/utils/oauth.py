from dataclasses import dataclass
from typing import Optional

from google.auth.transport import requests
from google.oauth2 import id_token
from starlette.concurrency import run_in_threadpool

from app.platform.exceptions import InternalError, UnauthorizedError

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass
class GoogleUserInfo:
    sub: str
    email: str
    email_verified: bool
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleOAuthVerifier:
    """Verifies Google ID tokens against the configured client id"""

    def __init__(self, client_id: Optional[str]):
        self.client_id = client_id

    def _verify(self, token: str) -> dict:
        return id_token.verify_oauth2_token(token, requests.Request(), self.client_id)

    async def verify_token(self, token: str) -> GoogleUserInfo:
        """
        Verify a Google ID token and return the user info it carries.

        Raises:
            UnauthorizedError: If the token is empty, invalid or incomplete
            InternalError: If Google OAuth is not configured
        """
        if not token:
            raise UnauthorizedError("ID Token 不能为空")

        if not self.client_id:
            raise InternalError("Google Client ID 未配置")

        try:
            idinfo = await run_in_threadpool(self._verify, token)
        except ValueError as e:
            raise UnauthorizedError(f"Google 认证失败：{e}") from e

        if idinfo.get("iss") not in GOOGLE_ISSUERS:
            raise UnauthorizedError("Google 认证失败：Wrong issuer")

        sub = idinfo.get("sub")
        if not sub:
            raise UnauthorizedError("无效的 ID Token：缺少 sub 字段")

        return GoogleUserInfo(
            sub=sub,
            email=idinfo.get("email") or "",
            email_verified=bool(idinfo.get("email_verified", False)),
            name=idinfo.get("name"),
            picture=idinfo.get("picture"),
        )
