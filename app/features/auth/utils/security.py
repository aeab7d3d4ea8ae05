import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from app.platform.config import Settings
from app.platform.exceptions import InvalidTokenError

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    # SHA-256 pre-hash keeps long passwords under bcrypt's 72 byte limit
    password_hash = hashlib.sha256(password.encode("utf-8")).digest()

    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_hash, salt)

    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.
    Uses SHA-256 pre-hashing to match the hashing method.
    """
    if not hashed_password:
        return False

    password_hash = hashlib.sha256(plain_password.encode("utf-8")).digest()
    try:
        return bcrypt.checkpw(password_hash, hashed_password.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class TokenClaims:
    user_id: str
    username: str
    token_type: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Issues and parses the signed bearer tokens handed out at login."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=2),
        refresh_ttl: timedelta = timedelta(hours=168),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(hours=settings.REFRESH_TOKEN_EXPIRE_HOURS),
        )

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_ttl.total_seconds())

    def _issue(self, user_id: str, username: str, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": str(user_id),
            "username": username,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_access_token(self, user_id: str, username: str) -> str:
        return self._issue(user_id, username, ACCESS_TOKEN, self.access_ttl)

    def issue_refresh_token(self, user_id: str, username: str) -> str:
        return self._issue(user_id, username, REFRESH_TOKEN, self.refresh_ttl)

    def parse_token(self, token: str, expected_type: Optional[str] = None) -> TokenClaims:
        """Verify signature and expiry. Raises InvalidTokenError on any failure."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("令牌已过期")
        except jwt.PyJWTError:
            raise InvalidTokenError("无效的令牌")

        user_id = payload.get("user_id")
        token_type = payload.get("type")
        if not user_id or token_type not in (ACCESS_TOKEN, REFRESH_TOKEN):
            raise InvalidTokenError("无效的令牌")
        if expected_type and token_type != expected_type:
            raise InvalidTokenError("令牌类型错误")

        return TokenClaims(
            user_id=user_id,
            username=payload.get("username", ""),
            token_type=token_type,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
