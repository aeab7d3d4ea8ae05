"""
One-time numeric codes for login-by-code and password reset.

Records live in Redis under ``<flow>:<email>`` and expire with the flow TTL.
A separate ``<flow>_rate:<email>`` marker blocks reissuance for a minute.
"""

import hmac
import json
import math
import secrets
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.platform.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    InternalError,
    InvalidCodeError,
    RateLimitedError,
    TooManyAttemptsError,
)
from app.platform.logger import get_logger
from app.platform.services.email import EmailSender
from app.platform.utils.validators import mask_email

logger = get_logger("verification")

MAX_ATTEMPTS = 5
RATE_LIMIT_TTL = timedelta(minutes=1)
CODE_DIGITS = 6


class VerificationFlow(str, Enum):
    PASSWORD_RESET = "password_reset"
    LOGIN_CODE = "login_code"

    @property
    def ttl(self) -> timedelta:
        return FLOW_TTLS[self]

    def record_key(self, email: str) -> str:
        return f"{self.value}:{email}"

    def rate_key(self, email: str) -> str:
        return f"{self.value}_rate:{email}"


FLOW_TTLS = {
    VerificationFlow.PASSWORD_RESET: timedelta(minutes=10),
    VerificationFlow.LOGIN_CODE: timedelta(minutes=5),
}


def generate_verification_code() -> str:
    """Uniform 6-digit code from a CSPRNG, zero-padded."""
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VerificationRecord:
    email: str
    code: str
    attempts: int
    created_at: datetime
    expires_at: datetime

    @classmethod
    def new(cls, email: str, code: str, ttl: timedelta, now: datetime) -> "VerificationRecord":
        return cls(email=email, code=code, attempts=0, created_at=now, expires_at=now + ttl)

    def to_json(self) -> str:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["expires_at"] = self.expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "VerificationRecord":
        data = json.loads(raw)
        return cls(
            email=str(data["email"]),
            code=str(data["code"]),
            attempts=int(data["attempts"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def has_too_many_attempts(self) -> bool:
        return self.attempts >= MAX_ATTEMPTS

    def matches(self, code: str) -> bool:
        return hmac.compare_digest(self.code.encode("utf-8"), code.encode("utf-8"))


class VerificationCodeManager:
    """Issues and validates verification codes against Redis."""

    def __init__(
        self,
        redis: Redis,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.redis = redis
        self.email_sender = email_sender
        self.clock = clock

    async def issue(
        self,
        email: str,
        flow: VerificationFlow,
        precheck: Optional[Callable[[str], Awaitable[None]]] = None,
    ) -> str:
        """
        Generate, store and send a code for ``email``. Returns the masked email.

        ``precheck`` runs after the rate limit check and before anything is
        written; it raises to abort the flow (e.g. unknown account).
        """
        await self._ensure_not_rate_limited(email, flow)

        if precheck is not None:
            await precheck(email)

        code = generate_verification_code()
        record = VerificationRecord.new(email, code, flow.ttl, self.clock())
        record_key = flow.record_key(email)

        try:
            await self.redis.set(record_key, record.to_json(), ex=flow.ttl)
        except RedisError as e:
            logger.error(f"Failed to store {flow.value} code for {email}: {e}")
            raise InternalError("存储验证码失败") from e

        try:
            await self.redis.set(flow.rate_key(email), "1", ex=RATE_LIMIT_TTL)
        except RedisError as e:
            # A missing marker only weakens the rate limit, the flow continues
            logger.warning(f"Rate limit marker not written for {email} ({flow.value}): {e}")

        try:
            await self.email_sender.send_verification_code(email, code, flow.value)
        except Exception:
            logger.exception(f"Delivery of {flow.value} code to {email} failed")
            # Drop the codeless record so the user can request a new one
            try:
                await self.redis.delete(record_key)
            except RedisError as e:
                logger.warning(f"Could not remove undelivered {flow.value} code for {email}: {e}")
            raise

        logger.info(f"Issued {flow.value} code for {email}")
        return mask_email(email)

    async def verify(self, email: str, submitted_code: str, flow: VerificationFlow) -> None:
        """
        Consume the code for ``email``. Returns normally on success, raises otherwise.
        """
        record_key = flow.record_key(email)
        raw = await self.redis.get(record_key)
        if raw is None:
            raise CodeExpiredError()

        try:
            record = VerificationRecord.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning(f"Undecodable {flow.value} record for {email}")
            raise InvalidCodeError()

        if record.is_expired(self.clock()):
            await self.redis.delete(record_key)
            raise CodeExpiredError()

        if record.has_too_many_attempts():
            await self.redis.delete(record_key)
            raise TooManyAttemptsError()

        if not record.matches(submitted_code):
            record.attempts += 1
            remaining = await self._remaining_ttl(record_key, record)
            if remaining <= 0:
                await self.redis.delete(record_key)
                raise CodeExpiredError()
            await self.redis.set(record_key, record.to_json(), ex=remaining)
            logger.info(f"Wrong {flow.value} code for {email} (attempt {record.attempts})")
            raise CodeMismatchError()

        await self.redis.delete(record_key)

    async def invalidate(self, email: str, flow: VerificationFlow) -> None:
        await self.redis.delete(flow.record_key(email))

    async def _ensure_not_rate_limited(self, email: str, flow: VerificationFlow) -> None:
        ttl = await self.redis.ttl(flow.rate_key(email))
        # -2: no marker, -1: marker without expiry
        if ttl == -1:
            raise RateLimitedError(int(RATE_LIMIT_TTL.total_seconds()))
        if ttl > 0:
            raise RateLimitedError(ttl)

    async def _remaining_ttl(self, record_key: str, record: VerificationRecord) -> int:
        ttl = await self.redis.ttl(record_key)
        if ttl == -2:
            return 0
        if ttl == -1:
            return math.ceil((record.expires_at - self.clock()).total_seconds())
        return ttl
