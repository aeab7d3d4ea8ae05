import re
import secrets
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User

MAX_SUFFIX_ATTEMPTS = 10
MAX_BASE_LENGTH = 40
MAX_USERNAME_LENGTH = 50


async def username_exists(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(User.id).where(User.username == username))
    return result.scalar_one_or_none() is not None


def base_username_from_email(email: str) -> str:
    base_username = email.split("@")[0]
    base_username = re.sub(r"[^A-Za-z0-9_]", "", base_username)

    if len(base_username) < 3:
        base_username = base_username + "user"

    return base_username[:MAX_BASE_LENGTH]


async def generate_unique_username(email: str, db: AsyncSession) -> str:
    """
    Generate a unique username from the email prefix.

    Collisions are retried with a 4-digit suffix a bounded number of times
    before falling back to ``user_<8 hex chars>``.
    """
    base_username = base_username_from_email(email)

    if not await username_exists(db, base_username):
        return base_username

    for _ in range(MAX_SUFFIX_ATTEMPTS):
        suffix = f"{secrets.randbelow(10000):04d}"
        candidate = base_username + suffix
        if len(candidate) > MAX_USERNAME_LENGTH:
            candidate = base_username[: MAX_USERNAME_LENGTH - len(suffix)] + suffix
        if not await username_exists(db, candidate):
            return candidate

    return f"user_{uuid.uuid4().hex[:8]}"
