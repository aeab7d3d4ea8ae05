import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.features.auth.models.user import User
from app.features.auth.utils.security import hash_password, verify_password
from app.features.auth.utils.verification import VerificationCodeManager, VerificationFlow
from app.platform.exceptions import ConflictError, NotFoundError, ValidationError
from app.platform.utils.validators import is_valid_email, is_valid_password

logger = logging.getLogger(__name__)

WEAK_PASSWORD_MESSAGE = "密码至少8位，且必须包含字母和数字"


async def _get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(
        select(User).where(User.email == email, User.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def _get_user_by_id(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id, User.deleted_at.is_(None)))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("用户不存在")
    return user


async def request_reset(db: AsyncSession, codes: VerificationCodeManager, email: str) -> str:
    """Send a password reset code. Returns the masked email."""
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ValidationError("邮箱格式不正确")

    async def ensure_resettable(address: str) -> None:
        user = await _get_user_by_email(db, address)
        if not user:
            raise NotFoundError("该邮箱未注册")
        if not user.has_password:
            raise ValidationError("该账号通过 Google 登录，未设置密码")

    return await codes.issue(email, VerificationFlow.PASSWORD_RESET, precheck=ensure_resettable)


async def reset_password(
    db: AsyncSession, codes: VerificationCodeManager, email: str, code: str, new_password: str
) -> None:
    email = email.strip().lower()
    if not is_valid_password(new_password):
        raise ValidationError(WEAK_PASSWORD_MESSAGE)

    await codes.verify(email, code, VerificationFlow.PASSWORD_RESET)

    user = await _get_user_by_email(db, email)
    if not user:
        raise NotFoundError("用户不存在")

    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info(f"Password reset for user {user.id}")


async def change_password(
    db: AsyncSession,
    codes: VerificationCodeManager,
    user_id: str,
    current_password: str,
    new_password: str,
) -> None:
    user = await _get_user_by_id(db, user_id)

    if not user.has_password:
        raise ValidationError("当前账号未设置密码，请先设置密码")
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("当前密码错误")
    if not is_valid_password(new_password):
        raise ValidationError(WEAK_PASSWORD_MESSAGE)

    user.password_hash = hash_password(new_password)
    await db.commit()

    # An outstanding reset code must not undo this change
    await codes.invalidate(user.email, VerificationFlow.PASSWORD_RESET)
    logger.info(f"Password changed for user {user.id}")


async def set_initial_password(db: AsyncSession, user_id: str, new_password: str) -> None:
    user = await _get_user_by_id(db, user_id)

    if user.has_password:
        raise ConflictError("密码已设置，请使用修改密码功能")
    if not is_valid_password(new_password):
        raise ValidationError(WEAK_PASSWORD_MESSAGE)

    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info(f"Initial password set for user {user.id}")
