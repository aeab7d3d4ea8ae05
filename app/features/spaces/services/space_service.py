import logging
import secrets
import string
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.spaces.models.space import MemberRole, Space, SpaceMember, SpaceType
from app.features.spaces.schemas.space import MemberResponse, SpaceResponse
from app.platform.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 8
MAX_INVITE_CODE_ATTEMPTS = 5


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


class SpaceService:
    def __init__(self, db: AsyncSession, invite_link_base: str):
        self.db = db
        self.invite_link_base = invite_link_base.rstrip("/")

    def _invite_link(self, code: str) -> str:
        return f"{self.invite_link_base}/{code}"

    async def _invite_code_taken(self, code: str) -> bool:
        result = await self.db.execute(select(Space.id).where(Space.invite_code == code))
        return result.scalar_one_or_none() is not None

    async def _unique_invite_code(self) -> str:
        for _ in range(MAX_INVITE_CODE_ATTEMPTS):
            code = generate_invite_code()
            if not await self._invite_code_taken(code):
                return code
        raise InternalError("生成邀请码失败，请重试")

    async def get_space_or_404(self, space_id: str) -> Space:
        result = await self.db.execute(
            select(Space).where(Space.id == space_id, Space.deleted_at.is_(None))
        )
        space = result.scalar_one_or_none()
        if not space:
            raise NotFoundError("空间不存在")
        return space

    async def _member_count(self, space_id: str) -> int:
        result = await self.db.execute(
            select(func.count(SpaceMember.id)).where(SpaceMember.space_id == space_id)
        )
        return result.scalar_one()

    async def _to_response(self, space: Space) -> SpaceResponse:
        response = SpaceResponse.model_validate(space)
        response.member_count = await self._member_count(space.id)
        return response

    async def is_user_in_space(self, space_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(SpaceMember.id).where(
                SpaceMember.space_id == space_id, SpaceMember.user_id == user_id
            )
        )
        return result.scalar_one_or_none() is not None

    async def require_member(self, space_id: str, user_id: str) -> Space:
        """Return the space if ``user_id`` belongs to it, raise otherwise."""
        space = await self.get_space_or_404(space_id)
        if not await self.is_user_in_space(space_id, user_id):
            raise ForbiddenError("无权访问该空间")
        return space

    async def create_space(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        space_type: Optional[str] = None,
    ) -> SpaceResponse:
        try:
            kind = SpaceType(space_type or SpaceType.personal.value)
        except ValueError:
            raise ValidationError("无效的空间类型")

        code = await self._unique_invite_code()
        space = Space(
            name=name,
            description=description,
            invite_code=code,
            invite_link=self._invite_link(code),
            owner_id=owner_id,
            type=kind,
        )

        try:
            self.db.add(space)
            await self.db.flush()
            self.db.add(SpaceMember(space_id=space.id, user_id=owner_id, role=MemberRole.owner))
            await self.db.commit()
            await self.db.refresh(space)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("邀请码冲突，请重试")

        logger.info(f"Space {space.id} created by {owner_id}")
        return await self._to_response(space)

    async def list_user_spaces(self, user_id: str) -> List[SpaceResponse]:
        result = await self.db.execute(
            select(Space)
            .join(SpaceMember, SpaceMember.space_id == Space.id)
            .where(SpaceMember.user_id == user_id, Space.deleted_at.is_(None))
            .order_by(Space.created_at.desc())
        )
        return [await self._to_response(space) for space in result.scalars().all()]

    async def get_space(self, space_id: str, user_id: str) -> SpaceResponse:
        space = await self.require_member(space_id, user_id)
        return await self._to_response(space)

    async def refresh_invite_code(self, space_id: str, user_id: str) -> SpaceResponse:
        space = await self.get_space_or_404(space_id)
        if space.owner_id != user_id:
            raise ForbiddenError("只有空间创建者可以刷新邀请码")

        code = await self._unique_invite_code()
        space.invite_code = code
        space.invite_link = self._invite_link(code)
        try:
            await self.db.commit()
            await self.db.refresh(space)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("邀请码冲突，请重试")

        return await self._to_response(space)

    async def join_space(self, invite_code: str, user_id: str) -> SpaceResponse:
        result = await self.db.execute(
            select(Space).where(
                Space.invite_code == invite_code.strip().upper(), Space.deleted_at.is_(None)
            )
        )
        space = result.scalar_one_or_none()
        if not space:
            raise NotFoundError("邀请码无效")

        if await self.is_user_in_space(space.id, user_id):
            raise ConflictError("您已经在该空间中")

        try:
            self.db.add(SpaceMember(space_id=space.id, user_id=user_id, role=MemberRole.member))
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("您已经在该空间中")

        logger.info(f"User {user_id} joined space {space.id}")
        return await self._to_response(space)

    async def remove_member(self, space_id: str, actor_id: str, target_id: str) -> None:
        space = await self.get_space_or_404(space_id)
        if space.owner_id != actor_id:
            raise ForbiddenError("只有空间创建者可以移除成员")
        if actor_id == target_id:
            raise ValidationError("不能移除自己")

        result = await self.db.execute(
            select(SpaceMember).where(
                SpaceMember.space_id == space_id, SpaceMember.user_id == target_id
            )
        )
        member = result.scalar_one_or_none()
        if not member:
            raise NotFoundError("该用户不是空间成员")

        await self.db.delete(member)
        await self.db.execute(
            update(User)
            .where(User.id == target_id, User.default_space_id == space_id)
            .values(default_space_id=None, updated_at=datetime.now(timezone.utc))
        )
        await self.db.commit()
        logger.info(f"User {target_id} removed from space {space_id} by {actor_id}")

    async def list_members(self, space_id: str, user_id: str) -> List[MemberResponse]:
        await self.require_member(space_id, user_id)

        result = await self.db.execute(
            select(SpaceMember, User)
            .join(User, User.id == SpaceMember.user_id)
            .where(SpaceMember.space_id == space_id)
            .order_by(SpaceMember.joined_at)
        )
        return [
            MemberResponse(
                user_id=user.id,
                username=user.username,
                email=user.email,
                avatar_url=user.avatar_url,
                role=member.role,
                joined_at=member.joined_at,
            )
            for member, user in result.all()
        ]
