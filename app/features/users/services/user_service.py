import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.schemas.auth import UserResponse
from app.features.spaces.services.space_service import SpaceService
from app.platform.exceptions import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, spaces: SpaceService):
        self.db = db
        self.spaces = spaces

    async def _get_user(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id, User.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("用户不存在")
        return user

    async def set_default_space(self, user_id: str, space_id: str) -> UserResponse:
        space = await self.spaces.get_space_or_404(space_id)
        if not await self.spaces.is_user_in_space(space.id, user_id):
            raise ForbiddenError("您不是该空间的成员")

        user = await self._get_user(user_id)
        user.default_space_id = space.id
        await self.db.commit()

        logger.info(f"User {user_id} set default space {space.id}")
        return UserResponse.model_validate(await self._get_user(user_id))

    async def clear_default_space(self, user_id: str) -> UserResponse:
        user = await self._get_user(user_id)
        user.default_space_id = None
        await self.db.commit()
        return UserResponse.model_validate(await self._get_user(user_id))

    async def clear_default_space_for_space(self, space_id: str) -> None:
        """Unset ``default_space_id`` for every user pointing at ``space_id``."""
        await self.db.execute(
            update(User).where(User.default_space_id == space_id).values(default_space_id=None)
        )
        await self.db.commit()
