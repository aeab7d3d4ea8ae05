import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.events.models.event import Event, EventImage
from app.features.events.schemas.event import EventImageInput, EventResponse
from app.features.spaces.services.space_service import SpaceService
from app.platform.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

UPDATABLE_FIELDS = ("event_date", "event_time", "title", "content")


class EventService:
    def __init__(self, db: AsyncSession, spaces: SpaceService):
        self.db = db
        self.spaces = spaces

    async def _load_event(self, event_id: str) -> Event:
        result = await self.db.execute(
            select(Event)
            .where(Event.id == event_id, Event.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise NotFoundError("事件不存在")
        return event

    async def _is_space_owner(self, space_id: str, user_id: str) -> bool:
        space = await self.spaces.get_space_or_404(space_id)
        return space.owner_id == user_id

    async def create_event(
        self,
        user_id: str,
        space_id: str,
        event_date: date,
        title: str,
        event_time=None,
        content: Optional[str] = None,
        images: Optional[List[EventImageInput]] = None,
    ) -> EventResponse:
        space = await self.spaces.get_space_or_404(space_id)
        if not await self.spaces.is_user_in_space(space.id, user_id):
            raise ForbiddenError("您不在该空间中，无法创建事件")

        event = Event(
            space_id=space.id,
            user_id=user_id,
            event_date=event_date,
            event_time=event_time,
            title=title,
            content=content,
        )
        self.db.add(event)
        await self.db.flush()

        for index, image in enumerate(images or []):
            self.db.add(
                EventImage(
                    event_id=event.id,
                    image_url=image.image_url,
                    thumbnail_url=image.thumbnail_url,
                    sort_order=index,
                )
            )
        await self.db.commit()

        logger.info(f"Event {event.id} created in space {space.id} by {user_id}")
        return EventResponse.model_validate(await self._load_event(event.id))

    async def get_event(self, event_id: str, user_id: str) -> EventResponse:
        event = await self._load_event(event_id)
        if not await self.spaces.is_user_in_space(event.space_id, user_id):
            raise ForbiddenError("无权访问该事件")
        return EventResponse.model_validate(event)

    async def list_events(
        self,
        space_id: str,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[EventResponse]:
        """
        Events of a space, newest first.

        When both dates are given the inclusive range is returned in full,
        otherwise ``limit``/``offset`` paging applies.
        """
        await self.spaces.require_member(space_id, user_id)

        query = select(Event).where(Event.space_id == space_id, Event.deleted_at.is_(None))

        if start_date is not None and end_date is not None:
            if start_date > end_date:
                raise ValidationError("开始日期不能晚于结束日期")
            query = query.where(Event.event_date >= start_date, Event.event_date <= end_date)
            query = query.order_by(Event.event_date.desc(), Event.event_time.desc())
        else:
            if not limit or limit <= 0:
                limit = DEFAULT_LIMIT
            limit = min(limit, MAX_LIMIT)
            query = (
                query.order_by(Event.event_date.desc(), Event.event_time.desc())
                .limit(limit)
                .offset(max(offset, 0))
            )

        result = await self.db.execute(query.execution_options(populate_existing=True))
        return [EventResponse.model_validate(event) for event in result.scalars().all()]

    async def update_event(self, event_id: str, user_id: str, changes: Dict[str, Any]) -> EventResponse:
        event = await self._load_event(event_id)
        if event.user_id != user_id:
            raise ForbiddenError("只有创建者可以修改事件")

        for field in UPDATABLE_FIELDS:
            if field in changes:
                if field in ("event_date", "title") and changes[field] is None:
                    continue
                setattr(event, field, changes[field])

        await self.db.commit()
        return EventResponse.model_validate(await self._load_event(event_id))

    async def delete_event(self, event_id: str, user_id: str) -> None:
        event = await self._load_event(event_id)
        if event.user_id != user_id and not await self._is_space_owner(event.space_id, user_id):
            raise ForbiddenError("只有创建者或空间创建者可以删除事件")

        event.deleted_at = datetime.now(timezone.utc)
        await self.db.commit()
        logger.info(f"Event {event_id} deleted by {user_id}")

    async def delete_event_image(self, image_id: str, user_id: str) -> None:
        result = await self.db.execute(
            select(EventImage).where(EventImage.id == image_id, EventImage.deleted_at.is_(None))
        )
        image = result.scalar_one_or_none()
        if not image:
            raise NotFoundError("图片不存在")

        event = await self._load_event(image.event_id)
        if event.user_id != user_id and not await self._is_space_owner(event.space_id, user_id):
            raise ForbiddenError("只有创建者或空间创建者可以删除图片")

        image.deleted_at = datetime.now(timezone.utc)
        await self.db.commit()
