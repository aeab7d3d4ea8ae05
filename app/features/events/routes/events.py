from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.events.schemas.event import EventCreate, EventUpdate
from app.features.events.services.event_service import EventService
from app.features.spaces.routes.spaces import get_space_service
from app.features.spaces.services.space_service import SpaceService
from app.platform.response import api_response

router = APIRouter(prefix="/events", tags=["Events"])


def get_event_service(spaces: SpaceService = Depends(get_space_service)) -> EventService:
    return EventService(spaces.db, spaces)


@router.post("", response_model=dict, summary="Create an event")
async def create_event(
    request: EventCreate,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.create_event(
        user_id=current_user.id,
        space_id=request.space_id,
        event_date=request.event_date,
        event_time=request.event_time,
        title=request.title,
        content=request.content,
        images=request.images,
    )
    return api_response(data=event, message="创建成功")


@router.get("/spaces/{space_id}", response_model=dict, summary="List events of a space")
async def list_events(
    space_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    events = await event_service.list_events(
        space_id, current_user.id, start_date, end_date, limit, offset
    )
    return api_response(data=events)


@router.delete("/images/{image_id}", response_model=dict, summary="Delete an event image")
async def delete_event_image(
    image_id: str,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    await event_service.delete_event_image(image_id, current_user.id)
    return api_response(message="删除成功")


@router.get("/{event_id}", response_model=dict, summary="Event detail")
async def get_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.get_event(event_id, current_user.id)
    return api_response(data=event)


@router.put("/{event_id}", response_model=dict, summary="Update an event")
async def update_event(
    event_id: str,
    request: EventUpdate,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.update_event(
        event_id, current_user.id, request.model_dump(exclude_unset=True)
    )
    return api_response(data=event, message="更新成功")


@router.delete("/{event_id}", response_model=dict, summary="Delete an event")
async def delete_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    await event_service.delete_event(event_id, current_user.id)
    return api_response(message="删除成功")
