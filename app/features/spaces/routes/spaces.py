from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.spaces.schemas.space import SpaceCreate
from app.features.spaces.services.space_service import SpaceService
from app.platform.config import Settings, get_settings
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/spaces", tags=["Spaces"])


def get_space_service(
    db: AsyncSession = Depends(get_db), settings: Settings = Depends(get_settings)
) -> SpaceService:
    return SpaceService(db, settings.INVITE_LINK_BASE)


@router.post("", response_model=dict, summary="Create a space")
async def create_space(
    request: SpaceCreate,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    space = await space_service.create_space(
        current_user.id, request.name, request.description, request.type
    )
    return api_response(data=space, message="创建成功")


@router.get("", response_model=dict, summary="List my spaces")
async def list_spaces(
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    spaces = await space_service.list_user_spaces(current_user.id)
    return api_response(data=spaces)


@router.post("/join/{invite_code}", response_model=dict, summary="Join a space by invite code")
async def join_space(
    invite_code: str,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    space = await space_service.join_space(invite_code, current_user.id)
    return api_response(data=space, message="加入成功")


@router.get("/{space_id}", response_model=dict, summary="Space detail")
async def get_space(
    space_id: str,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    space = await space_service.get_space(space_id, current_user.id)
    return api_response(data=space)


@router.post("/{space_id}/invite", response_model=dict, summary="Refresh the invite code")
async def refresh_invite_code(
    space_id: str,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    space = await space_service.refresh_invite_code(space_id, current_user.id)
    return api_response(data=space, message="邀请码已刷新")


@router.get("/{space_id}/members", response_model=dict, summary="List space members")
async def list_members(
    space_id: str,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    members = await space_service.list_members(space_id, current_user.id)
    return api_response(data=members)


@router.delete("/{space_id}/members/{user_id}", response_model=dict, summary="Remove a member")
async def remove_member(
    space_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    space_service: SpaceService = Depends(get_space_service),
):
    await space_service.remove_member(space_id, current_user.id, user_id)
    return api_response(message="成员已移除")
