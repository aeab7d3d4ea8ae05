from fastapi import APIRouter, Depends

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.spaces.routes.spaces import get_space_service
from app.features.spaces.services.space_service import SpaceService
from app.features.users.schemas.user import SetDefaultSpaceRequest
from app.features.users.services.user_service import UserService
from app.platform.response import api_response

router = APIRouter(prefix="/users", tags=["User Management"])


def get_user_service(spaces: SpaceService = Depends(get_space_service)) -> UserService:
    return UserService(spaces.db, spaces)


@router.put("/default-space", response_model=dict, summary="Set the default space")
async def set_default_space(
    request: SetDefaultSpaceRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.set_default_space(current_user.id, request.space_id)
    return api_response(data=user, message="默认空间已设置")


@router.delete("/default-space", response_model=dict, summary="Clear the default space")
async def clear_default_space(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.clear_default_space(current_user.id)
    return api_response(data=user, message="默认空间已清除")
