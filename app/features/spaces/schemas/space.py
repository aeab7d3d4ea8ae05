from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.spaces.models.space import MemberRole, SpaceType


class SpaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    type: Optional[str] = None


class SpaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    invite_code: str
    invite_link: Optional[str] = None
    owner_id: str
    type: SpaceType
    member_count: int = 0
    created_at: datetime
    updated_at: datetime


class MemberResponse(BaseModel):
    user_id: str
    username: str
    email: str
    avatar_url: Optional[str] = None
    role: MemberRole
    joined_at: datetime
