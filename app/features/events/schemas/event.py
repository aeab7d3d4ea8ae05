from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventImageInput(BaseModel):
    image_url: str
    thumbnail_url: Optional[str] = None


class EventCreate(BaseModel):
    space_id: str
    event_date: date
    event_time: Optional[time] = None
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str] = None
    images: List[EventImageInput] = Field(default_factory=list)


class EventUpdate(BaseModel):
    event_date: Optional[date] = None
    event_time: Optional[time] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None


class EventImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    image_url: str
    thumbnail_url: Optional[str] = None
    sort_order: int
    uploaded_at: datetime


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    space_id: str
    user_id: str
    event_date: date
    event_time: Optional[time] = None
    title: str
    content: Optional[str] = None
    images: List[EventImageResponse] = []
    created_at: datetime
    updated_at: datetime
