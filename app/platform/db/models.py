"""Imports every model so ``Base.metadata`` is complete."""

from app.platform.db.base import Base
from app.features.auth.models.user import User
from app.features.spaces.models.space import Space, SpaceMember
from app.features.events.models.event import Event, EventImage

__all__ = ["Base", "User", "Space", "SpaceMember", "Event", "EventImage"]
