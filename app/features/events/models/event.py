from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Time, func
from sqlalchemy.orm import relationship

from app.platform.db.base import BaseModel


class Event(BaseModel):
    __tablename__ = "events"

    space_id = Column(String(36), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_date = Column(Date, nullable=False, index=True)
    event_time = Column(Time, nullable=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Live images only, in display order
    images = relationship(
        "EventImage",
        primaryjoin="and_(Event.id == EventImage.event_id, EventImage.deleted_at.is_(None))",
        order_by="EventImage.sort_order",
        lazy="selectin",
        viewonly=True,
    )


class EventImage(BaseModel):
    __tablename__ = "event_images"

    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
