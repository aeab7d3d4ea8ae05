from app.features.events.models.event import Event, EventImage

__all__ = ["Event", "EventImage"]
