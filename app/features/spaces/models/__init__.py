from app.features.spaces.models.space import MemberRole, Space, SpaceMember, SpaceType

__all__ = ["MemberRole", "Space", "SpaceMember", "SpaceType"]
