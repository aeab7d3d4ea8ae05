import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, UniqueConstraint, func

from app.platform.db.base import BaseModel


class SpaceType(str, enum.Enum):
    personal = "personal"
    couple = "couple"
    group = "group"


class MemberRole(str, enum.Enum):
    owner = "owner"
    member = "member"


class Space(BaseModel):
    __tablename__ = "spaces"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    invite_code = Column(String(8), unique=True, nullable=False, index=True)
    invite_link = Column(String(255), nullable=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        Enum(SpaceType, native_enum=False, length=20),
        default=SpaceType.personal,
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<Space(id={self.id}, name={self.name}, type={self.type})>"


class SpaceMember(BaseModel):
    __tablename__ = "space_members"

    space_id = Column(String(36), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(MemberRole, native_enum=False, length=20), default=MemberRole.member, nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("space_id", "user_id", name="uq_space_member"),)
