from sqlalchemy import Column, DateTime, String, Text

from app.platform.db.base import BaseModel


class AuthProvider:
    LOCAL = "local"
    GOOGLE = "google"


class User(BaseModel):
    __tablename__ = "users"
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)  # empty for Google-only accounts
    avatar_url = Column(Text, nullable=True)

    default_space_id = Column(String(36), nullable=True, index=True)

    google_id = Column(String(255), unique=True, nullable=True)
    auth_provider = Column(String(20), nullable=False, default=AuthProvider.LOCAL)

    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, username={self.username})>"
