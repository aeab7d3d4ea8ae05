from app.features.auth.models.user import AuthProvider, User

__all__ = ["AuthProvider", "User"]
