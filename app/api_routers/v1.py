from fastapi import APIRouter

from app.features.auth.routes.auth import router as auth_router
from app.features.events.routes.events import router as events_router
from app.features.spaces.routes.spaces import router as spaces_router
from app.features.upload.routes.upload import router as upload_router
from app.features.users.routes.users import router as users_router

api_router = APIRouter()

# Register all feature routes
api_router.include_router(auth_router)
api_router.include_router(spaces_router)
api_router.include_router(events_router)
api_router.include_router(users_router)
api_router.include_router(upload_router)
