"""HTTP routes."""

from fastapi import APIRouter, Depends

from app.api.deps import require_api_key
from app.api.routes import auth, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(
    auth.router, prefix="/auth", tags=["auth"], dependencies=[Depends(require_api_key)]
)
router.include_router(
    users.router, prefix="/users", tags=["users"], dependencies=[Depends(require_api_key)]
)
