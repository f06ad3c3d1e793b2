"""v4 API router.

Mounts the feature routers under the `/api/v4` prefix.
"""

from fastapi import APIRouter

from src.backend.v4.api.action_center_router import action_center_router

app_v4 = APIRouter(
    prefix="/api/v4",
    responses={404: {"description": "Not found"}},
)

app_v4.include_router(action_center_router)
