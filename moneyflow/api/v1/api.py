"""API router for version 1."""
from fastapi import APIRouter

from moneyflow.api.v1.endpoints import alerts, notifications, preferences, push


api_router = APIRouter()
api_router.include_router(push.router)
api_router.include_router(preferences.router)
api_router.include_router(notifications.router)
api_router.include_router(alerts.router)
