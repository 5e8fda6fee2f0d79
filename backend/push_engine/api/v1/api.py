"""
Version 1 API router configuration.
"""

from fastapi import APIRouter

from push_engine.api.v1.endpoints import devices, notifications

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)
api_router.include_router(
    devices.router,
    prefix="/devices",
    tags=["Devices"],
)
