from fastapi import APIRouter

from laneops.routers import health, lanes

api_router = APIRouter()
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(lanes.router, prefix="/lanes", tags=["Lanes"])
