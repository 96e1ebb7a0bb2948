from fastapi import APIRouter
from .api import roll_tracking

# Create main API router
api_router = APIRouter()

api_router.include_router(roll_tracking.router, prefix="/api", tags=["Roll Tracking"])
