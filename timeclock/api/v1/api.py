from fastapi import APIRouter
from timeclock.api.v1.endpoints import time_sessions, console, maintenance

api_router = APIRouter()

# Register routes
api_router.include_router(time_sessions.router, prefix="/time-sessions", tags=["Time Sessions"])
api_router.include_router(console.router, prefix="/console", tags=["Console"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
