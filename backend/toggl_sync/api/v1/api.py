from fastapi import APIRouter

from toggl_sync.api.v1.endpoints import status, timer, reports, workspaces

api_router = APIRouter()
api_router.include_router(status.router, prefix="/status", tags=["status"])
api_router.include_router(timer.router, prefix="/timer", tags=["timer"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(workspaces.router, prefix="/workspaces", tags=["workspaces"])
