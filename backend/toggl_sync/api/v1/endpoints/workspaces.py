from typing import List

from fastapi import APIRouter, Depends

from toggl_sync.api.dependencies import get_coordinator
from toggl_sync.schemas.toggl import Project, Tag, Workspace
from toggl_sync.services.sync_coordinator import SyncCoordinator

router = APIRouter()


@router.get("", response_model=List[Workspace])
async def list_workspaces(coordinator: SyncCoordinator = Depends(get_coordinator)):
    return await coordinator.get_workspaces()


@router.get("/projects", response_model=List[Project])
async def list_cached_projects(coordinator: SyncCoordinator = Depends(get_coordinator)):
    """Projects of the configured workspace as of the last preload."""
    return coordinator.cached_projects


@router.get("/tags", response_model=List[Tag])
async def list_cached_tags(coordinator: SyncCoordinator = Depends(get_coordinator)):
    return coordinator.cached_tags
