from typing import Optional

from fastapi import APIRouter, Depends

from toggl_sync.api.dependencies import get_coordinator
from toggl_sync.schemas.toggl import TimeEntry, TimeEntrySnapshot, TimeEntryStart
from toggl_sync.services.sync_coordinator import SyncCoordinator

router = APIRouter()


@router.get("/current", response_model=Optional[TimeEntry])
async def get_current_timer(coordinator: SyncCoordinator = Depends(get_coordinator)):
    """Last settled snapshot of the running timer; null when none is running."""
    return coordinator.current_entry


@router.post("/start", response_model=TimeEntrySnapshot)
async def start_timer(
    entry: TimeEntryStart,
    coordinator: SyncCoordinator = Depends(get_coordinator),
):
    return await coordinator.start_timer(entry)


@router.post("/stop", response_model=Optional[TimeEntrySnapshot])
async def stop_timer(coordinator: SyncCoordinator = Depends(get_coordinator)):
    return await coordinator.stop_timer()
